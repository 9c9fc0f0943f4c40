def page(title, content):
    return f"<!doctype html><title>{title}</title>\n<h1>{title}</h1>\n{content}\n"
