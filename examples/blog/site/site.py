"""Render functions for the blog example."""

from html import escape

from .lib.layout import page


def render_post(ctx):
    title = ctx.entry.get("title", ctx.entry.path)
    return page(title, f"<article>{escape(ctx.entry.body)}</article>")


def render_index(ctx):
    posts = ctx.tree.get("posts", {})
    items = "".join(
        f'<li><a href="posts/{name}">{escape(post.get("title", name))}</a></li>'
        for name, post in sorted(posts.items())
    )
    return page("Blog", f"<ul>{items}</ul>")
