"""Tests for papyre.config — validation, merging and the typed view."""

from __future__ import annotations

import dataclasses
from pathlib import Path, PurePosixPath
from typing import Any

import pytest

from papyre._errors import ConfigError
from papyre.config import (
    BUNDLE_DIR,
    BUNDLE_NAME,
    DEFAULTS,
    OVERRIDES,
    BuildConfig,
    externalize,
    reconcile,
    reconfigure,
    validate_config,
)


# ---------------------------------------------------------------------------
# externalize
# ---------------------------------------------------------------------------


class TestExternalize:
    @pytest.mark.parametrize("request_", [".helpers", "..lib.util", ".", "/abs/module"])
    def test_relative_and_absolute_requests_are_inlined(self, request_: str) -> None:
        assert externalize(request_) is None

    @pytest.mark.parametrize("request_", ["yaml", "os.path", "html"])
    def test_bare_names_are_external(self, request_: str) -> None:
        assert externalize(request_) == f"module {request_}"


# ---------------------------------------------------------------------------
# validate_config
# ---------------------------------------------------------------------------


class TestValidateConfig:
    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            validate_config(["site/site.py"])

    def test_rejects_missing_entry(self) -> None:
        with pytest.raises(ConfigError, match="single entry file"):
            validate_config({})

    def test_rejects_non_string_entry(self) -> None:
        with pytest.raises(ConfigError, match="single entry file"):
            validate_config({"entry": ["a/site.py", "b/site.py"]})

    def test_rejects_entry_without_directory(self) -> None:
        with pytest.raises(ConfigError, match="located in a directory"):
            validate_config({"entry": "site.py"})

    @pytest.mark.parametrize("entry", ["content/site.py", "./site.py", "/abs/site/site.py"])
    def test_accepts_entry_in_directory(self, entry: str) -> None:
        validate_config({"entry": entry})


# ---------------------------------------------------------------------------
# reconfigure
# ---------------------------------------------------------------------------


class TestReconfigure:
    def test_fills_defaults(self) -> None:
        merged = reconfigure({"entry": "site/site.py"})
        for key, value in DEFAULTS.items():
            assert merged[key] == value

    def test_caller_overrides_defaults(self) -> None:
        merged = reconfigure({"entry": "site/site.py", "debounce": 50, "cache": False})
        assert merged["debounce"] == 50
        assert merged["cache"] is False

    def test_overrides_always_win(self) -> None:
        merged = reconfigure({
            "entry": "site/site.py",
            "target": "javascript",
            "devtool": "source-map",
            "output": {"path": "/tmp/out"},
            "externals": None,
        })
        for key, value in OVERRIDES.items():
            assert merged[key] == value
        assert merged["output"]["path"] == BUNDLE_DIR
        assert merged["output"]["filename"] == BUNDLE_NAME
        assert merged["externals"] is externalize

    def test_extra_keys_survive(self) -> None:
        merged = reconfigure({"entry": "site/site.py", "custom": {"a": 1}})
        assert merged["custom"] == {"a": 1}

    def test_merge_is_shallow(self) -> None:
        merged = reconfigure({"entry": "site/site.py", "resolve": {"alias": {}}})
        assert merged["resolve"] == {"alias": {}}

    def test_validates_first(self) -> None:
        with pytest.raises(ConfigError):
            reconfigure({"entry": "site.py"})


# ---------------------------------------------------------------------------
# BuildConfig
# ---------------------------------------------------------------------------


def _config(tmp_path: Path, **extra: Any) -> BuildConfig:
    return reconcile({"entry": str(tmp_path / "site" / "site.py"), **extra})


class TestBuildConfig:
    def test_entry_is_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        config = reconcile({"entry": "site/site.py"})
        assert config.entry == tmp_path.resolve() / "site" / "site.py"
        assert config.entry.is_absolute()

    def test_entry_dir(self, tmp_path: Path) -> None:
        config = _config(tmp_path)
        assert config.entry_dir == (tmp_path / "site").resolve()

    def test_bundle_path_is_in_memory(self, tmp_path: Path) -> None:
        config = _config(tmp_path)
        assert config.output_dir == PurePosixPath("/memory-fs")
        assert config.bundle_path == PurePosixPath("/memory-fs/papyre_bundle.py")

    def test_default_code_extensions(self, tmp_path: Path) -> None:
        assert _config(tmp_path).code_extensions == (".py",)

    def test_custom_code_extensions(self, tmp_path: Path) -> None:
        config = _config(tmp_path, resolve={"extensions": [".py", ".pyi"]})
        assert config.code_extensions == (".py", ".pyi")

    def test_missing_extensions_fall_back(self, tmp_path: Path) -> None:
        config = _config(tmp_path, resolve={"alias": {}})
        assert config.code_extensions == (".py",)

    def test_bad_extensions_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="resolve.extensions"):
            _config(tmp_path, resolve={"extensions": ".py"})

    @pytest.mark.parametrize("debounce", [-1, True, "300", 1.5])
    def test_bad_debounce_rejected(self, tmp_path: Path, debounce: object) -> None:
        with pytest.raises(ConfigError, match="debounce"):
            _config(tmp_path, debounce=debounce)

    def test_debounce(self, tmp_path: Path) -> None:
        assert _config(tmp_path).debounce_ms == 300
        assert _config(tmp_path, debounce=0).debounce_ms == 0

    def test_module_paths_resolved(self, tmp_path: Path) -> None:
        config = _config(tmp_path, module_paths=[str(tmp_path / "lib")])
        assert config.module_paths == ((tmp_path / "lib").resolve(),)

    def test_module_paths_string_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="module_paths"):
            _config(tmp_path, module_paths="lib")

    def test_externals_and_cache(self, tmp_path: Path) -> None:
        config = _config(tmp_path)
        assert config.externals is externalize
        assert config.cache is True
        assert _config(tmp_path, cache=False).cache is False

    def test_frozen(self, tmp_path: Path) -> None:
        config = _config(tmp_path)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.entry = tmp_path  # type: ignore[misc]
        with pytest.raises(TypeError):
            config.options["entry"] = "x"  # type: ignore[index]
