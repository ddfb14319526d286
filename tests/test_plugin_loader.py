"""Tests for ironsmith.plugins.loader: local files, entry points, modules, errors."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ironsmith.config import PluginSpec
from ironsmith.plugins.loader import PluginLoader, PluginLoadError, PluginNotFoundError, _is_local


# -- Helpers ----------------------------------------------------------------


def make_entry_point(name: str, load_return=None):
    """Build a mock entry point with .name and .load()."""
    ep = MagicMock()
    ep.name = name
    ep.load.return_value = load_return or MagicMock()
    return ep


def write_plugin(root: Path, name: str, body: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    return path


MARKER_PLUGIN = """\
def plugin(options):
    marker = options.get("marker", "!")

    def run(files, smith):
        for record in files.values():
            record["contents"] += marker.encode()

    return run
"""


# -- Name classification ----------------------------------------------------


@pytest.mark.parametrize(
    "name, expected",
    [
        ("./plugins/a.py", True),
        ("../shared/b", True),
        ("/abs/c.py", True),
        ("d.py", True),
        ("e.py:factory", True),
        ("ironsmith_markdown", False),
        ("pkg.module:factory", False),
    ],
)
def test_is_local(name, expected):
    assert _is_local(name) is expected


# -- Local files ------------------------------------------------------------


def test_load_local_file(tmp_path):
    write_plugin(tmp_path, "plugins/marker.py", MARKER_PLUGIN)
    plugin = PluginLoader(tmp_path).load(PluginSpec(name="./plugins/marker.py", options={"marker": "?"}))

    files = {"a": {"contents": b"a"}}
    plugin(files, None)
    assert files["a"]["contents"] == b"a?"


def test_local_file_suffix_is_optional(tmp_path):
    write_plugin(tmp_path, "marker.py", MARKER_PLUGIN)
    plugin = PluginLoader(tmp_path).load(PluginSpec(name="./marker"))
    assert callable(plugin)


def test_local_file_named_attribute(tmp_path):
    write_plugin(
        tmp_path,
        "multi.py",
        "def other(options):\n    return lambda files, smith: files.clear()\n",
    )
    plugin = PluginLoader(tmp_path).load(PluginSpec(name="./multi.py:other"))
    files = {"a": {}}
    plugin(files, None)
    assert files == {}


def test_local_file_missing(tmp_path):
    with pytest.raises(PluginNotFoundError, match='failed to require plugin "./nope.py".'):
        PluginLoader(tmp_path).load(PluginSpec(name="./nope.py"))


def test_local_file_without_factory(tmp_path):
    write_plugin(tmp_path, "empty.py", "VALUE = 1\n")
    with pytest.raises(PluginNotFoundError):
        PluginLoader(tmp_path).load(PluginSpec(name="./empty.py"))


def test_local_file_raising_on_import(tmp_path):
    write_plugin(tmp_path, "broken.py", "raise RuntimeError('Break!')\n")
    with pytest.raises(PluginLoadError, match="Break!") as exc_info:
        PluginLoader(tmp_path).load(PluginSpec(name="./broken.py"))
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_factory_raising(tmp_path):
    write_plugin(tmp_path, "angry.py", "def plugin(options):\n    raise ValueError('Break!')\n")
    with pytest.raises(PluginLoadError) as exc_info:
        PluginLoader(tmp_path).load(PluginSpec(name="./angry.py"))
    assert str(exc_info.value) == 'error using plugin "./angry.py"... ValueError: Break!'


def test_factory_returning_non_callable(tmp_path):
    write_plugin(tmp_path, "bad.py", "def plugin(options):\n    return 42\n")
    with pytest.raises(PluginLoadError, match="not a callable"):
        PluginLoader(tmp_path).load(PluginSpec(name="./bad.py"))


# -- Entry points -----------------------------------------------------------


@patch("ironsmith.plugins.loader.importlib.metadata.entry_points")
def test_discover(mock_eps):
    mock_eps.return_value = [make_entry_point("markdown"), make_entry_point("layouts")]
    assert PluginLoader().discover() == ["markdown", "layouts"]
    mock_eps.assert_called_with(group="ironsmith.plugins")


@patch("ironsmith.plugins.loader.importlib.metadata.entry_points")
def test_discover_empty(mock_eps):
    mock_eps.return_value = []
    assert PluginLoader().discover() == []


@patch("ironsmith.plugins.loader.importlib.metadata.entry_points")
def test_load_from_entry_point(mock_eps):
    sentinel = lambda files, smith: None  # noqa: E731
    factory = MagicMock(return_value=sentinel)
    mock_eps.return_value = [make_entry_point("markdown", factory)]

    plugin = PluginLoader().load(PluginSpec(name="markdown", options={"smartypants": True}))

    assert plugin is sentinel
    factory.assert_called_once_with({"smartypants": True})


@patch("ironsmith.plugins.loader.importlib.metadata.entry_points")
def test_entry_point_preferred_over_module(mock_eps, tmp_path, monkeypatch):
    write_plugin(tmp_path, "shadowed.py", "def plugin(options):\n    raise AssertionError('module used')\n")
    monkeypatch.syspath_prepend(str(tmp_path))
    from_ep = lambda files, smith: None  # noqa: E731
    mock_eps.return_value = [make_entry_point("shadowed", MagicMock(return_value=from_ep))]

    assert PluginLoader().load(PluginSpec(name="shadowed")) is from_ep


# -- Importable modules -----------------------------------------------------


@patch("ironsmith.plugins.loader.importlib.metadata.entry_points", return_value=[])
def test_load_from_module(mock_eps, tmp_path, monkeypatch):
    write_plugin(tmp_path, "ironsmith_test_marker.py", MARKER_PLUGIN)
    monkeypatch.syspath_prepend(str(tmp_path))

    plugin = PluginLoader().load(PluginSpec(name="ironsmith_test_marker"))
    files = {"a": {"contents": b"x"}}
    plugin(files, None)
    assert files["a"]["contents"] == b"x!"


@patch("ironsmith.plugins.loader.importlib.metadata.entry_points", return_value=[])
def test_load_from_module_attribute(mock_eps, tmp_path, monkeypatch):
    write_plugin(
        tmp_path,
        "ironsmith_test_pkg/factories.py",
        "def make(options):\n    return lambda files, smith: None\n",
    )
    write_plugin(tmp_path, "ironsmith_test_pkg/__init__.py", "")
    monkeypatch.syspath_prepend(str(tmp_path))

    plugin = PluginLoader().load(PluginSpec(name="ironsmith_test_pkg.factories:make"))
    assert callable(plugin)


@patch("ironsmith.plugins.loader.importlib.metadata.entry_points", return_value=[])
def test_unknown_module(mock_eps):
    with pytest.raises(PluginNotFoundError) as exc_info:
        PluginLoader().load(PluginSpec(name="ironsmith_no_such_plugin_xyz"))
    assert exc_info.value.name == "ironsmith_no_such_plugin_xyz"


@patch("ironsmith.plugins.loader.importlib.metadata.entry_points", return_value=[])
def test_module_with_missing_dependency(mock_eps, tmp_path, monkeypatch):
    write_plugin(tmp_path, "ironsmith_test_needy.py", "import ironsmith_missing_dep_xyz\n")
    monkeypatch.syspath_prepend(str(tmp_path))

    with pytest.raises(PluginLoadError, match="ironsmith_missing_dep_xyz"):
        PluginLoader().load(PluginSpec(name="ironsmith_test_needy"))


# -- load_all ---------------------------------------------------------------


def test_load_all_keeps_order(tmp_path):
    write_plugin(tmp_path, "first.py", "def plugin(options):\n    return lambda f, s: 'first'\n")
    write_plugin(tmp_path, "second.py", "def plugin(options):\n    return lambda f, s: 'second'\n")

    plugins = PluginLoader(tmp_path).load_all(
        [PluginSpec(name="./second.py"), PluginSpec(name="./first.py")]
    )
    assert [p(None, None) for p in plugins] == ["second", "first"]
