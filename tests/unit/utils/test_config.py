"""Test config loading and logging setup."""

import logging
from dataclasses import dataclass

import pytest
from mcts_planner.utils.config import build_dataclass, deep_merge, load_config, load_yaml
from mcts_planner.utils.logging import setup_logging


@dataclass
class Section:
    alpha: int = 1
    beta: str = "x"


def test_deep_merge():
    base = {'a': {'x': 1, 'y': 2}, 'b': 1}
    merged = deep_merge(base, {'a': {'y': 3}, 'c': 4})

    assert merged == {'a': {'x': 1, 'y': 3}, 'b': 1, 'c': 4}
    assert base['a']['y'] == 2


def test_load_yaml_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_yaml(str(path)) == {}


def test_load_yaml_rejects_list(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_yaml(str(path))


def test_load_yaml_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml(str(tmp_path / "missing.yaml"))


def test_load_config_with_override(tmp_path):
    base = tmp_path / "base.yaml"
    base.write_text("section:\n  alpha: 1\n  beta: y\n")
    override = tmp_path / "override.yaml"
    override.write_text("section:\n  alpha: 7\n")

    assert load_config(str(base), str(override)) == {'section': {'alpha': 7, 'beta': 'y'}}


def test_build_dataclass():
    assert build_dataclass(Section, {'alpha': 5}, 'section') == Section(alpha=5)
    assert build_dataclass(Section, None, 'section') == Section()


def test_build_dataclass_unknown_key():
    with pytest.raises(ValueError, match="gamma"):
        build_dataclass(Section, {'gamma': 1}, 'section')


def test_build_dataclass_requires_mapping():
    with pytest.raises(TypeError):
        build_dataclass(Section, [1, 2], 'section')


def test_setup_logging_accepts_names(tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging("debug", str(log_file))
    logging.getLogger("mcts_planner.test").debug("hello")

    assert logging.getLogger().level == logging.DEBUG
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello" in log_file.read_text()

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.WARNING)


def test_setup_logging_unknown_level():
    with pytest.raises(ValueError):
        setup_logging("chatty")
