import os
from pathlib import Path
from unittest.mock import patch

from utils.env import _find_project_root, env_flag, load_project_dotenv


def make_project(root: Path, env_text: str | None = None) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "pyproject.toml").touch()
    if env_text is not None:
        (root / ".env").write_text(env_text)
    return root


def test_project_root_is_found_from_nested_package(tmp_path: Path):
    root = make_project(tmp_path / "engine")
    nested = root / "intelligence" / "sub"
    nested.mkdir(parents=True)

    assert _find_project_root(start=nested) == root


def test_missing_env_file_loads_nothing(tmp_path: Path):
    root = make_project(tmp_path / "no_env")
    with patch("utils.env.load_dotenv") as mock_load_dotenv:
        assert load_project_dotenv(start=root) is False
    mock_load_dotenv.assert_not_called()


def test_env_file_fills_unset_variables_only(tmp_path: Path, monkeypatch):
    root = make_project(tmp_path / "with_env", "CI_RETRY_BUDGET=5\nCI_OBSERVATION_CAP=10\n")
    monkeypatch.setenv("CI_RETRY_BUDGET", "1")
    monkeypatch.delenv("CI_OBSERVATION_CAP", raising=False)

    assert load_project_dotenv(start=root)

    assert os.environ["CI_RETRY_BUDGET"] == "1"
    assert os.environ["CI_OBSERVATION_CAP"] == "10"
    os.environ.pop("CI_OBSERVATION_CAP")


def test_env_flag_truthy_values(monkeypatch):
    for value in ("1", "true", "YES", " on "):
        monkeypatch.setenv("CI_TEST_FLAG", value)
        assert env_flag("CI_TEST_FLAG")


def test_env_flag_falsy_and_default(monkeypatch):
    monkeypatch.setenv("CI_TEST_FLAG", "off")
    assert not env_flag("CI_TEST_FLAG", default=True)

    monkeypatch.setenv("CI_TEST_FLAG", "  ")
    assert env_flag("CI_TEST_FLAG", default=True)

    monkeypatch.delenv("CI_TEST_FLAG")
    assert not env_flag("CI_TEST_FLAG")
