import json
from pathlib import Path

from typer.testing import CliRunner

from polymeta.cli import app

runner = CliRunner()


def _invoke(dsn: str, *args: str):
    return runner.invoke(app, ["--dsn", dsn, *args])


def test_set_get_list_delete(tmp_path: Path) -> None:
    dsn = f"sqlite:///{tmp_path / 'cli.db'}"

    result = _invoke(dsn, "set", "user", "1", "color", '"red"')
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["value"] == "red"

    assert _invoke(dsn, "set", "user", "1", "tags", '["a", "b"]').exit_code == 0
    assert _invoke(dsn, "set", "user", "1", "nickname", "bobby").exit_code == 0

    result = _invoke(dsn, "get", "user", "1", "tags")
    assert json.loads(result.stdout) == ["a", "b"]

    result = _invoke(dsn, "get", "user", "1", "missing", "--default", '"fallback"')
    assert json.loads(result.stdout) == "fallback"

    result = _invoke(dsn, "list", "user", "1", "--key", "color", "--key", "nickname")
    assert json.loads(result.stdout) == {"color": "red", "nickname": "bobby"}

    result = _invoke(dsn, "delete", "user", "1", "color", "tags")
    assert json.loads(result.stdout) == {"deleted": 2}

    result = _invoke(dsn, "delete", "user", "1", "--all")
    assert json.loads(result.stdout) == {"deleted": 1}


def test_find(tmp_path: Path) -> None:
    dsn = f"sqlite:///{tmp_path / 'cli.db'}"
    _invoke(dsn, "set", "user", "1", "color", '"red"')
    _invoke(dsn, "set", "user", "2", "color", '"blue"')
    _invoke(dsn, "set", "user", "3", "color", '"green"')

    result = _invoke(dsn, "find", "user", "--where", "color=red", "--or-where", "color=green")
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == ["1", "3"]

    result = _invoke(dsn, "find", "user", "--where", "color=%re%", "--operator", "like")
    assert json.loads(result.stdout) == ["1", "3"]


def test_find_rejects_bad_input(tmp_path: Path) -> None:
    dsn = f"sqlite:///{tmp_path / 'cli.db'}"

    assert _invoke(dsn, "find", "user", "--where", "color").exit_code != 0
    assert _invoke(dsn, "find", "user", "--where", "color=red", "--operator", "~").exit_code != 0


def test_delete_requires_keys_or_all(tmp_path: Path) -> None:
    result = _invoke(f"sqlite:///{tmp_path / 'cli.db'}", "delete", "user", "1")

    assert result.exit_code != 0


def test_health_uses_inmemory_by_default() -> None:
    result = runner.invoke(app, ["health"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["ok"] is True
    assert data["db"]["provider"] == "inmemory"
