import importlib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from convotree import __version__
from convotree.config import Settings, load_settings

cli_module = importlib.import_module("convotree.cli")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("CONVOTREE_TELEGRAM_TOKEN", "CONVOTREE_DEFAULT_LANGUAGE", "CONVOTREE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli_module, "configure_logging", lambda **_kwargs: None)


def test_version_command() -> None:
    result = CliRunner().invoke(cli_module.app, ["version"])

    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_run_without_token_exits_with_error() -> None:
    result = CliRunner().invoke(cli_module.app, ["run"])

    assert result.exit_code == 1
    assert "CONVOTREE_TELEGRAM_TOKEN is not set" in result.output


def test_run_passes_options_to_serve(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    async def _serve(settings: Settings, *, seed: bool = False) -> None:
        captured["settings"] = settings
        captured["seed"] = seed

    monkeypatch.setattr(cli_module, "serve", _serve)

    result = CliRunner().invoke(cli_module.app, ["run", "--token", "abc", "-l", "ar", "--seed"])

    assert result.exit_code == 0
    settings = captured["settings"]
    assert isinstance(settings, Settings)
    assert settings.telegram_token == "abc"  # noqa: S105
    assert settings.default_language == "ar"
    assert captured["seed"] is True


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONVOTREE_TELEGRAM_TOKEN", "from-env")
    monkeypatch.setenv("CONVOTREE_RESTART_COMMAND", "/reset")

    settings = load_settings(telegram_token=None, log_level="debug")

    assert settings.telegram_token == "from-env"  # noqa: S105
    assert settings.restart_command == "/reset"
    assert settings.log_level == "debug"
