from __future__ import annotations

from pathlib import Path

import pytest

from mobiledoc_md import config as cfg


def _write_config(path: Path, body: str) -> Path:
    path.write_text(body.strip() + "\n", encoding="utf-8")
    return path


def test_load_config_defaults():
    result = cfg.load_config(env={})

    assert result.config_path is None
    assert result.config.options.use_figure is False
    assert result.config.options.escape_markdown is False
    assert result.config.log_level == "WARNING"
    assert result.config.log_file is None


def test_load_config_reads_config_file(tmp_path):
    config_file = _write_config(
        tmp_path / "mobiledoc-md.toml",
        """
        [render]
        use_figure = true
        escape_markdown = true

        [logging]
        level = "debug"
        file = "logs/run.log"
        """,
    )

    result = cfg.load_config(config_path=config_file, env={})

    assert result.config_path == config_file
    assert result.config.options.use_figure is True
    assert result.config.options.escape_markdown is True
    assert result.config.log_level == "DEBUG"
    assert result.config.log_file == Path("logs/run.log")


def test_load_config_env_overrides_file(tmp_path):
    config_file = _write_config(
        tmp_path / "config.toml",
        """
        [render]
        use_figure = true

        [logging]
        level = "info"
        """,
    )
    env = {
        cfg.CONFIG_ENV: str(config_file),
        "MOBILEDOC_MD_USE_FIGURE": "no",
        "MOBILEDOC_MD_ESCAPE_MARKDOWN": "ON",
        "MOBILEDOC_MD_LOG_LEVEL": "error",
        "MOBILEDOC_MD_LOG_FILE": str(tmp_path / "env.log"),
    }

    result = cfg.load_config(env=env)

    assert result.config_path == config_file
    assert result.config.options.use_figure is False
    assert result.config.options.escape_markdown is True
    assert result.config.log_level == "ERROR"
    assert result.config.log_file == tmp_path / "env.log"


def test_load_config_cli_overrides_env():
    env = {
        "MOBILEDOC_MD_USE_FIGURE": "0",
        "MOBILEDOC_MD_LOG_LEVEL": "error",
    }
    overrides = cfg.ConfigOverrides(
        use_figure=True,
        escape_markdown=False,
        log_level="debug",
        log_file=Path("cli.log"),
    )

    result = cfg.load_config(overrides=overrides, env=env)

    assert result.config.options.use_figure is True
    assert result.config.options.escape_markdown is False
    assert result.config.log_level == "DEBUG"
    assert result.config.log_file == Path("cli.log")


def test_load_config_missing_file_errors(tmp_path):
    with pytest.raises(cfg.ConfigError, match="Config file not found"):
        cfg.load_config(config_path=tmp_path / "missing.toml", env={})


def test_load_config_rejects_unknown_keys(tmp_path):
    config_file = _write_config(
        tmp_path / "config.toml",
        """
        [render]
        use_figures = true
        """,
    )

    with pytest.raises(cfg.ConfigError, match="render.use_figures"):
        cfg.load_config(config_path=config_file, env={})


def test_load_config_rejects_invalid_toml(tmp_path):
    config_file = _write_config(tmp_path / "config.toml", "[render")

    with pytest.raises(cfg.ConfigError, match="Failed to parse config TOML"):
        cfg.load_config(config_path=config_file, env={})


def test_load_config_rejects_non_boolean_file_value(tmp_path):
    config_file = _write_config(
        tmp_path / "config.toml",
        """
        [render]
        use_figure = "yes"
        """,
    )

    with pytest.raises(cfg.ConfigError, match="render.use_figure must be a boolean"):
        cfg.load_config(config_path=config_file, env={})


def test_load_config_rejects_invalid_env_boolean():
    with pytest.raises(cfg.ConfigError, match="MOBILEDOC_MD_USE_FIGURE"):
        cfg.load_config(env={"MOBILEDOC_MD_USE_FIGURE": "maybe"})


def test_load_config_rejects_blank_log_level(tmp_path):
    config_file = _write_config(
        tmp_path / "config.toml",
        """
        [logging]
        level = "  "
        """,
    )

    with pytest.raises(cfg.ConfigError, match="non-empty"):
        cfg.load_config(config_path=config_file, env={})


def test_load_config_reads_dotenv_when_env_not_given(monkeypatch):
    monkeypatch.delenv("MOBILEDOC_MD_USE_FIGURE", raising=False)
    monkeypatch.delenv(cfg.CONFIG_ENV, raising=False)
    captured = {}

    def fake_load_dotenv(*args, **kwargs):
        captured["called"] = True
        monkeypatch.setenv("MOBILEDOC_MD_USE_FIGURE", "true")
        return True

    monkeypatch.setattr(cfg, "load_dotenv", fake_load_dotenv)

    result = cfg.load_config()

    assert captured == {"called": True}
    assert result.config.options.use_figure is True
