"""Tests for environment-driven settings."""

from pathlib import Path

from sensei.utils.settings import DEFAULT_INSTRUCTIONS_PROMPT, DEFAULT_SERVER_NAME, Settings


def test_defaults_from_empty_environment():
    settings = Settings.from_env(env={})

    assert settings.log_level is None
    assert settings.instructions_prompt == DEFAULT_INSTRUCTIONS_PROMPT
    assert settings.server_name == DEFAULT_SERVER_NAME
    assert settings.prompts_dir.name == "prompts"
    assert settings.resources_dir.name == "resources"


def test_values_from_environment(tmp_path):
    env = {
        "LOG_LEVEL": "debug",
        "SENSEI_PROMPTS_DIR": str(tmp_path / "p"),
        "SENSEI_RESOURCES_DIR": str(tmp_path / "r"),
        "SENSEI_INSTRUCTIONS_PROMPT": "guide",
        "SENSEI_SERVER_NAME": "Dojo",
    }

    settings = Settings.from_env(env=env)

    assert settings.log_level == "debug"
    assert settings.prompts_dir == tmp_path / "p"
    assert settings.resources_dir == tmp_path / "r"
    assert settings.instructions_prompt == "guide"
    assert settings.server_name == "Dojo"


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("SENSEI_SERVER_NAME=FromDotenv\nLOG_LEVEL=warn\n",
                                   encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SENSEI_SERVER_NAME", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "error")

    settings = Settings.from_env()

    assert settings.server_name == "FromDotenv"
    # Values already in the environment win over the .env file.
    assert settings.log_level == "error"


def test_empty_values_keep_defaults():
    settings = Settings.from_env(env={"SENSEI_PROMPTS_DIR": "", "LOG_LEVEL": ""})

    assert settings.log_level is None
    assert isinstance(settings.prompts_dir, Path)
