""" Server settings read from the environment, with .env support via python-dotenv."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import dotenv

from sensei.utils.log_utils import get_logger

logger = get_logger(__name__)

# Content shipped next to the package (repository checkout).
_PACKAGE_ROOT = Path(__file__).resolve().parents[3]

ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_PROMPTS_DIR = "SENSEI_PROMPTS_DIR"
ENV_RESOURCES_DIR = "SENSEI_RESOURCES_DIR"
ENV_INSTRUCTIONS_PROMPT = "SENSEI_INSTRUCTIONS_PROMPT"
ENV_SERVER_NAME = "SENSEI_SERVER_NAME"

DEFAULT_SERVER_NAME = "Sensei"
DEFAULT_INSTRUCTIONS_PROMPT = "sensei"


def default_content_dir(name: str, cwd: Optional[Path] = None) -> Path:
    """ The packaged `name` directory if there is one, else `name` under the working directory."""
    packaged = _PACKAGE_ROOT / name
    if packaged.is_dir():
        return packaged
    return (cwd or Path.cwd()) / name


@dataclass
class Settings:
    """Everything the server needs to start."""
    prompts_dir: Path = field(default_factory=lambda: default_content_dir("prompts"))
    resources_dir: Path = field(default_factory=lambda: default_content_dir("resources"))
    log_level: Optional[str] = None
    instructions_prompt: str = DEFAULT_INSTRUCTIONS_PROMPT
    server_name: str = DEFAULT_SERVER_NAME

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None,
                 env_file: str = ".env") -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env (Mapping[str, str]): Variables to read. Defaults to os.environ after
                loading `env_file` (values already in the environment win).
            env_file (str): Name of the dotenv file searched from the working directory.

        Returns:
            Settings: Unset variables keep their defaults.
        """
        if env is None:
            keys_path = dotenv.find_dotenv(env_file, usecwd=True)
            if keys_path:
                dotenv.load_dotenv(keys_path, override=False)
                logger.debug("Loaded settings from %s", keys_path)
            env = os.environ

        settings = cls()
        if env.get(ENV_PROMPTS_DIR):
            settings.prompts_dir = Path(env[ENV_PROMPTS_DIR]).expanduser()
        if env.get(ENV_RESOURCES_DIR):
            settings.resources_dir = Path(env[ENV_RESOURCES_DIR]).expanduser()
        if env.get(ENV_LOG_LEVEL):
            settings.log_level = env[ENV_LOG_LEVEL]
        if env.get(ENV_INSTRUCTIONS_PROMPT):
            settings.instructions_prompt = env[ENV_INSTRUCTIONS_PROMPT]
        if env.get(ENV_SERVER_NAME):
            settings.server_name = env[ENV_SERVER_NAME]
        return settings
