"""
Configuration — credential file and model catalogue.

The config file is a JSON object with a single recognized field::

    {"token": "sk-..."}

It lives at ``~/.what.config.json`` unless an explicit path is given. A
missing file is created empty and the run stops so the operator can fill
it in. A credential found in the environment takes precedence.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .environment import Environment
from .errors import ConfigurationError
from .logger import get_logger

_log = get_logger(__name__)

DEFAULT_CONFIG_NAME = ".what.config.json"
COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"

MODELS = ("gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo")
DEFAULT_MODEL = "gpt-3.5-turbo"


@dataclass
class Configuration:
    token: str
    source: str = ""

    @classmethod
    def load(cls, env: Environment,
             path_hint: Union[str, Path, None] = None) -> "Configuration":
        path = resolve_config_path(env, path_hint)
        if not path.exists():
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.touch()
            except OSError as e:
                raise ConfigurationError(
                    f"couldn't create config file at {path}: {e}") from e
            _log.warning("created empty config file at %s", path)
            raise ConfigurationError(
                f"couldn't find configuration file at {path}, an empty one was "
                f'created; fill it with {{"token": "<api key>"}}')

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"couldn't read config file at {path}: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"invalid JSON in config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"config file {path} must contain a JSON object")
        token = data.get("token")
        if not isinstance(token, str) or not token.strip():
            raise ConfigurationError(f"config file {path} has no `token` field")
        return cls(token=token.strip(), source=str(path))


def resolve_config_path(env: Environment,
                        path_hint: Union[str, Path, None] = None) -> Path:
    """Return the explicit path when given, else the dotfile in ``$HOME``."""
    if path_hint:
        return Path(path_hint).expanduser()
    return env.require_home() / DEFAULT_CONFIG_NAME


def resolve_token(env: Environment,
                  path_hint: Union[str, Path, None] = None) -> str:
    """Single credential source: environment first, then the config file."""
    if env.token and not path_hint:
        _log.info("using credential from environment")
        return env.token
    config = Configuration.load(env, path_hint)
    _log.info("using credential from %s", config.source)
    return config.token


def normalize_model(model: Optional[str]) -> str:
    if not model:
        return DEFAULT_MODEL
    value = model.strip().lower()
    if value not in MODELS:
        raise ConfigurationError(
            f"unknown model `{model}`, expected one of: {', '.join(MODELS)}")
    return value
