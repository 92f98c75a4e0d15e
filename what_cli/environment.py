"""
Every process-wide lookup the pipeline needs,
resolved once at startup and passed explicitly to each component.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import MissingEnvironmentError
from .logger import get_logger

_log = get_logger(__name__)

DOTENV_DIR = Path.home() / ".what"
TOKEN_ENV_VARS = ("OPENAI_TOKEN", "OPENAI_API_KEY")


def current_directory() -> Path:
    try:
        return Path.cwd()
    except OSError as e:
        raise MissingEnvironmentError(
            "current working directory", f"it was removed or is not accessible ({e})",
        ) from e


@dataclass(frozen=True)
class Environment:
    shell: Optional[str] = None
    home: Optional[Path] = None
    tmux: Optional[str] = None
    token: Optional[str] = None
    cwd: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_os(cls, environ: Optional[Mapping[str, str]] = None,
                load_env_files: bool = True) -> "Environment":
        """Snapshot the process environment.

        ``.env`` files in ``~/.what`` and the working directory are loaded
        first; variables already set in the process win.
        """
        cwd = current_directory()
        if environ is None:
            if load_env_files:
                for env_path in [DOTENV_DIR / ".env", cwd / ".env"]:
                    if env_path.exists():
                        load_dotenv(env_path, override=False)
            environ = os.environ

        token = None
        for name in TOKEN_ENV_VARS:
            value = (environ.get(name) or "").strip()
            if value:
                token = value
                break

        home = environ.get("HOME")
        env = cls(
            shell=environ.get("SHELL") or None,
            home=Path(home) if home else None,
            tmux=environ.get("TMUX") or None,
            token=token,
            cwd=cwd,
        )
        _log.info("environment: shell=%s tmux=%s token=%s",
                  env.shell or "-", "yes" if env.tmux else "no",
                  "env" if token else "config")
        return env

    @property
    def shell_name(self) -> str:
        """Executable basename of the configured shell."""
        return self.require_shell().rstrip("/").rsplit("/", 1)[-1]

    @property
    def in_tmux(self) -> bool:
        return bool(self.tmux)

    def require_shell(self) -> str:
        if not self.shell:
            raise MissingEnvironmentError(
                "`SHELL` env variable",
                "couldn't get the current shell from environment variable `SHELL`",
            )
        return self.shell

    def require_home(self) -> Path:
        if self.home is None:
            raise MissingEnvironmentError("`HOME` env variable", "`$HOME` env variable is not set")
        return self.home

    def require_tmux(self) -> str:
        if not self.tmux:
            raise MissingEnvironmentError("tmux session", "process must run inside TMUX")
        return self.tmux
