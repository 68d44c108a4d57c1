"""Settings stored in the git config [tickboard] section."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

from tickboard.models import Profile

logger = logging.getLogger(__name__)

SECTION = "tickboard"

TICKBOARD_DEFAULTS = {
    "request-timeout": 10.0,
    "data-file": ".tickboard.json",
    "user": "",
    "drag-threshold": 2,
    "keyboard-step": 26,
}


def _python_key(git_key: str) -> str:
    """Convert git-style key (hyphenated) to Python-style (underscored)."""
    return git_key.replace("-", "_")


def _git_key(python_key: str) -> str:
    """Convert Python-style key (underscored) to git-style (hyphenated)."""
    return python_key.replace("_", "-")


def _coerce_value(git_key: str, raw: str):
    """Type-coerce [tickboard] values using the type of their default."""
    default = TICKBOARD_DEFAULTS.get(git_key)
    if default is None:
        return raw
    if isinstance(default, bool):
        return raw.lower() in ("true", "yes", "1")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


@dataclass(frozen=True)
class Settings:
    repo_path: Path
    request_timeout: float = 10.0
    data_file: str = ".tickboard.json"
    user: str = ""
    user_email: str = ""
    drag_threshold: int = 2
    keyboard_step: int = 26

    @property
    def data_path(self) -> Path:
        path = Path(self.data_file)
        return path if path.is_absolute() else self.repo_path / path


def _get_repo(repo_path: str | Path) -> Repo:
    return Repo(repo_path, search_parent_directories=True)


def is_git_repo(path: str | Path) -> bool:
    """Check if path is inside a git repository."""
    try:
        _get_repo(path)
        return True
    except (InvalidGitRepositoryError, NoSuchPathError):
        return False


def init_repo(path: str | Path) -> Repo:
    """Initialize a new git repository at path."""
    return Repo.init(path)


def read_git_config(repo_path: str | Path) -> dict[str, dict[str, Any]]:
    """Read git config into {section: {key: value}} dict.

    Skips subsectioned entries (e.g. remote "origin"). Converts key hyphens
    to underscores, coerces the [tickboard] section and merges its defaults
    for missing keys. A path outside any git repository gives just the
    defaults.
    """
    result: dict[str, dict[str, Any]] = {}
    try:
        reader = _get_repo(repo_path).config_reader()
    except (InvalidGitRepositoryError, NoSuchPathError):
        logger.debug("%s is not a git repository, using default settings", repo_path)
    else:
        for section in reader.sections():
            if '"' in section:
                continue
            items: dict[str, Any] = {}
            for git_k, raw in reader.items(section):
                py_key = _python_key(git_k)
                if section == SECTION:
                    try:
                        items[py_key] = _coerce_value(git_k, raw)
                    except ValueError:
                        logger.warning("ignoring invalid %s.%s value %r", SECTION, git_k, raw)
                else:
                    items[py_key] = raw
            result[section] = items
    tickboard = result.setdefault(SECTION, {})
    for git_k, default in TICKBOARD_DEFAULTS.items():
        tickboard.setdefault(_python_key(git_k), default)
    return result


def write_git_config_key(repo_path: str | Path, section: str, key: str, value) -> None:
    """Write one key to the repository git config. key is python-style."""
    writer = _get_repo(repo_path).config_writer("repository")
    if isinstance(value, bool):
        writer.set_value(section, _git_key(key), str(value).lower())
    else:
        writer.set_value(section, _git_key(key), str(value))
    writer.release()


def load_settings(repo_path: str | Path) -> Settings:
    repo_path = Path(repo_path).resolve()
    config = read_git_config(repo_path)
    tb = config[SECTION]
    return Settings(
        repo_path=repo_path,
        request_timeout=tb["request_timeout"],
        data_file=tb["data_file"],
        user=tb["user"],
        user_email=config.get("user", {}).get("email", ""),
        drag_threshold=tb["drag_threshold"],
        keyboard_step=tb["keyboard_step"],
    )


def resolve_acting_user(settings: Settings, service, override: str | None = None) -> Profile | None:
    """Find the acting user's profile.

    Tries the explicit override, then tickboard.user, then the git
    user.email. Each is matched against id, username and email.
    """
    for key in (override, settings.user, settings.user_email):
        if not key:
            continue
        profile = service.find_user(key)
        if profile is not None:
            return profile
        if key is override:
            return None
    return None
