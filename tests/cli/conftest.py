"""Shared fixtures for CLI tests."""

from argparse import Namespace

import pytest
from git import Repo

from tickboard.config import load_settings, write_git_config_key
from tickboard.storage import load_workspace, save_workspace


@pytest.fixture
def empty_repo(tmp_path):
    """Create an empty git repo."""
    Repo.init(tmp_path)
    return tmp_path


@pytest.fixture
def workspace(empty_repo, service):
    """A repo holding the shared sample workspace, acting as alice (u2)."""
    save_workspace(load_settings(empty_repo).data_path, service)
    write_git_config_key(empty_repo, "tickboard", "user", "u2")
    return empty_repo


@pytest.fixture
def reload(workspace):
    """Read the workspace back from disk."""

    def _reload():
        return load_workspace(load_settings(workspace).data_path)

    return _reload


@pytest.fixture
def make_args(workspace):
    """Build a Namespace with the common flags filled in."""

    def _make(**kwargs):
        values = {"repo": str(workspace), "json": False, "as_user": None}
        values.update(kwargs)
        return Namespace(**values)

    return _make
