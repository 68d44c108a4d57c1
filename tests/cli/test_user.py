"""Tests for 'tickboard user' commands."""

import json

import pytest

from tickboard.cli.user import user_add, user_delete, user_list
from tickboard.models import Role


def test_user_list(make_args, capsys):
    assert user_list(make_args()) == 0
    out = capsys.readouterr().out
    assert "u1  admin  <admin@example.com>  (admin)" in out
    assert "u2  alice  <alice@example.com>" in out


def test_user_list_json(make_args, capsys):
    user_list(make_args(json=True))
    data = json.loads(capsys.readouterr().out)
    assert [u["username"] for u in data] == ["admin", "alice", "bob"]


def test_add_user_as_admin(make_args, reload, capsys):
    assert user_add(make_args(as_user="admin", username="carol", email="", admin=False)) == 0
    assert "Created user u4 (carol)" in capsys.readouterr().out
    assert reload().get_user("u4").role == Role.USER


def test_add_admin_user(make_args, reload, capsys):
    user_add(make_args(as_user="admin", username="dave", email="dave@example.com", admin=True))
    assert reload().find_user("dave").role == Role.ADMIN


def test_add_user_requires_admin(make_args, reload, capsys):
    with pytest.raises(SystemExit):
        user_add(make_args(username="carol", email="", admin=False))
    assert "Only administrators can manage users." in capsys.readouterr().err
    assert reload().find_user("carol") is None


def test_add_duplicate_user(make_args, capsys):
    with pytest.raises(SystemExit):
        user_add(make_args(as_user="admin", username="alice", email="", admin=False))
    assert "already taken" in capsys.readouterr().err


def test_delete_user(make_args, reload, capsys):
    assert user_delete(make_args(as_user="admin", id="bob")) == 0
    assert "Deleted user u3 (bob)" in capsys.readouterr().out
    service = reload()
    assert service.find_user("bob") is None
    assert service.get_ticket("1").assignee_id is None


def test_cannot_delete_self(make_args, capsys):
    with pytest.raises(SystemExit):
        user_delete(make_args(as_user="admin", id="u1"))
    assert "cannot delete your own account" in capsys.readouterr().err
