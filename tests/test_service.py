"""Tests for the authoritative ticket service."""

import threading

import pytest

from tickboard.errors import (
    TicketForbiddenError,
    TicketNotFoundError,
    TicketValidationError,
    UnauthorizedError,
)
from tickboard.models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, Role, TicketStatus, TicketType

# -- users --


def test_add_user_generates_ids(service):
    profile = service.add_user("carol", email="carol@example.com")
    assert profile.id == "u4"
    assert profile.role == Role.USER


def test_add_user_rejects_duplicate_username(service):
    with pytest.raises(TicketValidationError, match="already taken"):
        service.add_user("alice")


def test_add_user_rejects_blank_and_bad_role(service):
    with pytest.raises(TicketValidationError):
        service.add_user("   ")
    with pytest.raises(TicketValidationError, match="Invalid role"):
        service.add_user("carol", role="OWNER")


def test_find_user_by_id_username_or_email(service):
    assert service.find_user("u2").username == "alice"
    assert service.find_user("alice").id == "u2"
    assert service.find_user("bob@example.com").id == "u3"
    assert service.find_user("nobody") is None


def test_get_user_not_found(service):
    with pytest.raises(TicketNotFoundError):
        service.get_user("u99")


def test_returned_profiles_are_copies(service):
    service.get_user("u2").username = "mallory"
    assert service.get_user("u2").username == "alice"


def test_delete_user_clears_references(service):
    service.delete_user("u2")
    one = service.get_ticket("1")
    three = service.get_ticket("3")
    assert one.reporter_id is None
    assert one.reporter is None
    assert three.assignee_id is None
    assert [u.id for u in service.list_users()] == ["u1", "u3"]


@pytest.mark.parametrize(
    "read",
    [
        lambda s: s.get_user("u2"),
        lambda s: s.find_user("alice"),
        lambda s: s.list_users(),
    ],
)
def test_user_reads_wait_for_writers(service, read):
    done = threading.Event()

    def reader():
        read(service)
        done.set()

    with service.repository.lock:
        thread = threading.Thread(target=reader)
        thread.start()
        assert not done.wait(0.05)
    thread.join(timeout=5)
    assert done.is_set()


def test_delete_unknown_user(service):
    with pytest.raises(TicketNotFoundError):
        service.delete_user("u99")


# -- reads --


def test_get_ticket_joins_users(service):
    ticket = service.get_ticket("1")
    assert ticket.reporter.username == "alice"
    assert ticket.assignee.username == "bob"


def test_get_ticket_not_found(service):
    with pytest.raises(TicketNotFoundError, match="Ticket with ID '99' not found"):
        service.get_ticket("99")


def test_list_default_sort_newest_first(service):
    page = service.list_tickets()
    assert [t.id for t in page.tickets] == ["4", "3", "2", "1"]
    assert page.pagination.total == 4


def test_list_sort_ascending(service):
    page = service.list_tickets(sort="created_at asc")
    assert [t.id for t in page.tickets] == ["1", "2", "3", "4"]


def test_list_sort_by_title(service):
    page = service.list_tickets(sort="title asc")
    assert [t.title for t in page.tickets] == ["Dark mode", "Login fails", "Old cleanup", "Write docs"]


def test_list_filters(service):
    assert [t.id for t in service.list_tickets(status="OPEN").tickets] == ["2", "1"]
    assert [t.id for t in service.list_tickets(type="BUG").tickets] == ["1"]
    assert [t.id for t in service.list_tickets(assignee_id="u2").tickets] == ["3"]
    assert [t.id for t in service.list_tickets(reporter_id="u2").tickets] == ["3", "1"]


def test_list_pagination(service):
    page = service.list_tickets(offset=2, limit=2)
    assert [t.id for t in page.tickets] == ["2", "1"]
    assert page.pagination.total == 4
    assert page.pagination.page == 2


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0},
        {"limit": 101},
        {"offset": -1},
        {"sort": "password desc"},
        {"status": "DONE"},
        {"type": "EPIC"},
    ],
)
def test_list_rejects_bad_arguments(service, kwargs):
    with pytest.raises(TicketValidationError):
        service.list_tickets(**kwargs)


# -- create --


def test_create_ticket_starts_open(service):
    ticket = service.create_ticket("New", "u3", type="BUG")
    assert ticket.id == "5"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.type == TicketType.BUG
    assert ticket.reporter.username == "bob"
    assert ticket.created_at == ticket.updated_at


@pytest.mark.parametrize(
    "title, description",
    [
        ("", ""),
        ("   ", ""),
        ("x" * (TITLE_MAX_LENGTH + 1), ""),
        ("ok", "x" * (DESCRIPTION_MAX_LENGTH + 1)),
    ],
)
def test_create_ticket_validation(service, title, description):
    with pytest.raises(TicketValidationError):
        service.create_ticket(title, "u2", description=description)


def test_create_ticket_limits_are_inclusive(service):
    ticket = service.create_ticket("x" * TITLE_MAX_LENGTH, "u2", description="y" * DESCRIPTION_MAX_LENGTH)
    assert len(ticket.title) == TITLE_MAX_LENGTH


def test_create_ticket_unknown_reporter(service):
    with pytest.raises(UnauthorizedError):
        service.create_ticket("New", "u99")


def test_create_ticket_unknown_assignee(service):
    with pytest.raises(TicketValidationError, match="Assignee not found"):
        service.create_ticket("New", "u2", assignee_id="u99")


# -- status --


def test_reporter_can_change_status(service):
    ticket = service.update_status("1", TicketStatus.IN_PROGRESS, "u2")
    assert ticket.status == TicketStatus.IN_PROGRESS


def test_assignee_can_change_status(service):
    assert service.update_status("1", "CLOSED", "u3").status == TicketStatus.CLOSED


def test_admin_can_change_any_status(service):
    assert service.update_status("2", TicketStatus.CLOSED, "u1").status == TicketStatus.CLOSED


def test_bystander_cannot_change_status(service):
    with pytest.raises(TicketForbiddenError):
        service.update_status("2", TicketStatus.CLOSED, "u2")
    assert service.get_ticket("2").status == TicketStatus.OPEN


def test_same_status_is_a_successful_update(service):
    before = service.get_ticket("1").updated_at
    ticket = service.update_status("1", TicketStatus.OPEN, "u2")
    assert ticket.status == TicketStatus.OPEN
    assert ticket.updated_at > before


def test_any_status_may_follow_any_other(service):
    service.update_status("4", TicketStatus.OPEN, "u1")
    assert service.get_ticket("4").status == TicketStatus.OPEN


def test_status_check_order(service):
    """Invalid status is reported before a missing ticket, which is before a missing user."""
    with pytest.raises(TicketValidationError):
        service.update_status("99", "DONE", "u99")
    with pytest.raises(TicketNotFoundError):
        service.update_status("99", "OPEN", "u99")
    with pytest.raises(UnauthorizedError):
        service.update_status("1", "OPEN", "u99")


# -- assignee --


def test_self_assign(service):
    ticket = service.update_assignee("2", "u2", "u2")
    assert ticket.assignee.username == "alice"


def test_self_unassign(service):
    assert service.update_assignee("1", None, "u3").assignee_id is None


def test_user_cannot_assign_others(service):
    with pytest.raises(TicketForbiddenError):
        service.update_assignee("2", "u3", "u2")


def test_reporter_cannot_unassign_someone_else(service):
    with pytest.raises(TicketForbiddenError):
        service.update_assignee("1", None, "u2")


def test_admin_assigns_anyone(service):
    assert service.update_assignee("2", "u2", "u1").assignee_id == "u2"


def test_assign_unknown_user(service):
    with pytest.raises(TicketValidationError, match="Assignee not found"):
        service.update_assignee("2", "u99", "u1")


# -- edit and delete --


def test_update_ticket_fields(service):
    ticket = service.update_ticket("1", "u2", title="Login broken", type="IMPROVEMENT")
    assert ticket.title == "Login broken"
    assert ticket.type == TicketType.IMPROVEMENT
    assert ticket.description == "Cannot log in"


def test_update_ticket_forbidden(service):
    with pytest.raises(TicketForbiddenError):
        service.update_ticket("2", "u2", title="Mine now")


def test_delete_ticket_by_reporter(service):
    service.delete_ticket("2", "u3")
    with pytest.raises(TicketNotFoundError):
        service.get_ticket("2")


def test_assignee_cannot_delete(service):
    with pytest.raises(TicketForbiddenError):
        service.delete_ticket("1", "u3")


def test_admin_can_delete(service):
    service.delete_ticket("1", "u1")
    assert service.list_tickets().pagination.total == 3
