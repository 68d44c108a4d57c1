"""Tests for the client-side permission predicates and their agreement with the service."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tickboard.errors import TicketForbiddenError, UnauthorizedError
from tickboard.models import Role, TicketStatus, TicketSummary, TicketType, UserContext
from tickboard.permissions import can_assign, can_mutate
from tickboard.service import TicketService


def _card(reporter_id="u2", assignee_id=None):
    return TicketSummary("1", "Title", TicketType.TASK, reporter_id=reporter_id, assignee_id=assignee_id)


def test_absent_user_may_do_nothing():
    assert not can_mutate(None, _card())
    assert not can_assign(None, _card(), None)


def test_admin_may_mutate_anything():
    admin = UserContext("u1", Role.ADMIN)
    assert can_mutate(admin, _card(reporter_id=None, assignee_id=None))
    assert can_assign(admin, _card(), "u9")


def test_reporter_and_assignee_may_mutate():
    assert can_mutate(UserContext("u2"), _card(reporter_id="u2"))
    assert can_mutate(UserContext("u3"), _card(reporter_id="u2", assignee_id="u3"))


def test_bystander_may_not_mutate():
    assert not can_mutate(UserContext("u4"), _card(reporter_id="u2", assignee_id="u3"))


def test_user_may_self_assign():
    assert can_assign(UserContext("u4"), _card(), "u4")


def test_user_may_not_assign_someone_else():
    assert not can_assign(UserContext("u2"), _card(reporter_id="u2"), "u3")


def test_user_may_unassign_only_themselves():
    assert can_assign(UserContext("u3"), _card(assignee_id="u3"), None)
    assert not can_assign(UserContext("u2"), _card(reporter_id="u2", assignee_id="u3"), None)


def test_user_ids_are_never_none_matches():
    """A reporter-less ticket does not match anyone by accident."""
    assert not can_mutate(UserContext("u2"), _card(reporter_id=None, assignee_id=None))


@pytest.mark.parametrize("role", list(Role))
def test_predicates_are_pure(role):
    user = UserContext("u2", role)
    card = _card()
    assert can_mutate(user, card) == can_mutate(user, card)
    assert card == _card()


USER_IDS = ["u1", "u2", "u3", "u4"]


def _service_with(reporter_id, assignee_id, actor_role):
    """A service where u1 has actor_role and u2..u4 are plain users."""
    service = TicketService()
    service.add_user("one", role=actor_role)
    for name in ("two", "three", "four"):
        service.add_user(name)
    ticket = service.create_ticket("T", reporter_id or "u1", assignee_id=assignee_id)
    if reporter_id is None:
        service.repository.tickets[ticket.id].reporter_id = None
    return service, ticket.id


@settings(max_examples=150, deadline=None)
@given(
    reporter_id=st.sampled_from([None, *USER_IDS]),
    assignee_id=st.sampled_from([None, *USER_IDS]),
    actor=st.sampled_from(USER_IDS),
    actor_role=st.sampled_from(list(Role)),
    status=st.sampled_from(list(TicketStatus)),
)
def test_status_permission_matches_service(reporter_id, assignee_id, actor, actor_role, status):
    """The oracle allows a status change exactly when the service accepts it."""
    service, ticket_id = _service_with(reporter_id, assignee_id, actor_role)
    role = actor_role if actor == "u1" else Role.USER
    allowed = can_mutate(UserContext(actor, role), service.get_ticket(ticket_id))
    try:
        service.update_status(ticket_id, status, actor)
        accepted = True
    except (TicketForbiddenError, UnauthorizedError):
        accepted = False
    assert allowed == accepted


@settings(max_examples=150, deadline=None)
@given(
    reporter_id=st.sampled_from([None, *USER_IDS]),
    assignee_id=st.sampled_from([None, *USER_IDS]),
    actor=st.sampled_from(USER_IDS),
    actor_role=st.sampled_from(list(Role)),
    new_assignee=st.sampled_from([None, *USER_IDS]),
)
def test_assign_permission_matches_service(reporter_id, assignee_id, actor, actor_role, new_assignee):
    """The oracle allows an assignment exactly when the service accepts it."""
    service, ticket_id = _service_with(reporter_id, assignee_id, actor_role)
    role = actor_role if actor == "u1" else Role.USER
    allowed = can_assign(UserContext(actor, role), service.get_ticket(ticket_id), new_assignee)
    try:
        service.update_assignee(ticket_id, new_assignee, actor)
        accepted = True
    except (TicketForbiddenError, UnauthorizedError):
        accepted = False
    assert allowed == accepted
