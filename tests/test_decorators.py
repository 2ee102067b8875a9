from __future__ import annotations

import pytest

from earlybadge.common.decorators import requires_session
from earlybadge.common.exceptions import AuthenticationPending, NotAuthenticated


class FakeManager:
    def __init__(self, *, authenticated: bool = False, pending: bool = False) -> None:
        self.authenticated = authenticated
        self.pending = pending

    def is_authenticated(self) -> bool:
        return self.authenticated

    def is_pending(self) -> bool:
        return self.pending


class Service:
    def __init__(self, manager: FakeManager) -> None:
        self.session_manager = manager
        self.calls = 0

    @requires_session()
    def act(self) -> str:
        self.calls += 1
        return "done"

    @requires_session(error_message="Login first")
    def act_with_message(self) -> None:
        self.calls += 1


def test_runs_with_session() -> None:
    service = Service(FakeManager(authenticated=True))
    assert service.act() == "done"
    assert service.calls == 1


def test_refuses_without_session() -> None:
    service = Service(FakeManager())
    with pytest.raises(NotAuthenticated, match="User is not authenticated"):
        service.act()
    with pytest.raises(NotAuthenticated, match="Login first"):
        service.act_with_message()
    assert service.calls == 0


def test_refuses_while_pending() -> None:
    service = Service(FakeManager(pending=True))
    with pytest.raises(AuthenticationPending):
        service.act()
    assert service.calls == 0


def test_manager_instance_or_callable() -> None:
    manager = FakeManager(authenticated=True)

    @requires_session(manager)
    def direct() -> int:
        return 1

    @requires_session(lambda: manager)
    def deferred() -> int:
        return 2

    assert direct() == 1
    assert deferred() == 2  # noqa: PLR2004


def test_attribute_lookup_needs_self() -> None:
    @requires_session()
    def free_function() -> None:
        pass

    with pytest.raises(ValueError, match="without self"):
        free_function()
