"""Session decorators for identity-scoped operations.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

from earlybadge.common.exceptions import AuthenticationPending, NotAuthenticated

logger = logging.getLogger(__name__)


def requires_session(
    session_manager: Any | Callable[[], Any] | str = "session_manager",
    error_message: str = "User is not authenticated",
) -> Callable:
    """Decorator that runs the function only while a session is logged in.

    Fails before the wrapped call, so no remote call is issued without a
    session.

    Args:
        session_manager: Session manager instance, callable returning one, or
            the attribute name holding it on ``self``
        error_message: Message carried by the NotAuthenticated failure

    Returns:
        Decorated function that only executes when a session is present
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if isinstance(session_manager, str):
                if not args:
                    msg = f"Cannot get session attribute '{session_manager}' without self"
                    raise ValueError(msg)
                manager = getattr(args[0], session_manager)
            elif callable(session_manager) and not hasattr(
                session_manager, "is_authenticated"
            ):
                manager = session_manager()
            else:
                manager = session_manager

            if not manager.is_authenticated():
                logger.debug("Refusing %s: no session", func.__name__)
                if manager.is_pending():
                    raise AuthenticationPending
                raise NotAuthenticated(error_message)
            return func(*args, **kwargs)

        return wrapper

    return decorator
