"""
Application layer: Identity session lifecycle.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from earlybadge.client.domain.entities import Identity, Session, SessionStatus
from earlybadge.common.exceptions import (
    AuthenticationDenied,
    AuthenticationPending,
    NotAuthenticated,
)

if TYPE_CHECKING:
    from earlybadge.client.application.channel_cache import ChannelCache
    from earlybadge.common.interfaces import IIdentityProvider

logger = logging.getLogger(__name__)


class IdentitySessionManager:
    """Owns the session state; the only component that invalidates the channel cache."""

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        channel_cache: ChannelCache,
    ):
        self.identity_provider = identity_provider
        self._channel_cache = channel_cache
        self._status = SessionStatus.LOGGED_OUT
        self._identity: Identity | None = None

    @property
    def session(self) -> Session:
        self._expire_if_lapsed()
        return Session(status=self._status, identity=self._identity)

    def is_authenticated(self) -> bool:
        """Check whether a login has completed and its delegation is still valid.

        Never touches the network.
        """
        self._expire_if_lapsed()
        return self._status is SessionStatus.LOGGED_IN

    def is_pending(self) -> bool:
        return self._status is SessionStatus.AUTHENTICATING

    def current_identity(self) -> Identity:
        self._expire_if_lapsed()
        if self._status is SessionStatus.AUTHENTICATING:
            raise AuthenticationPending
        if self._identity is None:
            raise NotAuthenticated
        return self._identity

    def read_identity(self) -> Identity:
        """Identity for public reads: the session's if logged in, else anonymous."""
        self._expire_if_lapsed()
        if self._status is SessionStatus.LOGGED_IN and self._identity is not None:
            return self._identity
        return Identity.anonymous()

    def login(self) -> Session:
        """Drive the identity provider round trip to a logged in session."""
        self._expire_if_lapsed()
        if self._status is SessionStatus.LOGGED_IN:
            return self.session
        if self._status is SessionStatus.AUTHENTICATING:
            raise AuthenticationPending

        self._status = SessionStatus.AUTHENTICATING
        logger.info("Starting login...")
        try:
            identity = self.identity_provider.authenticate()
        except AuthenticationDenied as e:
            self._status = SessionStatus.LOGGED_OUT
            logger.warning("Login denied: %s", e.reason)
            raise
        except Exception:
            self._status = SessionStatus.LOGGED_OUT
            logger.exception("Login failed")
            raise

        if identity.is_anonymous:
            self._status = SessionStatus.LOGGED_OUT
            msg = "identity provider returned an anonymous identity"
            raise AuthenticationDenied(msg)

        self._identity = identity
        self._status = SessionStatus.LOGGED_IN
        self._channel_cache.invalidate()
        logger.info("Logged in as %s", identity.principal)
        return self.session

    def logout(self) -> None:
        """Return to the logged out state from any state."""
        principal = self._identity.principal if self._identity else None
        self.identity_provider.logout()
        self._identity = None
        self._status = SessionStatus.LOGGED_OUT
        self._channel_cache.invalidate()
        if principal is not None:
            logger.info("Logged out %s", principal)

    def _expire_if_lapsed(self) -> None:
        """Fall back to logged out once the session's delegation has expired."""
        identity = self._identity
        if (
            self._status is not SessionStatus.LOGGED_IN
            or identity is None
            or not identity.is_expired(time.time_ns())
        ):
            return
        logger.info("Delegation for %s expired, logging out", identity.principal)
        self.identity_provider.logout()
        self._identity = None
        self._status = SessionStatus.LOGGED_OUT
        self._channel_cache.invalidate()
