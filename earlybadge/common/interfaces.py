"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from earlybadge.client.domain.entities import Identity
    from earlybadge.client.infrastructure.channel import Channel


class IIdentityProvider(Protocol):
    """Protocol for identity providers driving the login round trip."""

    def authenticate(self) -> Identity: ...

    def logout(self) -> None: ...


class IChannelFactory(Protocol):
    """Protocol for building channels bound to one identity."""

    def create_channel(self, identity: Identity | None = None) -> Channel: ...
