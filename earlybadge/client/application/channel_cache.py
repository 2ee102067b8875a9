"""
Application layer: Cache holding the single live channel.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from earlybadge.client.domain.entities import Identity
    from earlybadge.client.infrastructure.channel import Channel
    from earlybadge.common.interfaces import IChannelFactory

logger = logging.getLogger(__name__)


class ChannelCache:
    """Holds at most one channel; a different identity evicts it."""

    def __init__(self, channel_factory: IChannelFactory):
        self.channel_factory = channel_factory
        self._channel: Channel | None = None

    @property
    def current(self) -> Channel | None:
        return self._channel

    def get_or_create(self, identity: Identity) -> Channel:
        """Return the live channel when bound to identity, else replace it."""
        if self._channel is not None and self._channel.identity == identity:
            return self._channel
        if self._channel is not None:
            logger.debug("Evicting channel bound to %s", self._channel.identity.principal)
        self._channel = self.channel_factory.create_channel(identity)
        return self._channel

    def invalidate(self) -> None:
        """Drop the cached channel, whether or not one exists."""
        if self._channel is not None:
            logger.debug("Invalidating channel bound to %s", self._channel.identity.principal)
        self._channel = None
