from __future__ import annotations

from types import SimpleNamespace

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from earlybadge.client.application.channel_cache import ChannelCache
from earlybadge.client.domain.entities import Identity


class StubFactory:
    def __init__(self) -> None:
        self.created: list[Identity] = []

    def create_channel(self, identity: Identity | None = None) -> SimpleNamespace:
        identity = identity or Identity.anonymous()
        self.created.append(identity)
        return SimpleNamespace(identity=identity)


def test_same_identity_reuses_channel() -> None:
    factory = StubFactory()
    cache = ChannelCache(factory)
    identity = Identity.anonymous()

    first = cache.get_or_create(identity)
    second = cache.get_or_create(Identity.anonymous())

    assert first is second
    assert len(factory.created) == 1


def test_different_identity_evicts_channel() -> None:
    """Test at most one channel exists and it matches the requested identity."""
    factory = StubFactory()
    cache = ChannelCache(factory)
    user = Identity.from_private_key(Ed25519PrivateKey.generate())

    anonymous_channel = cache.get_or_create(Identity.anonymous())
    user_channel = cache.get_or_create(user)

    assert user_channel is not anonymous_channel
    assert cache.current is user_channel
    assert user_channel.identity == user


def test_invalidate() -> None:
    factory = StubFactory()
    cache = ChannelCache(factory)
    cache.invalidate()
    first = cache.get_or_create(Identity.anonymous())
    cache.invalidate()
    assert cache.current is None
    assert cache.get_or_create(Identity.anonymous()) is not first
    assert len(factory.created) == 2  # noqa: PLR2004
