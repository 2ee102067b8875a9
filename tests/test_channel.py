from __future__ import annotations

import pytest
import requests
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from earlybadge.client.domain.entities import DEFAULT_METHODS, Capabilities, Identity
from earlybadge.client.infrastructure.channel import ChannelFactory
from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.exceptions import (
    RegistryRejected,
    RegistryUnavailable,
    TrustRootUnavailable,
)
from earlybadge.server.core import DEFAULT_REGISTRY_ID
from earlybadge.server.registry import DESTINATION_INVALID


def _factory(
    http: requests.Session, url: str, *, production: bool = False, root_key=None
) -> ChannelFactory:
    return ChannelFactory(
        network_url=url,
        registry_id=DEFAULT_REGISTRY_ID,
        production=production,
        timeout=5,
        ingress_expiry=300,
        root_key=root_key,
        http=http,
    )


def _user() -> Identity:
    return Identity.from_private_key(Ed25519PrivateKey.generate())


def _raw(key) -> str:
    return CryptoUtils.public_key_raw_hex(key)


def test_local_channel_fetches_root_key(http, adapter, replica_url, root_key) -> None:
    """Test non-production channels bootstrap trust from the status endpoint."""
    channel = _factory(http, replica_url).create_channel()

    assert channel.identity.is_anonymous
    assert _raw(channel.root_key) == _raw(root_key.public_key())
    assert ("GET", "/api/v2/status") in adapter.calls


def test_production_channel_uses_configured_root_key(
    http, adapter, replica_url, root_key
) -> None:
    channel = _factory(
        http, replica_url, production=True, root_key=root_key.public_key()
    ).create_channel(_user())

    assert _raw(channel.root_key) == _raw(root_key.public_key())
    assert ("GET", "/api/v2/status") not in adapter.calls
    assert channel.update("mint_nft") == {"Ok": 1}


def test_anonymous_query(http, replica_url) -> None:
    channel = _factory(http, replica_url).create_channel(Identity.anonymous())
    assert channel.query("total_supply") == 0
    assert channel.query("whoami") == "2vxsx-fae"


def test_signed_query_identifies_caller(http, replica_url) -> None:
    user = _user()
    channel = _factory(http, replica_url).create_channel(user)
    assert channel.query("whoami") == user.principal.to_text()


def test_update_is_certified(http, replica_url, server) -> None:
    user = _user()
    channel = _factory(http, replica_url).create_channel(user)

    assert channel.update("mint_nft") == {"Ok": 1}
    assert server.registry.state.tokens[1].owner == user.principal.to_text()


def test_update_with_wrong_root_key_fails(http, replica_url) -> None:
    """Test a reply signed by an unknown root is not trusted."""
    other_root = Ed25519PrivateKey.generate().public_key()
    channel = _factory(
        http, replica_url, production=True, root_key=other_root
    ).create_channel(_user())

    with pytest.raises(RegistryUnavailable, match="certificate"):
        channel.update("mint_nft")


def test_root_key_fetch_failure_is_not_fatal(offline_http, replica_url) -> None:
    """Test a failed bootstrap still yields a channel whose updates cannot verify."""
    channel = _factory(offline_http, replica_url).create_channel(_user())
    assert channel.root_key is None

    with pytest.raises(RegistryUnavailable):
        channel.query("total_supply")


def test_update_without_root_key_reports_missing_trust_root(
    http, replica_url, server
) -> None:
    channel = _factory(http, replica_url).create_channel(_user())
    channel.root_key = None

    with pytest.raises(TrustRootUnavailable, match="local replica is running"):
        channel.update("mint_nft")


def test_registry_reject_carries_code(http, replica_url) -> None:
    channel = _factory(http, replica_url).create_channel(_user())
    with pytest.raises(RegistryRejected) as exc_info:
        channel.query("no_such_method")
    assert exc_info.value.code == DESTINATION_INVALID


def test_anonymous_update_is_rejected(http, replica_url) -> None:
    channel = _factory(http, replica_url).create_channel()
    with pytest.raises(RegistryRejected, match="Anonymous principal not allowed"):
        channel.update("mint_nft")


def test_capabilities_from_registry_interface(http, replica_url) -> None:
    channel = _factory(http, replica_url).create_channel()
    capabilities = channel.capabilities

    assert capabilities.supports("mint_nft")
    assert capabilities.supports("claim_badge")
    assert capabilities.supports("tokens_of")
    assert channel.capabilities is capabilities


def test_capabilities_fall_back_to_default(offline_http, replica_url) -> None:
    channel = _factory(offline_http, replica_url).create_channel()
    assert channel.capabilities.methods == DEFAULT_METHODS


def test_capabilities_parse_interface_text() -> None:
    interface = """
    service : {
      badge_count : () -> (nat64) query;
      "claim_badge" : (text) -> (bool);
      get_badge: () -> (opt Badge) query;
    }
    """
    capabilities = Capabilities.from_interface(interface)
    assert capabilities.methods == {"badge_count", "claim_badge", "get_badge"}
    assert not capabilities.supports("mint_nft")


def test_capabilities_empty_interface_uses_default() -> None:
    assert Capabilities.from_interface("").methods == DEFAULT_METHODS


def test_failed_capability_lookup_is_retried(
    offline_http, http, replica_url
) -> None:
    """Test a transient interface failure does not pin the default contract."""
    channel = _factory(offline_http, replica_url).create_channel()
    assert channel.capabilities.methods == DEFAULT_METHODS

    channel.http = http

    assert channel.capabilities.supports("claim_badge")
    assert channel.capabilities is channel.capabilities


def test_root_key_fetched_once_per_factory(http, adapter, replica_url) -> None:
    factory = _factory(http, replica_url)

    first = factory.create_channel()
    second = factory.create_channel(_user())

    assert adapter.calls.count(("GET", "/api/v2/status")) == 1
    assert second.root_key is first.root_key


def test_failed_root_key_fetch_is_retried(
    offline_http, http, adapter, replica_url, root_key
) -> None:
    factory = _factory(offline_http, replica_url)
    assert factory.create_channel().root_key is None

    factory.http = http
    channel = factory.create_channel()

    assert _raw(channel.root_key) == _raw(root_key.public_key())
    assert adapter.calls.count(("GET", "/api/v2/status")) == 1
