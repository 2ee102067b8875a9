import pytest
from pydantic import ValidationError

from earlybadge.common.models import (
    U64_MAX,
    AuthorizeRequest,
    Badge,
    CallResponse,
    ClientConfig,
    Delegation,
    RegistryState,
)
from earlybadge.common.principal import Principal


def test_badge_model() -> None:
    """Test Badge model."""
    owner = Principal(b"\x01\x02\x03").to_text()
    badge = Badge(id=1, owner=owner, metadata="Early Bird Badge", timestamp=1234567890)
    assert badge.id == 1
    assert badge.owner_principal == Principal(b"\x01\x02\x03")


def test_badge_rejects_invalid_owner() -> None:
    with pytest.raises(ValidationError):
        Badge(id=1, owner="not-a-valid-principal", metadata="", timestamp=0)


def test_badge_id_is_u64() -> None:
    owner = Principal.anonymous().to_text()
    Badge(id=U64_MAX, owner=owner, metadata="", timestamp=0)
    with pytest.raises(ValidationError):
        Badge(id=-1, owner=owner, metadata="", timestamp=0)
    with pytest.raises(ValidationError):
        Badge(id=U64_MAX + 1, owner=owner, metadata="", timestamp=0)


def test_delegation_signed_body_excludes_signature() -> None:
    delegation = Delegation(pubkey="ab", expiration=10, signature="cd")
    assert delegation.signed_body() == {"pubkey": "ab", "expiration": 10}


def test_authorize_request_requires_positive_ttl() -> None:
    with pytest.raises(ValidationError):
        AuthorizeRequest(session_pubkey="ab", max_time_to_live=0)


def test_call_response_rejected() -> None:
    resp = CallResponse.model_validate(
        {"status": "rejected", "reject_code": 5, "reject_message": "nope"}
    )
    assert resp.reply is None
    assert resp.reject_code == 5  # noqa: PLR2004


def test_registry_state_round_trip_keys() -> None:
    """Test token keys come back as ints after JSON."""
    owner = Principal(b"\x07").to_text()
    state = RegistryState(
        admin=owner,
        next_id=2,
        tokens={1: Badge(id=1, owner=owner, metadata="m", timestamp=0)},
    )
    restored = RegistryState.model_validate_json(state.model_dump_json())
    assert restored.tokens[1].owner == owner
    assert restored.next_id == 2  # noqa: PLR2004


def test_client_config_bounds() -> None:
    with pytest.raises(ValidationError):
        ClientConfig(supply_cap=-1)
    with pytest.raises(ValidationError):
        ClientConfig(request_timeout=0)
    assert ClientConfig().network_url is None
