import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.exceptions import InvalidPrincipal
from earlybadge.common.principal import Principal


def test_anonymous_principal_text() -> None:
    """Test the well-known anonymous principal."""
    anonymous = Principal.anonymous()
    assert anonymous.to_text() == "2vxsx-fae"
    assert anonymous.is_anonymous
    assert Principal.from_text("2vxsx-fae") == anonymous


def test_management_principal_text() -> None:
    """Test the empty principal encodes to aaaaa-aa."""
    assert Principal(b"").to_text() == "aaaaa-aa"
    assert Principal.from_text("aaaaa-aa").raw == b""


def test_self_authenticating_round_trip() -> None:
    """Test a key-derived principal survives its textual form."""
    der = CryptoUtils.public_key_der(Ed25519PrivateKey.generate().public_key())
    principal = Principal.self_authenticating(der)

    assert len(principal.raw) == 29  # noqa: PLR2004
    assert principal.raw.endswith(b"\x02")
    assert not principal.is_anonymous
    assert Principal.from_text(principal.to_text()) == principal
    assert str(principal) == principal.to_text()


def test_principal_text_grouping() -> None:
    """Test text is grouped in blocks of five."""
    text = Principal(bytes(range(10))).to_text()
    groups = text.split("-")
    assert all(len(group) == 5 for group in groups[:-1])  # noqa: PLR2004
    assert 0 < len(groups[-1]) <= 5  # noqa: PLR2004


@pytest.mark.parametrize(
    "text",
    [
        "",
        "not-a-valid-principal",
        "2VXSX-FAE",
        "2vxsxfae",
        "2vxsx-faa",
        "aaaaa",
        "!!!!!-!!",
    ],
)
def test_from_text_rejects_malformed(text: str) -> None:
    """Test every non-canonical or corrupt form is refused."""
    with pytest.raises(InvalidPrincipal):
        Principal.from_text(text)


def test_from_text_rejects_non_string() -> None:
    with pytest.raises(InvalidPrincipal):
        Principal.from_text(None)  # type: ignore[arg-type]


def test_principal_too_long() -> None:
    """Test principals are capped at 29 bytes."""
    with pytest.raises(InvalidPrincipal):
        Principal(bytes(30))
    longest = Principal(bytes(29)).to_text()
    assert Principal.from_text(longest).raw == bytes(29)


def test_invalid_principal_is_value_error() -> None:
    with pytest.raises(ValueError, match="not valid base32|checksum|canonical|too short"):
        Principal.from_text("abc")


def test_principal_equality_and_hash() -> None:
    a = Principal(b"\x01\x02")
    b = Principal(b"\x01\x02")
    assert a == b
    assert len({a, b}) == 1
    assert a != Principal(b"\x01")
    assert repr(a) == f"Principal({a.to_text()!r})"
