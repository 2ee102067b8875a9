"""
Principal identifiers and their textual encoding.

The textual form is ``base32(crc32(raw) + raw)``, lowercased, stripped of
padding and grouped in blocks of five characters joined by ``-``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import zlib

from earlybadge.common.exceptions import InvalidPrincipal

MAX_PRINCIPAL_LENGTH = 29
CHECKSUM_LENGTH = 4
ANONYMOUS_SUFFIX = b"\x04"
SELF_AUTHENTICATING_SUFFIX = b"\x02"


class Principal:
    """Opaque identifier of an identity within the registry's trust domain."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes) -> None:
        if len(raw) > MAX_PRINCIPAL_LENGTH:
            msg = f"Principal is longer than {MAX_PRINCIPAL_LENGTH} bytes"
            raise InvalidPrincipal(msg)
        self._raw = bytes(raw)

    @classmethod
    def anonymous(cls) -> Principal:
        return cls(ANONYMOUS_SUFFIX)

    @classmethod
    def self_authenticating(cls, public_key_der: bytes) -> Principal:
        """Derive the principal owned by a DER-encoded public key."""
        digest = hashlib.sha224(public_key_der).digest()
        return cls(digest + SELF_AUTHENTICATING_SUFFIX)

    @classmethod
    def from_text(cls, text: str) -> Principal:
        """Parse the canonical textual form, rejecting anything else."""
        if not isinstance(text, str) or not text:
            msg = "Principal text must be a non-empty string"
            raise InvalidPrincipal(msg)
        compact = text.replace("-", "").upper()
        padded = compact + "=" * (-len(compact) % 8)
        try:
            decoded = base64.b32decode(padded)
        except (binascii.Error, ValueError) as err:
            msg = f"Principal {text!r} is not valid base32"
            raise InvalidPrincipal(msg) from err
        if len(decoded) < CHECKSUM_LENGTH:
            msg = f"Principal {text!r} is too short"
            raise InvalidPrincipal(msg)

        checksum, raw = decoded[:CHECKSUM_LENGTH], decoded[CHECKSUM_LENGTH:]
        if len(raw) > MAX_PRINCIPAL_LENGTH:
            msg = f"Principal {text!r} is too long"
            raise InvalidPrincipal(msg)
        if checksum != _crc32(raw):
            msg = f"Principal {text!r} has an invalid checksum"
            raise InvalidPrincipal(msg)

        principal = cls(raw)
        if principal.to_text() != text:
            msg = f"Principal {text!r} is not in canonical form"
            raise InvalidPrincipal(msg)
        return principal

    @property
    def raw(self) -> bytes:
        return self._raw

    @property
    def is_anonymous(self) -> bool:
        return self._raw == ANONYMOUS_SUFFIX

    def to_text(self) -> str:
        encoded = base64.b32encode(_crc32(self._raw) + self._raw)
        compact = encoded.decode("ascii").rstrip("=").lower()
        return "-".join(compact[i : i + 5] for i in range(0, len(compact), 5))

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"Principal({self.to_text()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Principal):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)


def _crc32(data: bytes) -> bytes:
    return zlib.crc32(data).to_bytes(CHECKSUM_LENGTH, "big")
