"""Domain layer: Core business entities and rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.principal import Principal

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

    from earlybadge.common.models import Delegation


class SessionStatus(Enum):
    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    LOGGED_IN = "logged_in"


@dataclass(frozen=True)
class Identity:
    """Domain entity representing a principal and the key material signing for it."""

    principal: Principal
    public_key_der: bytes | None = None
    signing_key: Ed25519PrivateKey | None = field(default=None, repr=False)
    delegation: Delegation | None = None

    @classmethod
    def anonymous(cls) -> Identity:
        return cls(principal=Principal.anonymous())

    @classmethod
    def from_private_key(cls, signing_key: Ed25519PrivateKey) -> Identity:
        """Identity signing directly with its own key, without delegation."""
        der = CryptoUtils.public_key_der(signing_key.public_key())
        return cls(
            principal=Principal.self_authenticating(der),
            public_key_der=der,
            signing_key=signing_key,
        )

    @property
    def is_anonymous(self) -> bool:
        return self.signing_key is None

    def is_expired(self, now_ns: int) -> bool:
        """Whether the delegation backing this identity has lapsed."""
        return self.delegation is not None and self.delegation.expiration <= now_ns


@dataclass(frozen=True)
class Session:
    """Session state derived from the session manager."""

    status: SessionStatus
    identity: Identity | None = None

    @property
    def principal(self) -> Principal | None:
        return self.identity.principal if self.identity else None


_METHOD_PATTERN = re.compile(r"['\"]?(\w+)['\"]?\s*:\s*\(")

# Canonical multi-token registry contract
DEFAULT_METHODS = frozenset(
    {
        "badge_count",
        "total_supply",
        "has_nft",
        "get_nft_id",
        "tokens_of",
        "get_badge",
        "get_all_badges",
        "mint_nft",
        "transfer",
        "whoami",
    }
)


@dataclass(frozen=True)
class Capabilities:
    """Set of registry methods a channel may call."""

    methods: frozenset[str] = DEFAULT_METHODS

    @classmethod
    def from_interface(cls, interface: str) -> Capabilities:
        """Parse method names out of a service interface description."""
        methods = frozenset(_METHOD_PATTERN.findall(interface))
        if not methods:
            return cls()
        return cls(methods=methods)

    def supports(self, method: str) -> bool:
        return method in self.methods


@dataclass(frozen=True)
class Supply:
    """Snapshot of the public supply counters."""

    issued: int
    cap: int
    remaining: int

    @classmethod
    def from_counts(cls, issued: int, cap: int) -> Supply:
        return cls(issued=issued, cap=cap, remaining=max(0, cap - issued))
