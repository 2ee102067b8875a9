"""
Badge registry state machine served by the development replica.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from earlybadge.common.exceptions import InvalidPrincipal, RegistryTrap
from earlybadge.common.models import Badge, RegistryState
from earlybadge.common.principal import Principal

QUERY = "query"
UPDATE = "update"

# Reject codes
DESTINATION_INVALID = 3

CANDID_INTERFACE = """\
type Badge = record { id : nat64; owner : principal; metadata : text; timestamp : nat64 };
type Result = variant { Ok : nat64; Err : text };
type TransferResult = variant { Ok; Err : text };
service : {
  badge_count : () -> (nat64) query;
  claim_badge : (text) -> (bool);
  get_all_badges : () -> (vec record { principal; Badge }) query;
  get_badge : () -> (opt Badge) query;
  get_nft_id : (principal) -> (opt nat64) query;
  has_badge : () -> (bool) query;
  has_nft : (principal) -> (bool) query;
  mint_nft : () -> (Result);
  set_admin : (principal) -> ();
  tokens_of : (principal) -> (vec nat64) query;
  total_supply : () -> (nat64) query;
  transfer : (principal, nat64) -> (TransferResult);
  whoami : () -> (principal) query;
}
"""


class BadgeRegistry:
    """One-badge-per-owner token store with a fixed supply cap."""

    def __init__(
        self,
        admin: Principal,
        supply_cap: int,
        default_metadata: str,
        state: RegistryState | None = None,
    ):
        self.supply_cap = supply_cap
        self.default_metadata = default_metadata
        self.state = state or RegistryState(admin=admin.to_text())
        self.methods: dict[str, tuple[str, Callable[..., Any]]] = {
            "badge_count": (QUERY, self.badge_count),
            "claim_badge": (UPDATE, self.claim_badge),
            "get_all_badges": (QUERY, self.get_all_badges),
            "get_badge": (QUERY, self.get_badge),
            "get_nft_id": (QUERY, self.get_nft_id),
            "has_badge": (QUERY, self.has_badge),
            "has_nft": (QUERY, self.has_nft),
            "mint_nft": (UPDATE, self.mint_nft),
            "set_admin": (UPDATE, self.set_admin),
            "tokens_of": (QUERY, self.tokens_of),
            "total_supply": (QUERY, self.total_supply),
            "transfer": (UPDATE, self.transfer),
            "whoami": (QUERY, self.whoami),
            "__get_candid_interface_tmp_hack": (QUERY, self.interface),
        }

    def dispatch(self, request_type: str, method: str, caller: Principal, args: list[Any]) -> Any:
        """Run a registry method on behalf of caller."""
        if method not in self.methods:
            msg = f"Registry has no {request_type} method '{method}'"
            raise RegistryTrap(msg, DESTINATION_INVALID)
        kind, handler = self.methods[method]
        if request_type == "query" and kind == UPDATE:
            msg = f"Method '{method}' is an update and cannot be queried"
            raise RegistryTrap(msg, DESTINATION_INVALID)
        try:
            return handler(caller, *args)
        except (TypeError, ValueError) as e:
            msg = f"Invalid arguments for '{method}': {e}"
            raise RegistryTrap(msg) from e

    # --- Queries -----------------------------------------------------------

    def badge_count(self, caller: Principal) -> int:
        return len(self.state.tokens)

    def total_supply(self, caller: Principal) -> int:
        return self.state.next_id - 1

    def has_badge(self, caller: Principal) -> bool:
        self._require_identified(caller)
        return self._token_of(caller) is not None

    def has_nft(self, caller: Principal, user: str) -> bool:
        return self._token_of(_parse_principal(user)) is not None

    def get_badge(self, caller: Principal) -> dict[str, Any] | None:
        self._require_identified(caller)
        badge = self._token_of(caller)
        return None if badge is None else badge.model_dump()

    def get_nft_id(self, caller: Principal, user: str) -> int | None:
        badge = self._token_of(_parse_principal(user))
        return None if badge is None else badge.id

    def tokens_of(self, caller: Principal, user: str) -> list[int]:
        owner = _parse_principal(user).to_text()
        return sorted(t.id for t in self.state.tokens.values() if t.owner == owner)

    def get_all_badges(self, caller: Principal) -> list[list[Any]]:
        if caller.to_text() != self.state.admin:
            msg = "Only admin can view all badges"
            raise RegistryTrap(msg)
        return [
            [badge.owner, badge.model_dump()]
            for _, badge in sorted(self.state.tokens.items())
        ]

    def whoami(self, caller: Principal) -> str:
        return caller.to_text()

    def interface(self, caller: Principal) -> str:
        return CANDID_INTERFACE

    # --- Updates -----------------------------------------------------------

    def mint_nft(self, caller: Principal) -> dict[str, Any]:
        self._require_identified(caller)
        try:
            badge = self._mint(caller, self.default_metadata)
        except RegistryTrap as e:
            return {"Err": str(e)}
        return {"Ok": badge.id}

    def claim_badge(self, caller: Principal, metadata: str) -> bool:
        self._require_identified(caller)
        self._mint(caller, metadata)
        return True

    def transfer(self, caller: Principal, to: str, token_id: int) -> dict[str, Any]:
        self._require_identified(caller)
        recipient = _parse_principal(to)
        badge = self.state.tokens.get(int(token_id))
        if badge is None:
            return {"Err": "Badge not found"}
        if badge.owner != caller.to_text():
            return {"Err": "Caller is not the owner"}
        if recipient.is_anonymous:
            return {"Err": "Cannot transfer to the anonymous principal"}
        if self._token_of(recipient) is not None:
            return {"Err": "Recipient already owns a badge"}
        self.state.tokens[badge.id] = badge.model_copy(update={"owner": recipient.to_text()})
        return {"Ok": None}

    def set_admin(self, caller: Principal, new_admin: str) -> None:
        if caller.to_text() != self.state.admin:
            msg = "Only the admin can set a new admin"
            raise RegistryTrap(msg)
        self.state.admin = _parse_principal(new_admin).to_text()

    # --- Helpers -----------------------------------------------------------

    def _mint(self, caller: Principal, metadata: str) -> Badge:
        if self._token_of(caller) is not None:
            msg = "Caller already owns a badge"
            raise RegistryTrap(msg)
        if self.state.next_id - 1 >= self.supply_cap:
            msg = "Badge supply exhausted"
            raise RegistryTrap(msg)
        badge = Badge(
            id=self.state.next_id,
            owner=caller.to_text(),
            metadata=metadata,
            timestamp=time.time_ns(),
        )
        self.state.tokens[badge.id] = badge
        self.state.next_id += 1
        return badge

    def _token_of(self, owner: Principal) -> Badge | None:
        owner_text = owner.to_text()
        for badge in self.state.tokens.values():
            if badge.owner == owner_text:
                return badge
        return None

    @staticmethod
    def _require_identified(caller: Principal) -> None:
        if caller.is_anonymous:
            msg = "Anonymous principal not allowed"
            raise RegistryTrap(msg)


def _parse_principal(text: Any) -> Principal:
    try:
        return Principal.from_text(text)
    except InvalidPrincipal as e:
        raise RegistryTrap(str(e)) from e
