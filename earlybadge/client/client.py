"""
Badge service client: the public surface over session, channel and registry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from earlybadge.client.application.channel_cache import ChannelCache
from earlybadge.client.application.session_manager import IdentitySessionManager
from earlybadge.client.domain.entities import Supply
from earlybadge.client.infrastructure.channel import ChannelFactory
from earlybadge.client.infrastructure.config_loader import ConfigLoader
from earlybadge.client.infrastructure.identity_provider import HttpIdentityProvider
from earlybadge.common.decorators import requires_session
from earlybadge.common.exceptions import (
    InvalidPrincipal,
    InvalidRecipient,
    MintRejected,
    RegistryRejected,
    RegistryUnavailable,
    TransferRejected,
)
from earlybadge.common.models import U64_MAX, Badge, ClientConfig
from earlybadge.common.principal import Principal

if TYPE_CHECKING:
    import requests

    from earlybadge.client.domain.entities import Identity, Session
    from earlybadge.client.infrastructure.channel import Channel
    from earlybadge.common.interfaces import IIdentityProvider

logger = logging.getLogger(__name__)


class BadgeClient:
    """Badge registry client bound to one user session."""

    def __init__(
        self,
        client_config: ClientConfig | None = None,
        *,
        identity_provider: IIdentityProvider | None = None,
        http: requests.Session | None = None,
        **overrides: Any,
    ):
        if client_config is None:
            client_config = ClientConfig(**overrides)
        self.settings = ConfigLoader(client_config)
        self.supply_cap: int = self.settings.supply_cap

        self.channel_factory = ChannelFactory(
            network_url=self.settings.network_url,
            registry_id=self.settings.load_registry_id(),
            production=self.settings.is_production,
            timeout=self.settings.request_timeout,
            ingress_expiry=self.settings.ingress_expiry,
            root_key=self.settings.load_root_key(),
            http=http,
        )
        self.channel_cache = ChannelCache(self.channel_factory)
        if identity_provider is None:
            identity_provider = HttpIdentityProvider(
                self.settings.identity_provider_url,
                timeout=self.settings.login_timeout,
                delegation_ttl=self.settings.delegation_ttl,
                anchor=self.settings.anchor,
                http=http,
            )
        self.session_manager = IdentitySessionManager(
            identity_provider, self.channel_cache
        )

    # --- Session ---------------------------------------------------------

    @property
    def session(self) -> Session:
        return self.session_manager.session

    def is_authenticated(self) -> bool:
        return self.session_manager.is_authenticated()

    def current_identity(self) -> Identity:
        return self.session_manager.current_identity()

    def login(self) -> Session:
        return self.session_manager.login()

    def logout(self) -> None:
        self.session_manager.logout()

    def _session_channel(self) -> Channel:
        return self.channel_cache.get_or_create(self.session_manager.current_identity())

    def _read_channel(self) -> Channel:
        return self.channel_cache.get_or_create(self.session_manager.read_identity())

    # --- Public counters -------------------------------------------------

    def issued_count(self) -> int:
        """Number of badges issued so far."""
        channel = self._read_channel()
        if channel.capabilities.supports("total_supply"):
            return int(channel.query("total_supply"))
        return int(channel.query("badge_count"))

    def total_supply(self) -> int:
        return int(self._read_channel().query("total_supply"))

    def remaining_supply(self) -> int:
        """Badges still available; 0 when the registry cannot be reached."""
        try:
            issued = self.issued_count()
        except RegistryUnavailable as e:
            logger.warning("Error reading issued count, reporting no supply: %s", e)
            return 0
        return max(0, self.supply_cap - issued)

    def supply(self) -> Supply:
        """Snapshot of the counters for one refresh cycle."""
        try:
            issued = self.issued_count()
        except RegistryUnavailable as e:
            logger.warning("Error reading issued count, reporting no supply: %s", e)
            return Supply(issued=0, cap=self.supply_cap, remaining=0)
        return Supply.from_counts(issued, self.supply_cap)

    def has_badge(self, principal: Principal | str) -> bool:
        """Whether an arbitrary principal holds a badge."""
        if isinstance(principal, str):
            principal = Principal.from_text(principal)
        return bool(self._read_channel().query("has_nft", principal.to_text()))

    def whoami(self) -> Principal:
        return Principal.from_text(self._read_channel().query("whoami"))

    # --- Identity scoped -------------------------------------------------

    @requires_session()
    def owns_any_badge(self) -> bool:
        channel = self._session_channel()
        principal = channel.identity.principal.to_text()
        if channel.capabilities.supports("tokens_of"):
            return len(channel.query("tokens_of", principal)) > 0
        return bool(channel.query("has_nft", principal))

    @requires_session()
    def get_owned_badges(self) -> list[int]:
        """Token ids held by the caller; empty when none."""
        channel = self._session_channel()
        principal = channel.identity.principal.to_text()
        if channel.capabilities.supports("tokens_of"):
            return [int(token_id) for token_id in channel.query("tokens_of", principal)]
        token_id = channel.query("get_nft_id", principal)
        return [] if token_id is None else [int(token_id)]

    @requires_session()
    def get_badge(self) -> Badge | None:
        """The caller's badge record, if the registry keeps one."""
        channel = self._session_channel()
        if not channel.capabilities.supports("get_badge"):
            return None
        record = channel.query("get_badge")
        return None if record is None else Badge.model_validate(record)

    @requires_session()
    def get_all_badges(self) -> list[tuple[Principal, Badge]]:
        """Admin enumeration of every badge and its owner."""
        rows = self._session_channel().query("get_all_badges")
        return [
            (Principal.from_text(owner), Badge.model_validate(badge))
            for owner, badge in rows
        ]

    @requires_session()
    def claim_or_mint(self, metadata: str | None = None) -> int:
        """Ask the registry for a new badge; returns its id."""
        channel = self._session_channel()
        capabilities = channel.capabilities
        try:
            if capabilities.supports("mint_nft"):
                result = channel.update("mint_nft")
                if "Err" in result:
                    raise MintRejected(result["Err"])
                token_id = int(result["Ok"])
            elif capabilities.supports("claim_badge"):
                if not channel.update(
                    "claim_badge", metadata or self.settings.default_metadata
                ):
                    msg = "Registry declined the claim"
                    raise MintRejected(msg)
                token_id = int(channel.query("get_badge")["id"])
            else:
                msg = "Registry does not support minting"
                raise MintRejected(msg)
        except MintRejected as e:
            logger.warning("Minting failed: %s", e.reason)
            raise
        except RegistryRejected as e:
            logger.warning("Minting failed: %s", e.reason)
            raise MintRejected(e.reason, e.code) from e

        logger.info("Mint successful, badge id: %s", token_id)
        return token_id

    @requires_session()
    def transfer(self, to: Principal | str, badge_id: int) -> None:
        """Ask the registry to move a badge to another principal."""
        recipient = self._validate_recipient(to)
        if not 0 <= badge_id <= U64_MAX:
            msg = f"Badge id out of range: {badge_id}"
            raise ValueError(msg)

        channel = self._session_channel()
        if not channel.capabilities.supports("transfer"):
            msg = "Registry does not support transfer"
            raise TransferRejected(msg)
        try:
            result = channel.update("transfer", recipient.to_text(), badge_id)
        except RegistryRejected as e:
            logger.warning("Transfer failed: %s", e.reason)
            raise TransferRejected(e.reason, e.code) from e
        if isinstance(result, dict) and "Err" in result:
            logger.warning("Transfer failed: %s", result["Err"])
            raise TransferRejected(result["Err"])
        logger.info("Transfer successful: badge %s to %s", badge_id, recipient)

    @staticmethod
    def _validate_recipient(to: Principal | str) -> Principal:
        if isinstance(to, Principal):
            recipient = to
        else:
            try:
                recipient = Principal.from_text(to)
            except InvalidPrincipal as e:
                msg = f"Invalid recipient principal: {to!r}"
                raise InvalidRecipient(msg) from e
        if recipient.is_anonymous:
            msg = "Cannot transfer a badge to the anonymous principal"
            raise InvalidRecipient(msg)
        return recipient
