"""Business logic services for the development replica.
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import TYPE_CHECKING, Any

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.exceptions import RegistryTrap, ValidationError
from earlybadge.common.models import (
    AuthorizeRequest,
    AuthorizeResponse,
    CallResponse,
    Delegation,
    Envelope,
    StatusResponse,
)
from earlybadge.common.principal import Principal

if TYPE_CHECKING:
    from earlybadge.common.config import Config
    from earlybadge.server.persistence import RegistryPersistence
    from earlybadge.server.registry import BadgeRegistry

logger = logging.getLogger(__name__)


class RegistryService:
    """Verifies signed envelopes and runs them against the registry."""

    def __init__(
        self,
        config: Config,
        registry: BadgeRegistry,
        registry_id: Principal,
        root_key: Ed25519PrivateKey,
        persistence: RegistryPersistence | None = None,
    ):
        self.config = config
        self.registry = registry
        self.registry_id = registry_id
        self.root_key = root_key
        self.persistence = persistence

    def health(self) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "timestamp": int(time.time())}

    def status(self) -> StatusResponse:
        return StatusResponse(
            root_key=CryptoUtils.public_key_raw_hex(self.root_key.public_key()),
            network="local",
            impl_version=self.config.IMPL_VERSION,
        )

    def handle(self, registry_id: str, request_type: str, envelope: Envelope) -> CallResponse:
        """Run a query or call envelope and build the reply."""
        content = envelope.content
        if registry_id != self.registry_id.to_text() or content.registry_id != registry_id:
            raise ValidationError(f"unknown registry {registry_id}", 404)
        if content.request_type != request_type:
            raise ValidationError("request type does not match endpoint", 400)

        caller = self.authenticate_sender(envelope)
        try:
            reply = self.registry.dispatch(
                request_type, content.method_name, caller, content.arg
            )
        except RegistryTrap as e:
            logger.info("Rejected %s from %s: %s", content.method_name, caller, e)
            return CallResponse(
                status="rejected", reject_code=e.reject_code, reject_message=str(e)
            )

        if request_type == "query":
            return CallResponse(status="replied", reply=reply)

        if self.persistence is not None:
            self.persistence.save_state(self.registry.state)
        request_id = CryptoUtils.request_id(content.model_dump())
        return CallResponse(
            status="replied",
            reply=reply,
            certificate=CryptoUtils.sign_certificate(self.root_key, request_id, reply),
        )

    def authenticate_sender(self, envelope: Envelope) -> Principal:
        """Check expiry and signatures, returning the caller principal."""
        content = envelope.content
        now = time.time_ns()
        if content.ingress_expiry <= now:
            raise ValidationError("ingress expiry has passed", 400)
        if content.ingress_expiry > now + self.config.INGRESS_EXPIRY * 10**9 * 2:
            raise ValidationError("ingress expiry is too far in the future", 400)

        try:
            sender = Principal.from_text(content.sender)
        except ValueError as e:
            raise ValidationError("invalid sender", 400) from e

        if sender.is_anonymous:
            if envelope.sender_sig is not None:
                raise ValidationError("anonymous requests must not be signed", 400)
            return sender

        if envelope.sender_pubkey is None or envelope.sender_sig is None:
            raise ValidationError("request is not signed")
        try:
            sender_der = bytes.fromhex(envelope.sender_pubkey)
            sender_key = CryptoUtils.load_public_key_der(sender_der)
        except ValueError as e:
            raise ValidationError("unusable sender public key", 400) from e
        if Principal.self_authenticating(sender_der) != sender:
            raise ValidationError("sender does not match public key")

        signing_key = sender_key
        delegation = envelope.sender_delegation
        if delegation is not None:
            if delegation.expiration <= now:
                raise ValidationError("delegation has expired")
            if not CryptoUtils.verify_delegation(
                sender_key, delegation.signature, delegation.signed_body()
            ):
                raise ValidationError("invalid delegation signature")
            try:
                signing_key = CryptoUtils.load_public_key_der(
                    bytes.fromhex(delegation.pubkey)
                )
            except ValueError as e:
                raise ValidationError("unusable delegated public key", 400) from e

        if not CryptoUtils.verify_request(
            signing_key, envelope.sender_sig, content.model_dump()
        ):
            raise ValidationError("invalid request signature")
        return sender


class DevIdentityProvider:
    """Approves every anchor with a deterministic per-anchor user key."""

    def __init__(self, config: Config, secret: bytes):
        self.config = config
        self.secret = secret

    def user_key(self, anchor: str) -> Ed25519PrivateKey:
        seed = hashlib.sha256(self.secret + anchor.encode()).digest()
        return Ed25519PrivateKey.from_private_bytes(seed)

    def authorize(self, req: AuthorizeRequest) -> AuthorizeResponse:
        if req.max_time_to_live > self.config.MAX_DELEGATION_TTL:
            return AuthorizeResponse(
                status="denied",
                reason="requested delegation lifetime exceeds 30 days",
            )
        try:
            CryptoUtils.load_public_key_der(bytes.fromhex(req.session_pubkey))
        except ValueError:
            return AuthorizeResponse(status="denied", reason="invalid session key")

        user_key = self.user_key(req.anchor or "default")
        body = {
            "pubkey": req.session_pubkey,
            "expiration": time.time_ns() + req.max_time_to_live,
        }
        delegation = Delegation(
            **body, signature=CryptoUtils.sign_delegation(user_key, body)
        )
        user_der = CryptoUtils.public_key_der(user_key.public_key())
        logger.info(
            "Delegation issued to %s", Principal.self_authenticating(user_der)
        )
        return AuthorizeResponse(
            status="approved", user_pubkey=user_der.hex(), delegation=delegation
        )
