"""Infrastructure layer: Signed channels to the badge registry.
"""

from __future__ import annotations

import logging
import os
import time
from typing import TYPE_CHECKING, Any

import requests
from pydantic import ValidationError as PydanticValidationError

from earlybadge.client.domain.entities import Capabilities, Identity
from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.exceptions import (
    RegistryRejected,
    RegistryUnavailable,
    TrustRootUnavailable,
)
from earlybadge.common.models import CallContent, CallResponse, Envelope, StatusResponse

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

    from earlybadge.common.principal import Principal

logger = logging.getLogger(__name__)

INTERFACE_METHOD = "__get_candid_interface_tmp_hack"


class Channel:
    """Handle bound to exactly one identity, issuing calls to the registry."""

    def __init__(
        self,
        *,
        network_url: str,
        registry_id: Principal,
        identity: Identity,
        http: requests.Session,
        timeout: float,
        ingress_expiry: int,
        root_key: Ed25519PublicKey | None = None,
    ):
        self.network_url = network_url.rstrip("/")
        self.registry_id = registry_id
        self.identity = identity
        self.http = http
        self.timeout = timeout
        self.ingress_expiry = ingress_expiry
        self.root_key = root_key
        self._capabilities: Capabilities | None = None

    @property
    def capabilities(self) -> Capabilities:
        """Registry methods available on this channel.

        Resolved once; a failed lookup falls back to the default contract for
        this access only and is retried on the next one.
        """
        if self._capabilities is None:
            try:
                interface = self.query(INTERFACE_METHOD)
            except (RegistryUnavailable, RegistryRejected) as e:
                logger.warning(
                    "Could not read registry interface, assuming default contract: %s",
                    e,
                )
                return Capabilities()
            self._capabilities = Capabilities.from_interface(str(interface))
            logger.debug("Registry capabilities: %s", sorted(self._capabilities.methods))
        return self._capabilities

    def query(self, method: str, *args: Any) -> Any:
        """Read-only call, answered without certification."""
        return self._submit("query", method, list(args))

    def update(self, method: str, *args: Any) -> Any:
        """State-changing call whose reply is certified by the root key."""
        return self._submit("call", method, list(args))

    def _submit(self, request_type: str, method: str, args: list[Any]) -> Any:
        content = CallContent(
            request_type=request_type,  # type: ignore[arg-type]
            registry_id=self.registry_id.to_text(),
            method_name=method,
            arg=args,
            sender=self.identity.principal.to_text(),
            ingress_expiry=(int(time.time()) + self.ingress_expiry) * 10**9,
            nonce=os.urandom(16).hex(),
        )
        envelope = self._sign(content)
        url = (
            f"{self.network_url}/api/v2/canister/"
            f"{self.registry_id.to_text()}/{request_type}"
        )

        try:
            r = self.http.post(url, json=envelope.model_dump(), timeout=self.timeout)
            r.raise_for_status()
            resp = CallResponse.model_validate(r.json())
        except requests.RequestException as e:
            msg = f"Registry call {method} failed: {e}"
            raise RegistryUnavailable(msg) from e
        except (ValueError, PydanticValidationError) as e:
            msg = f"Registry call {method} returned a malformed response"
            raise RegistryUnavailable(msg) from e

        if resp.status == "rejected":
            logger.debug("Registry rejected %s: %s", method, resp.reject_message)
            raise RegistryRejected(
                resp.reject_message or f"{method} was rejected", resp.reject_code
            )

        if request_type == "call":
            self._verify_certificate(content, resp)
        return resp.reply

    def _sign(self, content: CallContent) -> Envelope:
        identity = self.identity
        if identity.signing_key is None:
            return Envelope(content=content)
        body = content.model_dump()
        return Envelope(
            content=content,
            sender_pubkey=identity.public_key_der.hex() if identity.public_key_der else None,
            sender_sig=CryptoUtils.sign_request(identity.signing_key, body),
            sender_delegation=identity.delegation,
        )

    def _verify_certificate(self, content: CallContent, resp: CallResponse) -> None:
        if self.root_key is None:
            msg = (
                "No root key available to verify the registry reply. "
                "Check to ensure that your local replica is running"
            )
            raise TrustRootUnavailable(msg)
        request_id = CryptoUtils.request_id(content.model_dump())
        if resp.certificate is None or not CryptoUtils.verify_certificate(
            self.root_key, resp.certificate, request_id, resp.reply
        ):
            msg = f"Registry reply to {content.method_name} failed certificate verification"
            raise RegistryUnavailable(msg)


class ChannelFactory:
    """Builds channels for an identity; keeps no cache of its own."""

    def __init__(
        self,
        *,
        network_url: str,
        registry_id: Principal,
        production: bool,
        timeout: float,
        ingress_expiry: int,
        root_key: Ed25519PublicKey | None = None,
        http: requests.Session | None = None,
    ):
        self.network_url = network_url.rstrip("/")
        self.registry_id = registry_id
        self.production = production
        self.timeout = timeout
        self.ingress_expiry = ingress_expiry
        self.root_key = root_key
        self.http = http or requests.Session()
        self._fetched_root_key: Ed25519PublicKey | None = None

    def create_channel(self, identity: Identity | None = None) -> Channel:
        """Build a channel for the identity, anonymous when omitted."""
        identity = identity or Identity.anonymous()
        root_key = self.root_key if self.production else self._fetch_root_key()
        channel = Channel(
            network_url=self.network_url,
            registry_id=self.registry_id,
            identity=identity,
            http=self.http,
            timeout=self.timeout,
            ingress_expiry=self.ingress_expiry,
            root_key=root_key,
        )
        logger.debug("Channel created for %s", identity.principal)
        return channel

    def _fetch_root_key(self) -> Ed25519PublicKey | None:
        """Trust bootstrap for non-production networks; failures are not fatal.

        A fetched key is kept for every later channel. Failures are retried
        on the next channel.
        """
        if self._fetched_root_key is not None:
            return self._fetched_root_key
        try:
            r = self.http.get(f"{self.network_url}/api/v2/status", timeout=self.timeout)
            r.raise_for_status()
            status = StatusResponse.model_validate(r.json())
            self._fetched_root_key = CryptoUtils.load_root_key(status.root_key)
            return self._fetched_root_key
        except (requests.RequestException, ValueError, PydanticValidationError):
            logger.warning(
                "Unable to fetch root key. Check to ensure that your local replica is running",
                exc_info=True,
            )
            return None
