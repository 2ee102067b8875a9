"""Infrastructure layer: Identity providers completing the login round trip.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import requests
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from earlybadge.client.domain.entities import Identity
from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.exceptions import AuthenticationDenied
from earlybadge.common.models import AuthorizeRequest, AuthorizeResponse
from earlybadge.common.principal import Principal

logger = logging.getLogger(__name__)


class HttpIdentityProvider:
    """Obtains a delegation for a fresh session key from a remote provider."""

    def __init__(
        self,
        provider_url: str,
        *,
        timeout: float,
        delegation_ttl: int,
        anchor: str | None = None,
        http: requests.Session | None = None,
    ):
        self.provider_url = provider_url.rstrip("/")
        self.timeout = timeout
        self.delegation_ttl = delegation_ttl
        self.anchor = anchor
        self.http = http or requests.Session()
        self._session_key: Ed25519PrivateKey | None = None

    def authenticate(self) -> Identity:
        """Run the login round trip and return the delegated identity."""
        session_key = Ed25519PrivateKey.generate()
        session_pubkey = CryptoUtils.public_key_der(session_key.public_key()).hex()
        req = AuthorizeRequest(
            session_pubkey=session_pubkey,
            anchor=self.anchor,
            max_time_to_live=self.delegation_ttl,
        )

        try:
            r = self.http.post(
                f"{self.provider_url}/authorize",
                json=req.model_dump(),
                timeout=self.timeout,
            )
            r.raise_for_status()
            resp = AuthorizeResponse.model_validate(r.json())
        except requests.Timeout as e:
            msg = "identity provider did not answer in time"
            raise AuthenticationDenied(msg) from e
        except requests.RequestException as e:
            msg = f"identity provider unreachable: {e}"
            raise AuthenticationDenied(msg) from e
        except ValueError as e:
            msg = "identity provider returned a malformed response"
            raise AuthenticationDenied(msg) from e

        if resp.status == "denied":
            raise AuthenticationDenied(resp.reason or "login was rejected")

        identity = self._identity_from(resp, session_key, session_pubkey)
        self._session_key = session_key
        logger.info("Identity provider approved %s", identity.principal)
        return identity

    def logout(self) -> None:
        self._session_key = None

    @staticmethod
    def _identity_from(
        resp: AuthorizeResponse, session_key: Ed25519PrivateKey, session_pubkey: str
    ) -> Identity:
        delegation = resp.delegation
        if resp.user_pubkey is None or delegation is None:
            msg = "identity provider approved without a delegation"
            raise AuthenticationDenied(msg)
        if delegation.pubkey != session_pubkey:
            msg = "delegation is bound to a different session key"
            raise AuthenticationDenied(msg)
        if delegation.expiration <= time.time_ns():
            msg = "delegation has already expired"
            raise AuthenticationDenied(msg)

        try:
            user_der = bytes.fromhex(resp.user_pubkey)
            user_key = CryptoUtils.load_public_key_der(user_der)
        except ValueError as e:
            msg = "identity provider returned an unusable user key"
            raise AuthenticationDenied(msg) from e
        if not CryptoUtils.verify_delegation(
            user_key, delegation.signature, delegation.signed_body()
        ):
            msg = "delegation signature is invalid"
            raise AuthenticationDenied(msg)

        return Identity(
            principal=Principal.self_authenticating(user_der),
            public_key_der=user_der,
            signing_key=session_key,
            delegation=delegation,
        )


class KeyFileIdentityProvider:
    """Authenticates with an Ed25519 identity stored as a PEM file."""

    def __init__(self, key_file: Path | str):
        self.key_file = Path(key_file)

    def authenticate(self) -> Identity:
        if not self.key_file.exists():
            msg = f"identity key file not found: {self.key_file}"
            raise AuthenticationDenied(msg)
        try:
            key = CryptoUtils.load_private_key_pem(self.key_file.read_bytes())
        except (ValueError, TypeError) as e:
            msg = f"identity key file is not an Ed25519 PEM key: {self.key_file}"
            raise AuthenticationDenied(msg) from e
        identity = Identity.from_private_key(key)
        logger.info("Loaded identity %s from %s", identity.principal, self.key_file)
        return identity

    def logout(self) -> None:
        """Nothing to forget; the key stays on disk."""
