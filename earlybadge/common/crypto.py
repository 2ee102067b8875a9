"""Common cryptographic utilities.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, cast

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

REQUEST_DOMAIN_SEPARATOR = b"\x0aic-request"
DELEGATION_DOMAIN_SEPARATOR = b"\x1aic-request-auth-delegation"


class CryptoUtils:
    """Utility class for cryptographic operations."""

    @staticmethod
    def canonical_json(obj: Any) -> bytes:
        """Serialize with sorted keys and no whitespace."""
        return json.dumps(obj, sort_keys=True, separators=(",", ":")).encode()

    @staticmethod
    def request_id(content: dict[str, Any]) -> bytes:
        """Hash of a call's content, the value every party signs over."""
        return hashlib.sha256(CryptoUtils.canonical_json(content)).digest()

    @staticmethod
    def public_key_der(public_key: Ed25519PublicKey) -> bytes:
        return public_key.public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    @staticmethod
    def public_key_raw_hex(public_key: Ed25519PublicKey) -> str:
        return public_key.public_bytes(
            serialization.Encoding.Raw,
            serialization.PublicFormat.Raw,
        ).hex()

    @staticmethod
    def load_public_key_der(der: bytes) -> Ed25519PublicKey:
        key = serialization.load_der_public_key(der)
        if not isinstance(key, Ed25519PublicKey):
            msg = "Only Ed25519 public keys are supported"
            raise ValueError(msg)
        return key

    @staticmethod
    def load_root_key(raw_hex: str) -> Ed25519PublicKey:
        """Load a root verification key from its raw hex form."""
        return Ed25519PublicKey.from_public_bytes(bytes.fromhex(raw_hex))

    @staticmethod
    def load_private_key_pem(pem: bytes) -> Ed25519PrivateKey:
        key = serialization.load_pem_private_key(pem, None)
        if not isinstance(key, Ed25519PrivateKey):
            msg = "Only Ed25519 private keys are supported"
            raise ValueError(msg)
        return cast("Ed25519PrivateKey", key)

    @staticmethod
    def sign_request(signing_key: Ed25519PrivateKey, content: dict[str, Any]) -> str:
        message = REQUEST_DOMAIN_SEPARATOR + CryptoUtils.request_id(content)
        return signing_key.sign(message).hex()

    @staticmethod
    def sign_delegation(
        signing_key: Ed25519PrivateKey, delegation: dict[str, Any]
    ) -> str:
        digest = hashlib.sha256(CryptoUtils.canonical_json(delegation)).digest()
        return signing_key.sign(DELEGATION_DOMAIN_SEPARATOR + digest).hex()

    @staticmethod
    def verify_request(
        public_key: Ed25519PublicKey, signature_hex: str, content: dict[str, Any]
    ) -> bool:
        message = REQUEST_DOMAIN_SEPARATOR + CryptoUtils.request_id(content)
        return CryptoUtils._verify(public_key, signature_hex, message)

    @staticmethod
    def verify_delegation(
        public_key: Ed25519PublicKey, signature_hex: str, delegation: dict[str, Any]
    ) -> bool:
        digest = hashlib.sha256(CryptoUtils.canonical_json(delegation)).digest()
        return CryptoUtils._verify(
            public_key, signature_hex, DELEGATION_DOMAIN_SEPARATOR + digest
        )

    @staticmethod
    def sign_certificate(root_key: Ed25519PrivateKey, request_id: bytes, reply: Any) -> str:
        body = {"request_id": request_id.hex(), "reply": reply}
        return root_key.sign(CryptoUtils.canonical_json(body)).hex()

    @staticmethod
    def verify_certificate(
        root_key: Ed25519PublicKey, signature_hex: str, request_id: bytes, reply: Any
    ) -> bool:
        body = {"request_id": request_id.hex(), "reply": reply}
        return CryptoUtils._verify(
            root_key, signature_hex, CryptoUtils.canonical_json(body)
        )

    @staticmethod
    def _verify(public_key: Ed25519PublicKey, signature_hex: str, message: bytes) -> bool:
        try:
            public_key.verify(bytes.fromhex(signature_hex), message)
        except (InvalidSignature, ValueError):
            return False
        return True
