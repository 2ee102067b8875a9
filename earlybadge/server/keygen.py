"""
Key generator for replica root keys and user identities.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from earlybadge.common.config import Config
from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.principal import Principal

logger = logging.getLogger(__name__)


class KeyGenerator:
    """Key generator for Ed25519 root and identity keys."""

    def __init__(self, keys_dir: Path | None = None):
        config = Config()
        self.keys_dir = keys_dir or config.SERVER_KEYS_DIR

    def generate_keys(self) -> None:
        """Generate and save the replica root key pair."""
        logger.info("Generating Ed25519 root keys...")

        private_key = Ed25519PrivateKey.generate()
        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

        private_path = self.keys_dir / "root_private.key"
        public_path = self.keys_dir / "root_public.key"
        self.keys_dir.mkdir(parents=True, exist_ok=True)

        with private_path.open("wb") as f:
            f.write(private_pem)

        with public_path.open("wb") as f:
            f.write(public_pem)

        logger.info("Keys generated and saved:")
        logger.info("  Private: %s", private_path)
        logger.info("  Public: %s", public_path)
        logger.info("Keep the private key secure!")

    @staticmethod
    def generate_identity(path: Path) -> Principal:
        """Write a new PEM identity key and return its principal."""
        private_key = Ed25519PrivateKey.generate()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(
            private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
        return Principal.self_authenticating(
            CryptoUtils.public_key_der(private_key.public_key())
        )
