"""
Development replica: badge registry gateway plus identity provider, on FastAPI.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import cast

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from fastapi import FastAPI

from earlybadge.common import setup_logger
from earlybadge.common.config import Config
from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.principal import Principal

from .persistence import RegistryPersistence
from .registry import BadgeRegistry
from .routes import RegistryRoutes
from .services import DevIdentityProvider, RegistryService

# Canister id 0x00000000000000010101, the first id a local replica assigns
DEFAULT_REGISTRY_ID = Principal(bytes.fromhex("00000000000000010101"))


class RegistryServer:
    """Local stand-in for the badge registry and its identity provider."""

    def __init__(
        self,
        config: Config | None = None,
        *,
        registry_id: Principal = DEFAULT_REGISTRY_ID,
        admin: Principal | None = None,
        supply_cap: int | None = None,
        server_keys_dir: Path | None = None,
        state_file_path: Path | None = None,
        root_key: Ed25519PrivateKey | None = None,
    ):
        self.config = config or Config()
        self.logger = logging.getLogger(__name__)
        setup_logger(self.logger, self.config.LOG_LEVEL)

        self.server_host = self.config.SERVER_HOST
        self.server_port = self.config.SERVER_PORT
        self.server_keys_dir = server_keys_dir or self.config.SERVER_KEYS_DIR
        self.registry_id = registry_id
        self.root_key = root_key or self._get_root_key()

        self.persistence = (
            RegistryPersistence(state_file_path) if state_file_path else None
        )
        state = self.persistence.load_state() if self.persistence else None
        self.registry = BadgeRegistry(
            admin=admin or Principal(b""),
            supply_cap=self.config.SUPPLY_CAP if supply_cap is None else supply_cap,
            default_metadata=self.config.DEFAULT_METADATA,
            state=state,
        )

        self.service = RegistryService(
            config=self.config,
            registry=self.registry,
            registry_id=self.registry_id,
            root_key=self.root_key,
            persistence=self.persistence,
        )
        self.identity_provider = DevIdentityProvider(
            self.config,
            secret=self.root_key.private_bytes(
                serialization.Encoding.Raw,
                serialization.PrivateFormat.Raw,
                serialization.NoEncryption(),
            ),
        )

        self.app = FastAPI()
        RegistryRoutes(self.service, self.identity_provider).setup_routes(self.app)

        self.logger.info(
            "Replica ready on http://%s:%s", self.server_host, self.server_port
        )
        self.logger.info("Registry id: %s", self.registry_id)
        self.logger.info(
            "Root key: %s", CryptoUtils.public_key_raw_hex(self.root_key.public_key())
        )

    def _get_root_key(self) -> Ed25519PrivateKey:
        """Load the root key from the configured keys directory."""
        key_path = self.server_keys_dir / "root_private.key"
        try:
            with key_path.open("rb") as f:
                return cast(
                    "Ed25519PrivateKey",
                    serialization.load_pem_private_key(f.read(), None),
                )
        except FileNotFoundError as err:
            msg = (
                f"Root key not found at {key_path}. "
                "Run 'earlybadge keygen' to generate it."
            )
            raise ValueError(msg) from err
