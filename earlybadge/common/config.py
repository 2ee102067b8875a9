"""
Configuration settings for the badge client and the development replica.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path


class Config:
    """Central configuration class for all system settings."""

    def __init__(self) -> None:
        # Registry endpoints; required by the client
        self.NETWORK_URL: str | None = os.getenv("EARLYBADGE_NETWORK_URL")
        self.REGISTRY_ID: str | None = os.getenv("EARLYBADGE_REGISTRY_ID")
        self.IDENTITY_PROVIDER_URL: str | None = os.getenv(
            "EARLYBADGE_IDENTITY_PROVIDER"
        )

        # Network selection; production networks skip the root key fetch
        self.NETWORK: str = os.getenv("EARLYBADGE_NETWORK", "local")
        self.PRODUCTION_NETWORKS: tuple[str, ...] = ("ic",)
        self.ROOT_KEY: str | None = os.getenv("EARLYBADGE_ROOT_KEY")

        # Badge supply
        self.SUPPLY_CAP: int = int(os.getenv("EARLYBADGE_SUPPLY_CAP", "100"))
        self.DEFAULT_METADATA: str = "Early Bird Badge"

        # Timeouts (seconds) bounding every blocking call
        self.REQUEST_TIMEOUT: float = float(
            os.getenv("EARLYBADGE_REQUEST_TIMEOUT", "10")
        )
        self.LOGIN_TIMEOUT: float = float(os.getenv("EARLYBADGE_LOGIN_TIMEOUT", "300"))

        # Signed request settings
        self.INGRESS_EXPIRY: int = 5 * 60  # Seconds a signed call stays valid
        self.DELEGATION_TTL: int = 8 * 60 * 60 * 10**9  # Nanoseconds, 8 hours
        self.MAX_DELEGATION_TTL: int = 30 * 24 * 60 * 60 * 10**9  # 30 days

        # Development replica settings
        self.SERVER_HOST: str = os.getenv("EARLYBADGE_SERVER_HOST", "127.0.0.1")
        self.SERVER_PORT: int = int(os.getenv("EARLYBADGE_SERVER_PORT", "4943"))
        self.SERVER_URL: str = f"http://{self.SERVER_HOST}:{self.SERVER_PORT}"
        self.BASE_DIR: Path = Path(__file__).parent.parent
        self.DATA_DIR: Path = self.BASE_DIR / "data"
        self.SERVER_KEYS_DIR: Path = Path(
            os.getenv("EARLYBADGE_KEYS_DIR", str(self.BASE_DIR / "server"))
        )
        self.ROOT_PUBLIC_KEY_PATH: Path = self.SERVER_KEYS_DIR / "root_public.key"
        self.ROOT_PRIVATE_KEY_PATH: Path = self.SERVER_KEYS_DIR / "root_private.key"
        self.STATE_FILE_PATH: Path = self.DATA_DIR / "registry_state.json"
        self.IMPL_VERSION: str = "0.1.0"

        # Logging
        self.LOG_LEVEL: int = logging.INFO
