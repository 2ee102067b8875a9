"""Infrastructure layer: Configuration loading and validation.
"""

from __future__ import annotations

import logging

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from pydantic import ValidationError as PydanticValidationError

from earlybadge.common import Configurable, setup_logger
from earlybadge.common.config import Config
from earlybadge.common.crypto import CryptoUtils
from earlybadge.common.exceptions import ConfigurationError, InvalidPrincipal
from earlybadge.common.models import ClientConfig
from earlybadge.common.principal import Principal

REQUIRED_SETTINGS = {
    "network_url": "EARLYBADGE_NETWORK_URL",
    "registry_id": "EARLYBADGE_REGISTRY_ID",
    "identity_provider_url": "EARLYBADGE_IDENTITY_PROVIDER",
}

ENV_NAMES = {
    **REQUIRED_SETTINGS,
    "network": "EARLYBADGE_NETWORK",
    "root_key": "EARLYBADGE_ROOT_KEY",
    "supply_cap": "EARLYBADGE_SUPPLY_CAP",
    "request_timeout": "EARLYBADGE_REQUEST_TIMEOUT",
    "login_timeout": "EARLYBADGE_LOGIN_TIMEOUT",
}

SETTINGS = [*ENV_NAMES, "anchor", "log_level"]


class ConfigLoader(Configurable):
    """Resolves client settings from overrides and the environment."""

    network_url: str
    registry_id: str
    identity_provider_url: str
    network: str
    root_key: str | None
    supply_cap: int
    request_timeout: float
    login_timeout: float
    anchor: str | None
    log_level: int

    def __init__(self, client_config: ClientConfig):
        try:
            self.config: Config = Config()
        except ValueError as e:
            msg = f"Invalid configuration in environment: {e}"
            raise ConfigurationError(msg) from e
        self.apply_overrides(client_config.model_dump(), self.config, SETTINGS)
        self._validate()
        self.ingress_expiry: int = self.config.INGRESS_EXPIRY
        self.delegation_ttl: int = self.config.DELEGATION_TTL
        self.default_metadata: str = self.config.DEFAULT_METADATA

        missing = [env for attr, env in REQUIRED_SETTINGS.items() if not getattr(self, attr)]
        if missing:
            msg = f"Missing required configuration: {', '.join(missing)}"
            raise ConfigurationError(msg)

        # Setup logging
        self.logger = logging.getLogger("earlybadge")
        setup_logger(self.logger, self.log_level)

    def _validate(self) -> None:
        """Re-check resolved values, environment ones included, against ClientConfig."""
        try:
            ClientConfig.model_validate({attr: getattr(self, attr) for attr in SETTINGS})
        except PydanticValidationError as e:
            fields = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            invalid = sorted(ENV_NAMES.get(field, field) for field in fields)
            msg = f"Invalid configuration: {', '.join(invalid)}"
            raise ConfigurationError(msg) from e

    @property
    def is_production(self) -> bool:
        return self.network in self.config.PRODUCTION_NETWORKS

    def load_registry_id(self) -> Principal:
        """Parse the configured registry identifier."""
        try:
            return Principal.from_text(self.registry_id)
        except InvalidPrincipal as e:
            msg = f"EARLYBADGE_REGISTRY_ID is not a valid principal: {self.registry_id}"
            raise ConfigurationError(msg) from e

    def load_root_key(self) -> Ed25519PublicKey | None:
        """Root verification key; mandatory on production networks."""
        if not self.root_key:
            if self.is_production:
                msg = f"EARLYBADGE_ROOT_KEY must be set for network '{self.network}'"
                raise ConfigurationError(msg)
            return None
        try:
            return CryptoUtils.load_root_key(self.root_key)
        except ValueError as e:
            msg = "EARLYBADGE_ROOT_KEY is not a raw hex Ed25519 public key"
            raise ConfigurationError(msg) from e
