"""
Data persistence utilities.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path  # noqa: TC003

from pydantic import ValidationError as PydanticValidationError

from earlybadge.common.models import RegistryState

logger = logging.getLogger(__name__)


class RegistryPersistence:
    """Handles loading and saving the registry state file."""

    def __init__(self, file_path: Path):
        self.file_path = file_path

    def load_state(self) -> RegistryState | None:
        """Load registry state, or None when no usable file exists."""
        try:
            with self.file_path.open() as f:
                return RegistryState.model_validate(json.load(f))
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, PydanticValidationError):
            logger.warning("Ignoring unreadable registry state in %s", self.file_path)
            return None

    def save_state(self, state: RegistryState) -> None:
        """Save registry state to file."""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with self.file_path.open("w") as f:
            f.write(state.model_dump_json())
