# Early Bird Badge client

from earlybadge.client.client import BadgeClient
from earlybadge.client.domain.entities import Identity, Session, SessionStatus, Supply
from earlybadge.common.decorators import requires_session
from earlybadge.common.principal import Principal

__all__ = [
    "BadgeClient",
    "Identity",
    "Principal",
    "Session",
    "SessionStatus",
    "Supply",
    "requires_session",
]
