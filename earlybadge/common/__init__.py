# Common utilities
from earlybadge.common.crypto import CryptoUtils as CryptoUtils
from earlybadge.common.logging_utils import setup_logger as setup_logger
from earlybadge.common.mixins import Configurable as Configurable
from earlybadge.common.principal import Principal as Principal

__all__ = ["Configurable", "CryptoUtils", "Principal", "setup_logger"]
