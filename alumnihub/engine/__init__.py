"""AlumniHub Engine — Config, errors, logging, session context, security, secrets."""

from alumnihub.engine.config import PortalConfig, get_config, load_config  # noqa: F401
from alumnihub.engine.context import SessionContext  # noqa: F401
from alumnihub.engine.errors import PortalError  # noqa: F401

__all__ = [
    "PortalConfig",
    "PortalError",
    "SessionContext",
    "get_config",
    "load_config",
]
