from rosterlink_core.config import CoreConfig, EditPolicy, load_core_config
from rosterlink_core.tokens import SessionClaims, TokenService

__version__ = "0.1.0"

__all__ = [
    "CoreConfig",
    "EditPolicy",
    "SessionClaims",
    "TokenService",
    "__version__",
    "load_core_config",
]
