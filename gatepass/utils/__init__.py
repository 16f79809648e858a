# =======================================================================================
# gatepass/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "GatePassError", "DecodeError", "InvalidPayloadError", "PersistenceError",
    "CameraError", "SessionStateError", "RequestNotFoundError", "PassRules"
]
