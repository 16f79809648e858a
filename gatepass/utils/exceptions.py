# =======================================================================================
# gatepass/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class GatePassError(Exception):
    """Base exception for the checkpoint verification system."""
    pass

class DecodeError(GatePassError):
    """Raised when a scanned payload cannot be turned into an access claim."""
    pass

class InvalidPayloadError(DecodeError):
    """Raised when neither the direct nor the URL-embedded form parses."""
    pass

class PersistenceError(GatePassError):
    """Raised when the audit log store cannot complete an operation."""
    pass

class CameraError(GatePassError):
    """Raised when the scanner device is unavailable or refuses access."""
    pass

class SessionStateError(GatePassError):
    """Raised when a checkpoint session action is not allowed in its current state."""
    pass

class RequestNotFoundError(GatePassError):
    """Raised when a request is not found."""
    pass
