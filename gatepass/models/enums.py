# =======================================================================================
# gatepass/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
RequestStatus = Literal[
    "draft", "pending", "in_review", "approved", "rejected", "cancelled", "withdrawn"
]
ApprovalStatus = Literal["pending", "approved", "rejected", "skipped"]

class AccessAction(str, Enum):
    """Operator decision recorded at a checkpoint."""
    ADMIT = "admit"
    DENY = "deny"

class AccessMethod(str, Enum):
    """How the pass reached the checkpoint."""
    SCAN = "scan"
    MANUAL = "manual"

class SessionState(str, Enum):
    """Checkpoint session states."""
    IDLE = "idle"
    CLAIM_PRESENTED = "claim_presented"
    VERIFIED = "verified"
    DECISION_RECORDED = "decision_recorded"

# Verdict reason strings
REASON_MISSING_NUMBER = "Missing request number."
REASON_NOT_APPROVED = "Request is not approved (status: {status})."
REASON_NOT_ACTIVE = "Pass not active yet."
REASON_EXPIRED = "Pass has expired."
REASON_FACILITY_MISMATCH = "Facility mismatch for this checkpoint."

DEFAULT_VALID_REASON = "Valid pass"
DEFAULT_INVALID_REASON = "Invalid pass"
UNKNOWN_FACILITY = "unknown"
