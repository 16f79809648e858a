# =======================================================================================
# gatepass/utils/validators.py - Verification Rules
# =======================================================================================
from datetime import datetime
from typing import Optional
from ..models.enums import (
    REASON_EXPIRED,
    REASON_FACILITY_MISMATCH,
    REASON_MISSING_NUMBER,
    REASON_NOT_ACTIVE,
    REASON_NOT_APPROVED,
)


class PassRules:
    """
    Individual verification rules.

    Each rule returns the failure reason, or None when the rule passes.
    Rules never raise and never look at each other's outcome.
    """

    @staticmethod
    def check_identity(number: Optional[str]) -> Optional[str]:
        """A pass must carry a request number."""
        if not number or not number.strip():
            return REASON_MISSING_NUMBER
        return None

    @staticmethod
    def check_status(status: str) -> Optional[str]:
        """Only approved requests are valid at a checkpoint."""
        if status != "approved":
            return REASON_NOT_APPROVED.format(status=status)
        return None

    @staticmethod
    def check_not_yet_active(start: Optional[datetime], now: datetime) -> Optional[str]:
        if start is not None and start > now:
            return REASON_NOT_ACTIVE
        return None

    @staticmethod
    def check_expired(end: Optional[datetime], now: datetime) -> Optional[str]:
        if end is not None and end < now:
            return REASON_EXPIRED
        return None

    @staticmethod
    def check_facility(facility: Optional[str], expected_facility: Optional[str]) -> Optional[str]:
        """Only evaluated when both sides name a facility."""
        if expected_facility and facility and facility != expected_facility:
            return REASON_FACILITY_MISMATCH
        return None
