# =======================================================================================
# gatepass/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "AccessWindow", "AccessClaim", "Request", "RequestFormData", "ApprovalChainEntry",
    "ApprovalSummary", "Verdict", "NewAccessLogEntry", "AccessLogEntry", "LogFilters",
    "RequestStatus", "ApprovalStatus", "AccessAction", "AccessMethod", "SessionState"
]
