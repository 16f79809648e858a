# =======================================================================================
# gatepass/services/__init__.py - Services Package
# =======================================================================================
from .pass_decoder import PassDecoder
from .verification import VerificationEngine, ClaimInput, RequestInput
from .approval_chain import ApprovalChainInspector
from .audit_log import AuditLogStore, InMemoryAuditLogStore, SqlAuditLogStore, export_csv
from .checkpoint_session import CheckpointSession, SessionRegistry

__all__ = [
    "PassDecoder", "VerificationEngine", "ClaimInput", "RequestInput",
    "ApprovalChainInspector", "AuditLogStore", "InMemoryAuditLogStore",
    "SqlAuditLogStore", "export_csv", "CheckpointSession", "SessionRegistry"
]
