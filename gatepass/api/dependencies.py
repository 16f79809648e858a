# =======================================================================================
# gatepass/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import HTTPException, Request
from ..services.approval_chain import ApprovalChainInspector
from ..services.audit_log import AuditLogStore
from ..services.checkpoint_session import CheckpointSession, SessionRegistry
from ..services.pass_decoder import PassDecoder
from ..services.repositories import RequestRepository
from ..services.verification import VerificationEngine
from ..utils.exceptions import (
    DecodeError, GatePassError, PersistenceError, RequestNotFoundError, SessionStateError,
)

def get_store(request: Request) -> AuditLogStore:
    """Dependency to get the audit log store."""
    return request.app.state.store

def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions

def get_session(terminal_id: str, request: Request) -> CheckpointSession:
    """Dependency resolving the session for the terminal in the path."""
    return get_sessions(request).get(terminal_id)

def get_decoder(request: Request) -> PassDecoder:
    return request.app.state.decoder

def get_engine(request: Request) -> VerificationEngine:
    return request.app.state.engine

def get_requests(request: Request) -> RequestRepository:
    return request.app.state.requests

def get_inspector(request: Request) -> ApprovalChainInspector:
    return request.app.state.inspector

def http_error(e: GatePassError) -> HTTPException:
    """Map domain errors onto HTTP responses."""
    if isinstance(e, DecodeError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RequestNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, SessionStateError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
