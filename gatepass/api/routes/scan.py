# =======================================================================================
# gatepass/api/routes/scan.py - Checkpoint Session Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import DecisionRequest, LookupRequest, ScanRequest, SessionMetadata, SessionView
from ...services.checkpoint_session import CheckpointSession
from ...utils.exceptions import GatePassError
from ..dependencies import get_session, http_error

router = APIRouter()

@router.get("/checkpoints/{terminal_id}", response_model=SessionView)
def get_checkpoint(session: CheckpointSession = Depends(get_session)):
    """Current state of a checkpoint terminal."""
    return session.snapshot()

@router.post("/checkpoints/{terminal_id}/scan", response_model=SessionView)
def handle_scan(request: ScanRequest, session: CheckpointSession = Depends(get_session)):
    """Decode and verify a scanned pass."""
    try:
        session.present_scan(request.raw)
    except GatePassError as e:
        raise http_error(e)
    return session.snapshot()

@router.post("/checkpoints/{terminal_id}/lookup", response_model=SessionView)
def handle_lookup(request: LookupRequest, session: CheckpointSession = Depends(get_session)):
    """Verify a request by number (manual entry)."""
    try:
        session.lookup_request(request.request_number)
    except GatePassError as e:
        raise http_error(e)
    return session.snapshot()

@router.post("/checkpoints/{terminal_id}/decision", response_model=SessionView)
def handle_decision(request: DecisionRequest, session: CheckpointSession = Depends(get_session)):
    """Record the operator's admit/deny decision."""
    try:
        session.decide(request.action, request.reason)
    except GatePassError as e:
        raise http_error(e)
    return session.snapshot()

@router.post("/checkpoints/{terminal_id}/reset", response_model=SessionView)
def handle_reset(session: CheckpointSession = Depends(get_session)):
    session.reset()
    return session.snapshot()

@router.put("/checkpoints/{terminal_id}/metadata", response_model=SessionView)
def update_metadata(request: SessionMetadata, session: CheckpointSession = Depends(get_session)):
    """Gate and guard name recorded with every decision from this terminal."""
    # Only fields present in the body are changed
    if "gate" in request.model_fields_set:
        session.gate = request.gate or None
    if "guard_name" in request.model_fields_set:
        session.guard_name = request.guard_name or None
    return session.snapshot()
