# =======================================================================================
# gatepass/api/routes/verify.py - Stateless Verification Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from ...models.schemas import ClaimCheckRequest, ClaimCheckResponse, RecordVerification
from ...services.approval_chain import ApprovalChainInspector
from ...services.pass_decoder import PassDecoder
from ...services.repositories import RequestRepository
from ...services.verification import VerificationEngine
from ...utils.clock import utcnow
from ...utils.exceptions import DecodeError
from ..dependencies import get_decoder, get_engine, get_inspector, get_requests, http_error

router = APIRouter()

@router.post("/verify/claim", response_model=ClaimCheckResponse)
def verify_claim(
    request: ClaimCheckRequest,
    decoder: PassDecoder = Depends(get_decoder),
    engine: VerificationEngine = Depends(get_engine),
):
    """Check a pass without touching any checkpoint session or the log."""
    try:
        claim = decoder.decode(request.raw)
    except DecodeError as e:
        raise http_error(e)
    return ClaimCheckResponse(
        claim=claim, verdict=engine.verify_claim(claim, utcnow(), request.facility)
    )

@router.get("/verify/{request_number}", response_model=RecordVerification)
def verify_record(
    request_number: str,
    facility: Optional[str] = Query(None, description="Facility expected at this checkpoint"),
    required_approvers: Optional[int] = Query(None, ge=0),
    requests: RequestRepository = Depends(get_requests),
    engine: VerificationEngine = Depends(get_engine),
    inspector: ApprovalChainInspector = Depends(get_inspector),
):
    """Verify a request record and show its approval chain."""
    record = requests.get_by_number(request_number)
    if record is None:
        raise HTTPException(status_code=404, detail="Request not found.")

    return RecordVerification(
        request=record,
        verdict=engine.verify_request(record, utcnow(), facility),
        approvals=inspector.summarize(record.id, required_approvers),
    )
