
# =======================================================================================
# gatepass/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from .enums import AccessAction, AccessMethod, ApprovalStatus, RequestStatus, SessionState
from ..utils.clock import is_date_only, parse_instant


class GatepassModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========== Access pass ==========

class AccessWindow(GatepassModel):
    """The `access` block of a pass payload."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    access_type: Optional[str] = Field(None, alias="type")
    facility: Optional[str] = None
    level: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_instants(cls, v: Any) -> Optional[datetime]:
        return parse_instant(v)


class AccessClaim(GatepassModel):
    """Decoded representation of a presented pass."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    request_id: Optional[str] = Field(None, alias="id")
    request_number: Optional[str] = Field(None, alias="number")
    requester_name: Optional[str] = Field(None, alias="requester")
    title: Optional[str] = None
    template: Optional[str] = None
    access: Optional[AccessWindow] = None
    verify_path: Optional[str] = None

    @field_validator("request_id", mode="before")
    @classmethod
    def _id_as_text(cls, v: Any) -> Any:
        # Payloads carry numeric ids; bool is an int subclass and is not an id
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def facility(self) -> Optional[str]:
        return self.access.facility if self.access else None

    def to_payload(self) -> Dict[str, Any]:
        """Canonical serialized form using the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ========== External request records (read-only) ==========

class RequestFormData(GatepassModel):
    model_config = ConfigDict(extra="ignore")

    facility_access: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    access_type: Optional[str] = None
    access_level: Optional[str] = None
    system_access: List[str] = Field(default_factory=list)
    duration: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_instants(cls, v: Any) -> Optional[datetime]:
        return parse_instant(v)


class Request(GatepassModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    request_number: Optional[str] = None
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    title: Optional[str] = None
    status: RequestStatus
    form_data: RequestFormData = Field(default_factory=RequestFormData)
    template_id: Optional[int] = None


class ApprovalChainEntry(GatepassModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Optional[int] = None
    request_id: int
    approver_name: Optional[str] = None
    approval_order: int = Field(..., gt=0)
    status: ApprovalStatus = "pending"
    action_date: Optional[datetime] = None
    signature: Optional[str] = None
    comments: Optional[str] = None

    @field_validator("action_date", mode="before")
    @classmethod
    def _parse_instants(cls, v: Any) -> Optional[datetime]:
        return parse_instant(v)


class ApprovalSummary(GatepassModel):
    request_id: int
    required_approvers: int
    approved_count: int
    complete: bool
    entries: List[ApprovalChainEntry]


# ========== Verdict ==========

class Verdict(GatepassModel):
    """Admit/deny recommendation. ok is true exactly when reasons is empty."""
    model_config = ConfigDict(frozen=True)

    ok: bool
    reasons: List[str] = Field(default_factory=list)
    evaluated_at: datetime

    @model_validator(mode="after")
    def _ok_matches_reasons(self) -> "Verdict":
        if self.ok != (not self.reasons):
            raise ValueError("ok must be true exactly when reasons is empty")
        return self

    @classmethod
    def from_reasons(cls, reasons: List[str], evaluated_at: datetime) -> "Verdict":
        return cls(ok=not reasons, reasons=list(reasons), evaluated_at=evaluated_at)


# ========== Access logs ==========

class NewAccessLogEntry(GatepassModel):
    """Fields supplied by the caller when recording a decision."""
    model_config = ConfigDict(frozen=True)

    request_id: Optional[str] = None
    request_number: Optional[str] = None
    requester_name: Optional[str] = None
    facility: str
    gate: Optional[str] = None
    action: AccessAction
    method: AccessMethod
    guard_name: Optional[str] = None
    reason: str
    valid: bool

    @field_validator("request_id", mode="before")
    @classmethod
    def _id_as_text(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class AccessLogEntry(NewAccessLogEntry):
    """One immutable, persisted admit/deny decision."""
    id: str
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_instants(cls, v: Any) -> Optional[datetime]:
        return parse_instant(v)


class LogFilters(GatepassModel):
    text: Optional[str] = None
    facility: Optional[str] = None
    action: Optional[AccessAction] = None
    from_: Optional[datetime] = Field(None, alias="from")
    to: Optional[datetime] = None

    @field_validator("from_", mode="before")
    @classmethod
    def _parse_from(cls, v: Any) -> Optional[datetime]:
        return parse_instant(v)

    @field_validator("to", mode="before")
    @classmethod
    def _to_end_of_day(cls, v: Any) -> Optional[datetime]:
        # A bare date as upper bound includes the whole day
        parsed = parse_instant(v)
        if parsed is not None and is_date_only(v):
            parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
        return parsed

    @field_validator("text", "facility", mode="before")
    @classmethod
    def _blank_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ========== API ==========

class ScanRequest(GatepassModel):
    raw: str = Field(..., min_length=1, description="Raw text decoded from the pass")


class ClaimCheckRequest(GatepassModel):
    raw: str = Field(..., min_length=1, description="Raw text decoded from the pass")
    facility: Optional[str] = Field(None, description="Facility expected at this checkpoint")


class ClaimCheckResponse(GatepassModel):
    claim: AccessClaim
    verdict: Verdict


class LookupRequest(GatepassModel):
    request_number: str = Field(..., min_length=1, description="Request number, e.g. REQ-00002")


class DecisionRequest(GatepassModel):
    action: AccessAction
    reason: Optional[str] = Field(None, description="Operator override reason")


class SessionMetadata(GatepassModel):
    gate: Optional[str] = None
    guard_name: Optional[str] = None


class SessionView(GatepassModel):
    terminal_id: str
    state: SessionState
    method: Optional[AccessMethod] = None
    claim: Optional[AccessClaim] = None
    request: Optional[Request] = None
    verdict: Optional[Verdict] = None
    approvals: Optional[ApprovalSummary] = None
    default_action: Optional[AccessAction] = None
    expected_facility: Optional[str] = None
    gate: Optional[str] = None
    guard_name: Optional[str] = None
    last_entry: Optional[AccessLogEntry] = None


class RecordVerification(GatepassModel):
    request: Request
    verdict: Verdict
    approvals: ApprovalSummary


class LogsResponse(GatepassModel):
    logs: List[AccessLogEntry]


class FacilitiesResponse(GatepassModel):
    facilities: List[str]


class PurgeResponse(GatepassModel):
    removed: int


class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
