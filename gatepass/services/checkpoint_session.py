# =======================================================================================
# gatepass/services/checkpoint_session.py - Checkpoint Session State Machine
# =======================================================================================
import logging
import threading
import time
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Dict, Optional
from ..models.enums import (
    DEFAULT_INVALID_REASON, DEFAULT_VALID_REASON, UNKNOWN_FACILITY, AccessAction, AccessMethod,
    SessionState,
)
from ..models.schemas import (
    AccessClaim, AccessLogEntry, ApprovalSummary, NewAccessLogEntry, Request, SessionView,
    Verdict,
)
from ..utils.clock import utcnow
from ..utils.exceptions import PersistenceError, RequestNotFoundError, SessionStateError
from .approval_chain import ApprovalChainInspector
from .audit_log import AuditLogStore
from .pass_decoder import PassDecoder
from .repositories import RequestRepository
from .verification import VerificationEngine

logger = logging.getLogger(__name__)


class CheckpointSession:
    """
    One terminal's scan -> verify -> decide -> log cycle.

    IDLE --scan/lookup--> CLAIM_PRESENTED --verify--> VERIFIED
    VERIFIED --admit/deny--> DECISION_RECORDED --> IDLE
    any state --reset--> IDLE (nothing is logged)
    """

    def __init__(
        self,
        terminal_id: str,
        store: AuditLogStore,
        decoder: Optional[PassDecoder] = None,
        engine: Optional[VerificationEngine] = None,
        requests: Optional[RequestRepository] = None,
        approvals: Optional[ApprovalChainInspector] = None,
        expected_facility: Optional[str] = None,
        gate: Optional[str] = None,
        guard_name: Optional[str] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.terminal_id = terminal_id
        self.store = store
        self.decoder = decoder or PassDecoder()
        self.engine = engine or VerificationEngine()
        self.requests = requests
        self.approvals = approvals
        self.expected_facility = expected_facility
        self.gate = gate
        self.guard_name = guard_name

        self.state = SessionState.IDLE
        self.method: Optional[AccessMethod] = None
        self.claim: Optional[AccessClaim] = None
        self.request: Optional[Request] = None
        self.verdict: Optional[Verdict] = None
        self.approval_summary: Optional[ApprovalSummary] = None
        self.last_entry: Optional[AccessLogEntry] = None
        self._pending_raw: Optional[str] = None

        self._lock = threading.RLock()
        self._monotonic = monotonic

        # key = raw payload already decided on, value = monotonic time of decision
        self._recent: "OrderedDict[str, float]" = OrderedDict()
        self._recent_max = 256

    # ----------------------------------------------------------------------
    # Cache helpers
    # ----------------------------------------------------------------------
    def recently_decided(self, raw: str, within: float) -> bool:
        """True if `raw` was decided on no more than `within` seconds ago."""
        with self._lock:
            ts = self._recent.get(raw)
            if ts is None:
                return False
            if self._monotonic() - ts > within:
                self._recent.pop(raw, None)
                return False
            return True

    def _remember_decided(self, raw: str) -> None:
        self._recent[raw] = self._monotonic()
        self._recent.move_to_end(raw)
        while len(self._recent) > self._recent_max:
            self._recent.popitem(last=False)

    # ----------------------------------------------------------------------
    # Presenting a pass
    # ----------------------------------------------------------------------
    def present_scan(self, raw: str, now: Optional[datetime] = None) -> Verdict:
        """Handle text delivered by the scanner."""
        with self._lock:
            if self.state != SessionState.IDLE:
                if raw == self._pending_raw:
                    return self.verdict
                raise SessionStateError(
                    f"Terminal {self.terminal_id} already has a pass awaiting a decision"
                )

            # DecodeError propagates; the session stays IDLE
            claim = self.decoder.decode(raw)
            verdict = self.engine.verify_claim(claim, now or utcnow(), self.expected_facility)

            self._enter_presented(AccessMethod.SCAN, raw)
            self.claim = claim
            self.verdict = verdict
            self.state = SessionState.VERIFIED
            logger.info(
                "[%s] Pass %s verified: %s",
                self.terminal_id, claim.request_number, "valid" if verdict.ok else "invalid",
            )
            return verdict

    def lookup_request(self, request_number: str, now: Optional[datetime] = None) -> Verdict:
        """Manual lookup by request number against the request repository."""
        with self._lock:
            if self.state != SessionState.IDLE:
                raise SessionStateError(
                    f"Terminal {self.terminal_id} already has a pass awaiting a decision"
                )
            request = self.requests.get_by_number(request_number) if self.requests else None
            if request is None:
                raise RequestNotFoundError(f"Request {request_number} not found")

            # Anything raised here leaves the session IDLE
            summary = self.approvals.summarize(request.id) if self.approvals is not None else None
            verdict = self.engine.verify_request(request, now or utcnow(), self.expected_facility)

            self._enter_presented(AccessMethod.MANUAL, None)
            self.request = request
            self.approval_summary = summary
            self.verdict = verdict
            self.state = SessionState.VERIFIED
            logger.info(
                "[%s] Request %s verified: %s",
                self.terminal_id, request_number, "valid" if verdict.ok else "invalid",
            )
            return verdict

    def _enter_presented(self, method: AccessMethod, raw: Optional[str]) -> None:
        self.state = SessionState.CLAIM_PRESENTED
        self.method = method
        self._pending_raw = raw
        self.claim = None
        self.request = None
        self.verdict = None
        self.approval_summary = None

    # ----------------------------------------------------------------------
    # Decisions
    # ----------------------------------------------------------------------
    @property
    def default_action(self) -> Optional[AccessAction]:
        if self.verdict is None:
            return None
        return AccessAction.ADMIT if self.verdict.ok else AccessAction.DENY

    def admit(self, reason: Optional[str] = None) -> AccessLogEntry:
        return self.decide(AccessAction.ADMIT, reason)

    def deny(self, reason: Optional[str] = None) -> AccessLogEntry:
        return self.decide(AccessAction.DENY, reason)

    def decide(self, action: AccessAction, reason: Optional[str] = None) -> AccessLogEntry:
        """
        Record the operator's decision. Either action is accepted whatever the
        verdict says; the entry keeps the verdict outcome in `valid`.
        """
        with self._lock:
            if self.state != SessionState.VERIFIED or self.verdict is None:
                raise SessionStateError(f"Terminal {self.terminal_id} has no verified pass to decide on")

            fields = self._build_entry(action, reason)
            try:
                entry = self.store.append(fields)
            except PersistenceError:
                logger.error("[%s] Decision not recorded; pass kept for retry", self.terminal_id)
                raise

            self.state = SessionState.DECISION_RECORDED
            self.last_entry = entry
            if self._pending_raw is not None:
                self._remember_decided(self._pending_raw)
            logger.info(
                "[%s] %s recorded for %s (%s)",
                self.terminal_id, action.value.upper(), entry.request_number, entry.reason,
            )
            self._clear()
            return entry

    def _build_entry(self, action: AccessAction, reason: Optional[str]) -> NewAccessLogEntry:
        if self.claim is not None:
            request_id = self.claim.request_id
            number = self.claim.request_number
            requester = self.claim.requester_name
            facility = self.claim.facility
        else:
            request_id = str(self.request.id)
            number = self.request.request_number
            requester = self.request.requester_name
            facility = self.request.form_data.facility_access

        if reason and reason.strip():
            effective_reason = reason.strip()
        elif self.verdict.reasons:
            effective_reason = "; ".join(self.verdict.reasons)
        elif action == AccessAction.ADMIT:
            effective_reason = DEFAULT_VALID_REASON
        else:
            effective_reason = DEFAULT_INVALID_REASON

        return NewAccessLogEntry(
            request_id=request_id,
            request_number=number,
            requester_name=requester,
            facility=facility or self.expected_facility or UNKNOWN_FACILITY,
            gate=self.gate or None,
            action=action,
            method=self.method,
            guard_name=self.guard_name or None,
            reason=effective_reason,
            valid=self.verdict.ok,
        )

    # ----------------------------------------------------------------------
    # Reset / view
    # ----------------------------------------------------------------------
    def reset(self) -> None:
        """Return to IDLE from any state without recording anything."""
        with self._lock:
            self._clear()

    def _clear(self) -> None:
        self.state = SessionState.IDLE
        self.method = None
        self.claim = None
        self.request = None
        self.verdict = None
        self.approval_summary = None
        self._pending_raw = None

    def snapshot(self) -> SessionView:
        with self._lock:
            return SessionView(
                terminal_id=self.terminal_id,
                state=self.state,
                method=self.method,
                claim=self.claim,
                request=self.request,
                verdict=self.verdict,
                approvals=self.approval_summary,
                default_action=self.default_action,
                expected_facility=self.expected_facility,
                gate=self.gate,
                guard_name=self.guard_name,
                last_entry=self.last_entry,
            )


class SessionRegistry:
    """Hands out one CheckpointSession per terminal id."""

    def __init__(self, factory: Callable[[str], CheckpointSession]):
        self._factory = factory
        self._sessions: Dict[str, CheckpointSession] = {}
        self._lock = threading.Lock()

    def get(self, terminal_id: str) -> CheckpointSession:
        with self._lock:
            session = self._sessions.get(terminal_id)
            if session is None:
                session = self._factory(terminal_id)
                self._sessions[terminal_id] = session
            return session
