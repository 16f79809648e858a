# =======================================================================================
# gatepass/services/verification.py - Verification Engine
# =======================================================================================
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union
from ..models.schemas import AccessClaim, Request, Verdict
from ..utils.clock import ensure_utc
from ..utils.validators import PassRules


@dataclass(frozen=True)
class ClaimInput:
    """A decoded pass presented at the checkpoint."""
    claim: AccessClaim

    @property
    def number(self) -> Optional[str]:
        return self.claim.request_number

    @property
    def status(self) -> Optional[str]:
        return None

    @property
    def start(self) -> Optional[datetime]:
        return self.claim.access.start if self.claim.access else None

    @property
    def end(self) -> Optional[datetime]:
        return self.claim.access.end if self.claim.access else None

    @property
    def facility(self) -> Optional[str]:
        return self.claim.facility


@dataclass(frozen=True)
class RequestInput:
    """A request record looked up by number."""
    request: Request

    @property
    def number(self) -> Optional[str]:
        return self.request.request_number

    @property
    def status(self) -> Optional[str]:
        return self.request.status

    @property
    def start(self) -> Optional[datetime]:
        return self.request.form_data.start_date

    @property
    def end(self) -> Optional[datetime]:
        return self.request.form_data.end_date

    @property
    def facility(self) -> Optional[str]:
        return self.request.form_data.facility_access


Subject = Union[ClaimInput, RequestInput]


class VerificationEngine:
    """
    Evaluates every rule against a claim or request and collects all failures.

    Stateless: the verdict depends only on (subject, now, expected_facility).
    """

    def evaluate(self, subject: Subject, now: datetime,
                 expected_facility: Optional[str] = None) -> Verdict:
        now = ensure_utc(now)
        checks = [PassRules.check_identity(subject.number)]
        if isinstance(subject, RequestInput):
            checks.append(PassRules.check_status(subject.status))
        checks.extend([
            PassRules.check_not_yet_active(subject.start, now),
            PassRules.check_expired(subject.end, now),
            PassRules.check_facility(subject.facility, expected_facility),
        ])

        reasons: List[str] = [reason for reason in checks if reason]
        return Verdict.from_reasons(reasons, evaluated_at=now)

    def verify_claim(self, claim: AccessClaim, now: datetime,
                     expected_facility: Optional[str] = None) -> Verdict:
        return self.evaluate(ClaimInput(claim), now, expected_facility)

    def verify_request(self, request: Request, now: datetime,
                       expected_facility: Optional[str] = None) -> Verdict:
        return self.evaluate(RequestInput(request), now, expected_facility)
