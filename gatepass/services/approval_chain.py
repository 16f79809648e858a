# =======================================================================================
# gatepass/services/approval_chain.py - Approval Chain Inspector
# =======================================================================================
from typing import List, Optional
from ..models.schemas import ApprovalChainEntry, ApprovalSummary
from .repositories import ApprovalChainRepository


class ApprovalChainInspector:
    """Read-only view over the sign-offs recorded for a request."""

    def __init__(self, repository: ApprovalChainRepository):
        self.repository = repository

    def entries_for(self, request_id: int) -> List[ApprovalChainEntry]:
        """Entries by ascending approval order; equal orders keep record order."""
        return sorted(
            self.repository.list_for_request(request_id),
            key=lambda e: e.approval_order,
        )

    def entry_for_slot(self, request_id: int, order: int) -> Optional[ApprovalChainEntry]:
        return next((e for e in self.entries_for(request_id) if e.approval_order == order), None)

    def is_complete(self, request_id: int, required_approver_count: int) -> bool:
        """True when every slot 1..required_approver_count has an approved entry."""
        if required_approver_count < 0:
            raise ValueError("required_approver_count must not be negative")

        approved_slots = {
            e.approval_order for e in self.entries_for(request_id) if e.status == "approved"
        }
        return all(slot in approved_slots for slot in range(1, required_approver_count + 1))

    def summarize(self, request_id: int,
                  required_approver_count: Optional[int] = None) -> ApprovalSummary:
        """
        Display summary for a request's chain.

        Without an explicit count the highest recorded approval order is
        taken as the number of required approvers.
        """
        entries = self.entries_for(request_id)
        if required_approver_count is None:
            required_approver_count = max((e.approval_order for e in entries), default=0)

        approved_slots = {e.approval_order for e in entries if e.status == "approved"}
        approved_count = sum(
            1 for slot in range(1, required_approver_count + 1) if slot in approved_slots
        )
        return ApprovalSummary(
            request_id=request_id,
            required_approvers=required_approver_count,
            approved_count=approved_count,
            complete=self.is_complete(request_id, required_approver_count),
            entries=entries,
        )
