# =======================================================================================
# gatepass/services/repositories.py - Read-only Request / Approval Sources
# =======================================================================================
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple, Union
from ..models.schemas import ApprovalChainEntry, Request

logger = logging.getLogger(__name__)


class RequestRepository(Protocol):
    """Read-only source of request records."""

    def get_by_id(self, request_id: int) -> Optional[Request]: ...

    def get_by_number(self, request_number: str) -> Optional[Request]: ...


class ApprovalChainRepository(Protocol):
    """Read-only source of approval chain entries, in record order."""

    def list_for_request(self, request_id: int) -> List[ApprovalChainEntry]: ...


class InMemoryRequestRepository:
    def __init__(self, requests: Iterable[Union[Request, dict]] = ()):
        self._requests: List[Request] = [
            r if isinstance(r, Request) else Request.model_validate(r) for r in requests
        ]

    def get_by_id(self, request_id: int) -> Optional[Request]:
        return next((r for r in self._requests if r.id == request_id), None)

    def get_by_number(self, request_number: str) -> Optional[Request]:
        return next((r for r in self._requests if r.request_number == request_number), None)

    def __len__(self) -> int:
        return len(self._requests)


class InMemoryApprovalChainRepository:
    def __init__(self, entries: Iterable[Union[ApprovalChainEntry, dict]] = ()):
        self._entries: List[ApprovalChainEntry] = [
            e if isinstance(e, ApprovalChainEntry) else ApprovalChainEntry.model_validate(e)
            for e in entries
        ]

    def list_for_request(self, request_id: int) -> List[ApprovalChainEntry]:
        return [e for e in self._entries if e.request_id == request_id]

    def __len__(self) -> int:
        return len(self._entries)


def load_repositories(path: Optional[str]) -> Tuple[InMemoryRequestRepository, InMemoryApprovalChainRepository]:
    """
    Build the read-only repositories from a JSON seed file with
    `requests` and `approvalChains` lists. No path means empty sources.
    """
    if not path:
        return InMemoryRequestRepository(), InMemoryApprovalChainRepository()

    data: Dict[str, list] = json.loads(Path(path).read_text(encoding="utf-8"))
    requests = InMemoryRequestRepository(data.get("requests", []))
    chains = InMemoryApprovalChainRepository(data.get("approvalChains", []))
    logger.info(
        "Loaded %d requests and %d approval entries from %s",
        len(requests), len(chains), path,
    )
    return requests, chains
