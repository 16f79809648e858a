# =======================================================================================
# gatepass/services/audit_log.py - Access Audit Log Store
# =======================================================================================
import csv
import io
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Set
from sqlalchemy import (
    Boolean, Column, DateTime, MetaData, String, Table, Text, delete, func, insert, or_,
    select,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.exc import SQLAlchemyError
from ..database import DatabaseManager
from ..models.schemas import AccessLogEntry, LogFilters, NewAccessLogEntry
from ..utils.clock import ensure_utc, utcnow
from ..utils.exceptions import PersistenceError

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "id", "timestamp", "requestNumber", "requestId", "requesterName", "facility",
    "gate", "action", "method", "guardName", "reason", "valid",
]
CSV_MEDIA_TYPE = "text/csv"

Clock = Callable[[], datetime]


def export_filename(day: Optional[date] = None) -> str:
    day = day or utcnow().date()
    return f"access-logs-{day.isoformat()}.csv"


def export_csv(rows: Iterable[AccessLogEntry]) -> bytes:
    """
    Render entries as CSV in the fixed audit column order.

    Fields containing a quote, comma or line break are quoted with inner
    quotes doubled; absent values are empty; `valid` is true/false.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for r in rows:
        writer.writerow([
            r.id,
            r.timestamp.isoformat(),
            r.request_number or "",
            r.request_id or "",
            r.requester_name or "",
            r.facility,
            r.gate or "",
            r.action.value,
            r.method.value,
            r.guard_name or "",
            r.reason,
            "true" if r.valid else "false",
        ])
    return buffer.getvalue().encode("utf-8")


class AuditLogStore(ABC):
    """Append-only log of checkpoint decisions."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utcnow

    def _new_entry(self, fields: NewAccessLogEntry) -> AccessLogEntry:
        return AccessLogEntry(
            id=str(uuid.uuid4()),
            timestamp=ensure_utc(self._clock()),
            **fields.model_dump(),
        )

    @abstractmethod
    def append(self, fields: NewAccessLogEntry) -> AccessLogEntry:
        """Persist one new entry with a fresh id and timestamp and return it."""

    @abstractmethod
    def query(self, filters: Optional[LogFilters] = None) -> List[AccessLogEntry]:
        """Entries matching every given filter, newest first."""

    @abstractmethod
    def get(self, entry_id: str) -> Optional[AccessLogEntry]:
        ...

    @abstractmethod
    def list_facilities(self) -> Set[str]:
        ...

    @abstractmethod
    def purge(self) -> int:
        """Remove every entry. Returns how many were removed."""

    @abstractmethod
    def ping(self) -> None:
        ...

    def export_csv(self, rows: Iterable[AccessLogEntry]) -> bytes:
        return export_csv(rows)


# ----------------------------------------------------------------------
# In-memory store
# ----------------------------------------------------------------------
class InMemoryAuditLogStore(AuditLogStore):
    """Process-local store for tests and demos. Not durable."""

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self._rows: List[AccessLogEntry] = []
        self._lock = threading.Lock()

    def append(self, fields: NewAccessLogEntry) -> AccessLogEntry:
        with self._lock:
            entry = self._new_entry(fields)
            self._rows.append(entry)
        return entry

    @staticmethod
    def _matches(row: AccessLogEntry, filters: LogFilters) -> bool:
        if filters.text:
            needle = filters.text.lower()
            haystack = (row.request_number, row.requester_name, row.gate, row.guard_name)
            if not any(v and needle in v.lower() for v in haystack):
                return False
        if filters.facility and row.facility != filters.facility:
            return False
        if filters.action and row.action != filters.action:
            return False
        if filters.from_ and row.timestamp < filters.from_:
            return False
        if filters.to and row.timestamp > filters.to:
            return False
        return True

    def query(self, filters: Optional[LogFilters] = None) -> List[AccessLogEntry]:
        filters = filters or LogFilters()
        with self._lock:
            rows = list(reversed(self._rows))
        return sorted(
            (r for r in rows if self._matches(r, filters)),
            key=lambda r: r.timestamp,
            reverse=True,
        )

    def get(self, entry_id: str) -> Optional[AccessLogEntry]:
        with self._lock:
            return next((r for r in self._rows if r.id == entry_id), None)

    def list_facilities(self) -> Set[str]:
        with self._lock:
            return {r.facility for r in self._rows if r.facility}

    def purge(self) -> int:
        with self._lock:
            removed = len(self._rows)
            self._rows.clear()
        return removed

    def ping(self) -> None:
        return None


# ----------------------------------------------------------------------
# SQL store
# ----------------------------------------------------------------------
metadata = MetaData()

access_logs = Table(
    "access_logs",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("timestamp", DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql"),
           nullable=False, index=True),
    Column("request_id", String(64)),
    Column("request_number", String(64)),
    Column("requester_name", String(255)),
    Column("facility", String(128), nullable=False),
    Column("gate", String(255)),
    Column("action", String(16), nullable=False),
    Column("method", String(16), nullable=False),
    Column("guard_name", String(255)),
    Column("reason", Text, nullable=False),
    Column("valid", Boolean, nullable=False),
)


class SqlAuditLogStore(AuditLogStore):
    """Durable store backed by the `access_logs` table."""

    def __init__(self, db: DatabaseManager, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.db = db

    def create_schema(self) -> None:
        try:
            metadata.create_all(self.db.engine)
        except SQLAlchemyError as e:
            logger.error("Could not create access log schema: %s", e)
            raise PersistenceError(f"Could not create access log schema: {e}") from e

    @staticmethod
    def _to_row(entry: AccessLogEntry) -> dict:
        row = entry.model_dump()
        # Stored as naive UTC; DATETIME columns carry no offset
        row["timestamp"] = entry.timestamp.replace(tzinfo=None)
        row["action"] = entry.action.value
        row["method"] = entry.method.value
        return row

    @staticmethod
    def _from_row(row) -> AccessLogEntry:
        return AccessLogEntry.model_validate(dict(row))

    def append(self, fields: NewAccessLogEntry) -> AccessLogEntry:
        entry = self._new_entry(fields)
        try:
            with self.db.get_connection() as conn:
                conn.execute(insert(access_logs).values(**self._to_row(entry)))
        except SQLAlchemyError as e:
            logger.error("Failed to append access log entry: %s", e)
            raise PersistenceError(f"Could not record access log entry: {e}") from e
        return entry

    def query(self, filters: Optional[LogFilters] = None) -> List[AccessLogEntry]:
        filters = filters or LogFilters()
        t = access_logs.c
        stmt = select(access_logs)

        if filters.text:
            needle = filters.text.lower()
            stmt = stmt.where(or_(*(
                func.lower(col).contains(needle, autoescape=True)
                for col in (t.request_number, t.requester_name, t.gate, t.guard_name)
            )))
        if filters.facility:
            stmt = stmt.where(t.facility == filters.facility)
        if filters.action:
            stmt = stmt.where(t.action == filters.action.value)
        if filters.from_:
            stmt = stmt.where(t.timestamp >= filters.from_.replace(tzinfo=None))
        if filters.to:
            stmt = stmt.where(t.timestamp <= filters.to.replace(tzinfo=None))

        stmt = stmt.order_by(t.timestamp.desc())
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            logger.error("Failed to query access logs: %s", e)
            raise PersistenceError(f"Could not read access logs: {e}") from e
        return [self._from_row(r) for r in rows]

    def get(self, entry_id: str) -> Optional[AccessLogEntry]:
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(
                    select(access_logs).where(access_logs.c.id == entry_id)
                ).mappings().first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read access log entry: {e}") from e
        return self._from_row(row) if row else None

    def list_facilities(self) -> Set[str]:
        try:
            with self.db.get_connection() as conn:
                values = conn.execute(select(access_logs.c.facility).distinct()).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read access log facilities: {e}") from e
        return {v for v in values if v}

    def purge(self) -> int:
        try:
            with self.db.get_connection() as conn:
                result = conn.execute(delete(access_logs))
        except SQLAlchemyError as e:
            logger.error("Failed to purge access logs: %s", e)
            raise PersistenceError(f"Could not purge access logs: {e}") from e
        logger.warning("Access log purged (%d entries removed)", result.rowcount)
        return result.rowcount

    def ping(self) -> None:
        try:
            self.db.fetch_one("SELECT 1")
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database unavailable: {e}") from e
