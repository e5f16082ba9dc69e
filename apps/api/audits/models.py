"""
Audit entity and its JSON projections.
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from errors import AuditTransitionError, InvalidRequestError

logger = logging.getLogger(__name__)

HTTP_RE = re.compile(r"^https?://")


class AuditStatus(str, Enum):
    RUNNING = "RUNNING"
    FAILED = "FAILED"
    COMPLETED = "COMPLETED"


class CategorySummary(BaseModel):
    """Abbreviated Lighthouse category: just enough to draw a score badge."""
    id: Optional[str] = None
    title: Optional[str] = None
    score: Optional[float] = None


class AuditBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    url: str
    time_created: datetime = Field(alias="timeCreated")
    time_completed: Optional[datetime] = Field(default=None, alias="timeCompleted")
    report: Optional[Dict[str, Any]] = None
    status: AuditStatus


class AuditListItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    url: str
    time_created: datetime = Field(alias="timeCreated")
    time_completed: Optional[datetime] = Field(default=None, alias="timeCompleted")
    status: AuditStatus
    categories: Optional[Dict[str, CategorySummary]] = None


class AuditLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with the audit it belongs to."""

    def process(self, msg, kwargs):
        msg, kwargs = super().process(msg, kwargs)
        return f"[audit {self.extra['audit_id']}] {msg}", kwargs


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def validate_audit_url(url: Optional[str]) -> str:
    """Reject empty URLs and URLs without an http(s) scheme."""
    if not url:
        raise InvalidRequestError("No URL provided. URL is required for auditing.")
    if not HTTP_RE.match(url):
        raise InvalidRequestError(f'URL "{url}" does not contain a protocol (http or https).')
    return url


class Audit:
    """
    One Lighthouse run against a URL.

    Status is never stored: an audit is RUNNING until time_completed is set,
    then COMPLETED if a report is attached or FAILED otherwise.
    """

    def __init__(
        self,
        id: str,
        url: str,
        time_created: datetime,
        time_completed: Optional[datetime] = None,
        report: Optional[Dict[str, Any]] = None,
    ):
        self.id = id
        self.url = url
        self.time_created = time_created
        self.time_completed = time_completed
        self.report = report

    @classmethod
    def build_for_url(cls, url: Optional[str]) -> "Audit":
        validate_audit_url(url)
        return cls(id=str(uuid.uuid4()), url=url, time_created=utcnow())

    @classmethod
    def build_for_row(cls, row) -> "Audit":
        report = json.loads(row.report_json) if row.report_json else None
        return cls(
            id=row.id,
            url=row.url,
            time_created=_as_utc(row.time_created),
            time_completed=_as_utc(row.time_completed),
            report=report,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Audit):
            return NotImplemented
        return (
            self.id == other.id
            and self.url == other.url
            and self.time_created == other.time_created
            and self.time_completed == other.time_completed
            and self.report == other.report
        )

    def __repr__(self) -> str:
        return f"Audit(id={self.id!r}, url={self.url!r}, status={self.status.value})"

    @property
    def logger(self) -> AuditLogAdapter:
        return AuditLogAdapter(logger, {"audit_id": self.id, "url": self.url})

    @property
    def status(self) -> AuditStatus:
        if self.time_completed is None:
            return AuditStatus.RUNNING
        if self.report is not None:
            return AuditStatus.COMPLETED
        return AuditStatus.FAILED

    @property
    def report_json(self) -> Optional[str]:
        """Serialized report for storage; None when absent or not serializable."""
        if self.report is None:
            return None
        try:
            return json.dumps(self.report)
        except (TypeError, ValueError) as exc:
            self.logger.info(f"Report could not be converted to JSON: {exc}")
            return None

    @property
    def categories(self) -> Optional[Dict[str, CategorySummary]]:
        if self.report is None:
            return None
        categories = self.report.get("categories") or {}
        return {
            key: CategorySummary(
                id=category.get("id"),
                title=category.get("title"),
                score=category.get("score"),
            )
            for key, category in categories.items()
        }

    @property
    def body(self) -> AuditBody:
        return AuditBody(
            id=self.id,
            url=self.url,
            time_created=self.time_created,
            time_completed=self.time_completed,
            report=self.report,
            status=self.status,
        )

    @property
    def list_item(self) -> AuditListItem:
        return AuditListItem(
            id=self.id,
            url=self.url,
            time_created=self.time_created,
            time_completed=self.time_completed,
            status=self.status,
            categories=self.categories,
        )

    def update_with_report(self, report: Dict[str, Any]) -> "Audit":
        self._ensure_running()
        self.report = report
        self.time_completed = utcnow()
        return self

    def mark_completed(self) -> "Audit":
        """Finish without a report, which leaves the audit FAILED."""
        self._ensure_running()
        self.time_completed = utcnow()
        return self

    def _ensure_running(self) -> None:
        if self.time_completed is not None:
            raise AuditTransitionError(f"Audit {self.id} already finished as {self.status.value}")
