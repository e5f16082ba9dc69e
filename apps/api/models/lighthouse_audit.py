"""Stored row for one Lighthouse audit run."""

from sqlalchemy import Column, String, DateTime, Text

from database import Base


class LighthouseAudit(Base):
    """One audit row; status is derived from time_completed/report_json, never stored."""

    __tablename__ = "lighthouse_audits"

    id = Column(String, primary_key=True)
    url = Column(String, nullable=False, index=True)
    time_created = Column(DateTime(timezone=True), nullable=False, index=True)
    time_completed = Column(DateTime(timezone=True), nullable=True)
    report_json = Column(Text, nullable=True)
