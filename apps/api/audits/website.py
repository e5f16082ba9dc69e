"""Website aggregate: every audit recorded for one URL."""

from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field

from audits.models import Audit, AuditListItem


class WebsiteBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    last_audit: AuditListItem = Field(alias="lastAudit")
    audits: List[AuditListItem]


class Website:
    def __init__(self, url: str, audits: Sequence[Audit]):
        if not audits:
            raise ValueError("Website should not be constructed with no audits!")
        self.url = url
        self.audits = list(audits)

    @property
    def last_audit(self) -> Audit:
        # Callers hand audits over newest first.
        return self.audits[0]

    @property
    def body(self) -> WebsiteBody:
        return WebsiteBody(
            url=self.url,
            last_audit=self.last_audit.list_item,
            audits=[audit.list_item for audit in self.audits],
        )

    @property
    def list_item(self) -> WebsiteBody:
        return self.body
