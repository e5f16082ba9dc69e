from datetime import datetime, timedelta, timezone

import pytest

from audits.models import Audit
from audits.website import Website


def _audit(minutes_ago: int) -> Audit:
    created = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return Audit(f"audit-{minutes_ago}", "https://example.com", created)


def test_website_requires_audits():
    with pytest.raises(ValueError):
        Website("https://example.com", [])


def test_last_audit_is_first_audit():
    newest, older = _audit(1), _audit(10)
    website = Website("https://example.com", [newest, older])

    assert website.last_audit is newest


def test_body_lists_audit_summaries():
    website = Website("https://example.com", [_audit(1), _audit(10)])

    body = website.body.model_dump(by_alias=True, mode="json")
    assert body["url"] == "https://example.com"
    assert body["lastAudit"]["id"] == "audit-1"
    assert [a["id"] for a in body["audits"]] == ["audit-1", "audit-10"]
    assert all(a["status"] == "RUNNING" for a in body["audits"])
    assert website.list_item == website.body
