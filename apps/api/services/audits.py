"""
Audit orchestration: trigger, run and reconcile Lighthouse audits.

A triggered audit is stored as RUNNING before any work starts. The pipeline
(wait for the target, launch Chrome, run Lighthouse) then finishes it exactly
once, as COMPLETED with a report or FAILED without one, and the finished audit
is stored again. Pipeline failures never escape `run_audit`; only validation
errors reach the caller of `trigger_audit`.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from audits.models import Audit, AuditListItem
from config import settings
from database import async_session_maker
from services.browser import launch_chrome, wait_until_up
from services.lighthouse import run_lighthouse
from services.list_helpers import ListRequest, ListResponse, get_list_response
from services.storage import (
    delete_audit_by_id,
    persist_audit,
    retrieve_audit_by_id,
    retrieve_audit_count,
    retrieve_audit_list,
)

logger = logging.getLogger(__name__)

_pending_audits: Set[asyncio.Task] = set()


class AuditOptions(BaseModel):
    """Per-request knobs for one audit run; unset values fall back to settings."""

    model_config = ConfigDict(populate_by_name=True)

    await_audit_completed: bool = Field(default=False, alias="awaitAuditCompleted")
    up_timeout: Optional[int] = Field(default=None, alias="upTimeout")  # milliseconds
    chrome_port: Optional[int] = Field(default=None, alias="chromePort")
    chrome_path: Optional[str] = Field(default=None, alias="chromePath")
    lighthouse_config: Dict[str, Any] = Field(default_factory=dict, alias="lighthouseConfig")
    chrome_args: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("chromeArgs", "puppeteerArgs", "chrome_args"),
    )


async def trigger_audit(
    db: AsyncSession,
    url: Optional[str],
    options: Optional[AuditOptions] = None,
) -> Audit:
    """
    Validate `url`, store a RUNNING audit for it and start the pipeline.

    With `await_audit_completed` the pipeline runs inline and the returned
    audit is already finished and stored; otherwise it runs as a background
    task and callers poll `get_audit` to see the outcome.
    """
    options = options or AuditOptions()
    audit = Audit.build_for_url(url)
    await persist_audit(db, audit)

    if options.await_audit_completed:
        await run_audit(audit, options)
        await persist_audit(db, audit)
    else:
        task = asyncio.create_task(_run_and_persist(audit, options))
        _pending_audits.add(task)
        task.add_done_callback(_pending_audits.discard)

    return audit


async def _run_and_persist(audit: Audit, options: AuditOptions) -> None:
    await run_audit(audit, options)
    try:
        async with async_session_maker() as db:
            await persist_audit(db, audit)
    except Exception:
        audit.logger.exception(f"Could not store finished audit as {audit.status.value}; stored row stays RUNNING")


async def drain_background_audits() -> None:
    """Wait until every background audit has run and stored its outcome."""
    while _pending_audits:
        await asyncio.gather(*list(_pending_audits), return_exceptions=True)


def pending_audit_count() -> int:
    return len(_pending_audits)


async def run_audit(audit: Audit, options: Optional[AuditOptions] = None) -> Audit:
    """Run the three pipeline stages, finishing `audit` exactly once."""
    options = options or AuditOptions()
    up_timeout = options.up_timeout if options.up_timeout is not None else settings.DEFAULT_UP_TIMEOUT_MS
    chrome_port = options.chrome_port or settings.DEFAULT_CHROME_PORT
    chrome_path = options.chrome_path or settings.CHROME_PATH
    log = audit.logger
    log.info(f"Starting Lighthouse audit of {audit.url}")

    try:
        log.debug(f"Waiting up to {up_timeout}ms for the URL to be up...")
        await wait_until_up(audit.url, up_timeout)
    except Exception as exc:
        log.error(f"Failed while waiting for the URL to become available: {exc}")
        return audit.mark_completed()

    try:
        log.debug(f"Launching Chrome on debugging port {chrome_port}...")
        chrome = await launch_chrome(chrome_port, chrome_path, options.chrome_args)
    except Exception as exc:
        log.error(f"Failed to launch Chrome: {exc}")
        return audit.mark_completed()

    try:
        log.debug("Running Lighthouse audit...")
        report = await run_lighthouse(audit.url, chrome_port, options.lighthouse_config)
        if not report:
            raise ValueError("Lighthouse audit did not return a valid report.")
        audit.update_with_report(report)
        log.info("Lighthouse audit finished successfully.")
    except Exception as exc:
        log.error(f"Failed while running the Lighthouse audit: {exc}")
        audit.mark_completed()
    finally:
        try:
            await chrome.close()
        except Exception as exc:
            log.warning(f"Could not close Chrome cleanly: {exc}")

    return audit


async def get_audit(db: AsyncSession, audit_id: str) -> Audit:
    return await retrieve_audit_by_id(db, audit_id)


async def delete_audit(db: AsyncSession, audit_id: str) -> Audit:
    return await delete_audit_by_id(db, audit_id)


async def _audit_list_items(db: AsyncSession, options: ListRequest) -> List[AuditListItem]:
    return [audit.list_item for audit in await retrieve_audit_list(db, options)]


async def get_audits(db: AsyncSession, options: ListRequest) -> ListResponse:
    return await get_list_response(db, options, _audit_list_items, retrieve_audit_count)
