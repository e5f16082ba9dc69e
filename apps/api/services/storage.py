"""
Storage gateway for audits and the websites derived from them.

Every function takes the caller's AsyncSession; writes commit before returning.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from audits.models import Audit
from audits.website import Website
from errors import NotFoundError, StatusCodeError
from models.lighthouse_audit import LighthouseAudit
from services.list_helpers import ListRequest, apply_list_request

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _upsert_insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    try:
        return _UPSERT_INSERTS[dialect]
    except KeyError:
        raise StatusCodeError(f"Upserts are not supported for the {dialect} dialect")


async def persist_audit(db: AsyncSession, audit: Audit) -> None:
    """Insert the audit, or overwrite every mutable column of the row with its id."""
    values = {
        "url": audit.url,
        "time_created": audit.time_created,
        "time_completed": audit.time_completed,
        "report_json": audit.report_json,
    }
    insert = _upsert_insert_for(db)
    stmt = insert(LighthouseAudit).values(id=audit.id, **values)
    stmt = stmt.on_conflict_do_update(index_elements=[LighthouseAudit.id], set_=values)
    await db.execute(stmt)
    await db.commit()


async def retrieve_audit_list(db: AsyncSession, options: Optional[ListRequest] = None) -> List[Audit]:
    """Audits newest first, optionally filtered and paged."""
    options = options or ListRequest()
    # Upserts bypass the identity map, so always reload rows already held by the session.
    stmt = select(LighthouseAudit).execution_options(populate_existing=True)
    if options.where is not None:
        stmt = stmt.where(options.where)
    stmt = stmt.order_by(LighthouseAudit.time_created.desc())
    stmt = apply_list_request(stmt, options)
    result = await db.execute(stmt)
    return [Audit.build_for_row(row) for row in result.scalars().all()]


async def retrieve_audit_count(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(LighthouseAudit))
    return int(result.scalar_one())


async def retrieve_audit_by_id(db: AsyncSession, audit_id: str) -> Audit:
    audits = await retrieve_audit_list(db, ListRequest(where=LighthouseAudit.id == audit_id))
    if not audits:
        raise NotFoundError(f'audit not found for id "{audit_id}"')
    return audits[0]


async def delete_audit_by_id(db: AsyncSession, audit_id: str) -> Audit:
    """Delete the row and return the audit it held."""
    result = await db.execute(
        delete(LighthouseAudit)
        .where(LighthouseAudit.id == audit_id)
        .returning(LighthouseAudit)
    )
    row = result.scalar_one_or_none()
    if row is None:
        await db.rollback()
        raise NotFoundError(f'audit not found for id "{audit_id}"')
    audit = Audit.build_for_row(row)
    await db.commit()
    return audit


async def retrieve_website_list(
    db: AsyncSession,
    website_options: Optional[ListRequest] = None,
    audit_options: Optional[ListRequest] = None,
) -> List[Website]:
    """
    One website per distinct URL, most recently audited first.

    URLs are grouped, ordered and paged in SQL with `website_options`; each
    website's audits are then loaded newest first and paged with `audit_options`.
    A website whose audit page comes back empty (offset past its last audit)
    is left out rather than built with no audits.
    """
    website_options = website_options or ListRequest()
    time_last_created = func.max(LighthouseAudit.time_created).label("time_last_created")
    stmt = select(LighthouseAudit.url, time_last_created)
    if website_options.where is not None:
        stmt = stmt.where(website_options.where)
    stmt = stmt.group_by(LighthouseAudit.url).order_by(time_last_created.desc())
    stmt = apply_list_request(stmt, website_options)
    urls = (await db.execute(stmt)).scalars().all()

    websites: List[Website] = []
    for url in urls:
        audit_request = ListRequest(
            limit=audit_options.limit if audit_options else None,
            offset=audit_options.offset if audit_options else None,
            where=LighthouseAudit.url == url,
        )
        audits = await retrieve_audit_list(db, audit_request)
        if not audits:
            logger.debug("Skipping website %s: no audits in the requested page", url)
            continue
        websites.append(Website(url, audits))
    return websites


async def retrieve_website_total(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(func.distinct(LighthouseAudit.url))))
    return int(result.scalar_one())


async def retrieve_website_by_url(
    db: AsyncSession,
    url: str,
    website_options: Optional[ListRequest] = None,
    audit_options: Optional[ListRequest] = None,
) -> Website:
    websites = await retrieve_website_list(
        db,
        _scoped(website_options, LighthouseAudit.url == url),
        audit_options,
    )
    if not websites:
        raise NotFoundError(f'no audited website found for url "{url}"')
    return websites[0]


async def retrieve_website_by_audit_id(
    db: AsyncSession,
    audit_id: str,
    website_options: Optional[ListRequest] = None,
    audit_options: Optional[ListRequest] = None,
) -> Website:
    owner = aliased(LighthouseAudit)
    owning_url = select(owner.url).where(owner.id == audit_id)
    websites = await retrieve_website_list(
        db,
        _scoped(website_options, LighthouseAudit.url.in_(owning_url)),
        audit_options,
    )
    if not websites:
        raise NotFoundError(f'no website found for audit id "{audit_id}"')
    return websites[0]


def _scoped(options: Optional[ListRequest], where) -> ListRequest:
    options = options or ListRequest()
    return ListRequest(limit=options.limit, offset=options.offset, where=where)
