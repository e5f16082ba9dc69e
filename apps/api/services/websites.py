"""Website views over stored audits."""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from audits.website import Website, WebsiteBody
from services.list_helpers import ListRequest, ListResponse, get_list_response
from services.storage import (
    retrieve_website_by_audit_id,
    retrieve_website_by_url,
    retrieve_website_list,
    retrieve_website_total,
)


async def _website_list_items(db: AsyncSession, options: ListRequest) -> List[WebsiteBody]:
    return [website.list_item for website in await retrieve_website_list(db, options)]


async def get_websites(db: AsyncSession, options: ListRequest) -> ListResponse:
    return await get_list_response(db, options, _website_list_items, retrieve_website_total)


async def get_website_by_url(
    db: AsyncSession,
    url: str,
    website_options: Optional[ListRequest] = None,
    audit_options: Optional[ListRequest] = None,
) -> Website:
    return await retrieve_website_by_url(db, url, website_options, audit_options)


async def get_website_by_audit_id(
    db: AsyncSession,
    audit_id: str,
    website_options: Optional[ListRequest] = None,
    audit_options: Optional[ListRequest] = None,
) -> Website:
    return await retrieve_website_by_audit_id(db, audit_id, website_options, audit_options)
