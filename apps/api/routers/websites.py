"""
Website endpoints: audits grouped by the URL they ran against.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from audits.website import WebsiteBody
from database import get_db
from services.list_helpers import ListResponse, list_options_from_query
from services.websites import get_website_by_audit_id, get_website_by_url, get_websites

router = APIRouter()

AUDIT_PAGING_PREFIX = "audit-"


def _paging(request: Request):
    query = request.query_params
    website_options = list_options_from_query(query)
    audit_options = list_options_from_query(
        query,
        prefix=AUDIT_PAGING_PREFIX,
        default_limit=None,
        default_offset=None,
    )
    return website_options, audit_options


@router.get("/v1/audits/{audit_id}/website", response_model=WebsiteBody)
async def read_website_for_audit(
    audit_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    website_options, audit_options = _paging(request)
    website = await get_website_by_audit_id(db, audit_id, website_options, audit_options)
    return website.body


@router.get("/v1/websites", response_model=ListResponse[WebsiteBody])
async def list_websites(request: Request, db: AsyncSession = Depends(get_db)):
    return await get_websites(db, list_options_from_query(request.query_params))


@router.get("/v1/websites/{website_url:path}", response_model=WebsiteBody)
async def read_website(
    website_url: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """`website_url` is the URL-encoded audited URL."""
    website_options, audit_options = _paging(request)
    website = await get_website_by_url(db, website_url, website_options, audit_options)
    return website.body
