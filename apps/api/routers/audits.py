"""
Audit endpoints: trigger, list, read and delete Lighthouse audits.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from audits.models import AuditBody, AuditListItem
from database import get_db
from services.audits import AuditOptions, delete_audit, get_audit, get_audits, trigger_audit
from services.list_helpers import ListResponse, list_options_from_query
from services.report_html import render_report_html

router = APIRouter()
logger = logging.getLogger(__name__)


class TriggerAuditRequest(BaseModel):
    # Optional so a missing url surfaces as a 400 from validation, not a 422.
    url: Optional[str] = None
    options: Optional[AuditOptions] = None


@router.post("/v1/audits", status_code=201, response_model=AuditBody)
async def create_audit(
    request: TriggerAuditRequest,
    db: AsyncSession = Depends(get_db),
):
    """Start an audit; returns it RUNNING unless awaitAuditCompleted was set."""
    audit = await trigger_audit(db, request.url, request.options)
    return audit.body


@router.get("/v1/audits", response_model=ListResponse[AuditListItem])
async def list_audits(request: Request, db: AsyncSession = Depends(get_db)):
    return await get_audits(db, list_options_from_query(request.query_params))


@router.get("/v1/audits/{audit_id}", response_model=None)
async def read_audit(
    audit_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """JSON body when the client asks for JSON, the rendered report otherwise."""
    audit = await get_audit(db, audit_id)
    if "application/json" in request.headers.get("accept", ""):
        return JSONResponse(jsonable_encoder(audit.body, by_alias=True))
    return HTMLResponse(render_report_html(audit))


@router.delete("/v1/audits/{audit_id}", response_model=AuditBody)
async def remove_audit(audit_id: str, db: AsyncSession = Depends(get_db)):
    audit = await delete_audit(db, audit_id)
    logger.info("Deleted audit %s", audit_id)
    return audit.body
