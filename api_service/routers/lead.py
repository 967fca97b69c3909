from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.crud.lead import (
    CsvDateFormat,
    bulk_delete,
    bulk_update_status,
    csv_filename,
    delete_lead,
    fetch_lead,
    fetch_leads,
    leads_summary,
    leads_to_csv,
    update_lead_status,
)
from api_service.schemas import LeadBulkDelete, LeadBulkStatusUpdate, LeadResponse, LeadStatusUpdate, LeadSummary
from api_service.schemas.lead import LeadStatus
from engine import db

lead_router = APIRouter(prefix="/leads", tags=["Leads"])


@lead_router.get("", response_model=list[LeadResponse])
async def get_leads(status: LeadStatus | None = None,
                    limit: int = Query(default=100, ge=1, le=500),
                    offset: int = Query(default=0, ge=0),
                    session: AsyncSession = Depends(db.session_dependency)):
    return await fetch_leads(session, status=status, limit=limit, offset=offset)


@lead_router.get("/summary", response_model=LeadSummary)
async def get_leads_summary(session: AsyncSession = Depends(db.session_dependency)):
    return await leads_summary(session)


@lead_router.get("/export")
async def export_leads(status: LeadStatus | None = None,
                       date_format: CsvDateFormat = "finnish",
                       session: AsyncSession = Depends(db.session_dependency)):
    leads = await fetch_leads(session, status=status, limit=None)
    headers = {"Content-Disposition": f'attachment; filename="{csv_filename(len(leads), status)}"'}
    # BOM so spreadsheet apps pick up UTF-8
    return Response("\ufeff" + leads_to_csv(leads, date_format), headers=headers,
                    media_type="text/csv; charset=utf-8")


@lead_router.post("/bulk-update")
async def bulk_update_leads(body: LeadBulkStatusUpdate, session: AsyncSession = Depends(db.session_dependency)):
    updated = await bulk_update_status(session, body.ids, body.status)
    return {"success": True, "updated": updated}


@lead_router.post("/bulk-delete")
async def bulk_delete_leads(body: LeadBulkDelete, session: AsyncSession = Depends(db.session_dependency)):
    deleted = await bulk_delete(session, body.ids)
    return {"success": True, "deleted": deleted}


@lead_router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(lead_id: int, session: AsyncSession = Depends(db.session_dependency)):
    lead = await fetch_lead(session, lead_id)
    if lead is None:
        raise HTTPException(404, "Lead not found")
    return lead


@lead_router.patch("/{lead_id}/status", response_model=LeadResponse)
async def set_lead_status(lead_id: int, body: LeadStatusUpdate,
                          session: AsyncSession = Depends(db.session_dependency)):
    return await update_lead_status(session, lead_id, body.status)


@lead_router.delete("/{lead_id}")
async def remove_lead(lead_id: int, session: AsyncSession = Depends(db.session_dependency)):
    await delete_lead(session, lead_id)
    return {"status": "ok"}
