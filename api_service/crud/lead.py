import csv
import io
from datetime import datetime, timedelta, timezone
from typing import Literal

from sqlalchemy import delete, select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.crud.common import commit_or_raise, not_found
from api_service.schemas.lead import LeadStatus, LeadSubmit, LeadSummary
from models import Lead

CsvDateFormat = Literal["finnish", "iso"]

CSV_LEAD_COLUMNS = (
    "id", "first_name", "last_name", "email", "phone", "city",
    "heating_type", "status", "source_page", "created_at",
)


async def fetch_leads(session: AsyncSession, status: LeadStatus | None = None,
                      limit: int | None = 100, offset: int = 0) -> list[Lead]:
    stmt = select(Lead).order_by(Lead.created_at.desc(), Lead.id.desc()).limit(limit).offset(offset)
    if status:
        stmt = stmt.where(Lead.status == status)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_lead(session: AsyncSession, lead_id: int) -> Lead | None:
    result = await session.execute(select(Lead).where(Lead.id == lead_id))
    return result.scalar_one_or_none()


async def create_lead(session: AsyncSession, data: LeadSubmit, calculation_results: dict) -> Lead:
    lead = Lead(**data.model_dump(), calculation_results=calculation_results, status="new")
    session.add(lead)
    await commit_or_raise(session, "Lead could not be stored")
    await session.refresh(lead)
    return lead


async def update_lead_status(session: AsyncSession, lead_id: int, status: LeadStatus) -> Lead:
    lead = await fetch_lead(session, lead_id)
    if lead is None:
        raise not_found("Lead", lead_id)
    lead.status = status
    await commit_or_raise(session, f"Cannot update lead {lead_id}")
    return lead


async def delete_lead(session: AsyncSession, lead_id: int):
    lead = await fetch_lead(session, lead_id)
    if lead is None:
        raise not_found("Lead", lead_id)
    await session.delete(lead)
    await commit_or_raise(session, f"Cannot delete lead {lead_id}")


async def leads_summary(session: AsyncSession) -> LeadSummary:
    total = (await session.execute(select(func.count(Lead.id)))).scalar_one()

    week_ago = datetime.now(timezone.utc) - timedelta(days=7)
    last_7_days = (await session.execute(
        select(func.count(Lead.id)).where(Lead.created_at >= week_ago)
    )).scalar_one()

    by_status = await session.execute(select(Lead.status, func.count(Lead.id)).group_by(Lead.status))
    by_heating = await session.execute(
        select(Lead.heating_type, func.count(Lead.id)).where(Lead.heating_type.is_not(None))
        .group_by(Lead.heating_type)
    )

    return LeadSummary(
        total=total,
        last_7_days=last_7_days,
        by_status={row[0]: row[1] for row in by_status.all()},
        by_heating_type={row[0]: row[1] for row in by_heating.all()},
    )


async def bulk_update_status(session: AsyncSession, ids: list[int], status: LeadStatus) -> int:
    result = await session.execute(update(Lead).where(Lead.id.in_(ids)).values(status=status))
    await commit_or_raise(session, "Cannot update leads")
    return result.rowcount


async def bulk_delete(session: AsyncSession, ids: list[int]) -> int:
    result = await session.execute(delete(Lead).where(Lead.id.in_(ids)))
    await commit_or_raise(session, "Cannot delete leads")
    return result.rowcount


def format_csv_date(value: datetime | None, date_format: CsvDateFormat) -> str:
    if value is None:
        return ""
    if date_format == "finnish":
        return value.strftime("%d.%m.%Y %H:%M")
    return value.isoformat()


def leads_to_csv(leads: list[Lead], date_format: CsvDateFormat = "finnish") -> str:
    """
    Contact columns first, then one `form:<key>` column per submitted form key and
    one `result:<name>` column per calculation result seen in any of the leads.
    """
    form_keys = sorted({key for lead in leads for key in (lead.form_data or {})})
    result_keys = sorted({key for lead in leads for key in (lead.calculation_results or {})})
    columns = (list(CSV_LEAD_COLUMNS) + [f"form:{key}" for key in form_keys]
               + [f"result:{key}" for key in result_keys])

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=columns, lineterminator="\n")
    writer.writeheader()
    for lead in leads:
        row = {column: getattr(lead, column) for column in CSV_LEAD_COLUMNS}
        row["created_at"] = format_csv_date(lead.created_at, date_format)
        row.update({f"form:{key}": value for key, value in (lead.form_data or {}).items()})
        row.update({f"result:{key}": value for key, value in (lead.calculation_results or {}).items()})
        writer.writerow(row)
    return buf.getvalue()


def csv_filename(total: int, status: LeadStatus | None = None) -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M")
    parts = [f"leads-export-{timestamp}"]
    if status:
        parts.append(f"status-{status}")
    parts.append(f"({total}-leads)")
    return "-".join(parts) + ".csv"
