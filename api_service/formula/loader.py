from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.crud.card_field import fetch_card_fields
from api_service.crud.lookup import fetch_lookups, lookup_to_schema
from api_service.formula.context import MissingFieldPolicy, ResolutionContext
from api_service.schemas.card_field import CardField
from api_service.schemas.formula import Formula
from models import Formula as FormulaModel


async def load_resolution_context(session: AsyncSession,
                                  fields: Mapping[str, Any] | None = None,
                                  missing_fields: MissingFieldPolicy = "error") -> ResolutionContext:
    """Snapshot of every formula, lookup and card field; the resolver itself never touches the database."""
    formulas = (await session.execute(select(FormulaModel))).scalars().all()
    lookups = await fetch_lookups(session)
    card_fields = await fetch_card_fields(session)

    return ResolutionContext(
        fields=fields,
        formulas=[Formula.model_validate(f) for f in formulas],
        lookups=[lookup_to_schema(lk) for lk in lookups],
        card_fields=[CardField.model_validate(cf) for cf in card_fields],
        missing_fields=missing_fields,
    )
