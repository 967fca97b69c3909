import logging
import time

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from api_service.crud.card_field import fetch_card_fields
from api_service.crud.common import commit_or_raise
from api_service.crud.lookup import fetch_lookups
from api_service.formula.display import render_display
from api_service.formula.errors import FormulaError
from api_service.formula.guard import Deadline, elapsed_ms, run_guarded
from api_service.formula.loader import load_resolution_context
from api_service.formula.resolver import ShortcodeResolver
from api_service.formula.shortcodes import make_shortcode, normalize_name
from api_service.formula.validation import validate_formula
from api_service.schemas import (
    FormulaCreate,
    FormulaExecuteRequest,
    FormulaExecuteResponse,
    FormulaRenderRequest,
    FormulaUpdate,
    LookupTestResponse,
    ShortcodeInfo,
)
from config import settings
from models import Formula

log = logging.getLogger(__name__)


def check_formula_text(formula_text: str):
    validation = validate_formula(formula_text)
    if not validation.is_valid:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=validation.errors)


class FormulaService:
    @staticmethod
    async def get_all(session: AsyncSession, active_only: bool = False):
        stmt = select(Formula).order_by(Formula.name)
        if active_only:
            stmt = stmt.where(Formula.is_active.is_(True))
        result = await session.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def get_by_id(session: AsyncSession, formula_id: int):
        result = await session.execute(
            select(Formula).where(Formula.id == formula_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_name(session: AsyncSession, name: str):
        key = normalize_name(name)
        for formula in await FormulaService.get_all(session):
            if normalize_name(formula.name) == key:
                return formula
        return None

    @staticmethod
    async def _check_name_free(session: AsyncSession, name: str, formula_id: int | None = None):
        existing = await FormulaService.get_by_name(session, name)
        if existing is not None and existing.id != formula_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail=f"Formula name '{name}' is already used by '{existing.name}'")

    @staticmethod
    async def create(session: AsyncSession, data: FormulaCreate):
        check_formula_text(data.formula_text)
        await FormulaService._check_name_free(session, data.name)

        formula = Formula(**data.model_dump())
        session.add(formula)
        await commit_or_raise(session, f"Formula '{data.name}' already exists")
        await session.refresh(formula)
        return formula

    @staticmethod
    async def update(session: AsyncSession, formula_id: int, data: FormulaUpdate):
        formula = await FormulaService.get_by_id(session, formula_id)
        if not formula:
            return None

        values = data.model_dump(exclude_unset=True)
        if values.get("formula_text") is not None:
            check_formula_text(values["formula_text"])
        if values.get("name") is not None:
            await FormulaService._check_name_free(session, values["name"], formula_id)

        text_changed = values.get("formula_text") not in (None, formula.formula_text)
        for key, value in values.items():
            if value is not None:
                setattr(formula, key, value)
        if text_changed:
            formula.version += 1

        await commit_or_raise(session, f"Formula '{formula.name}' already exists")
        await session.refresh(formula)
        return formula

    @staticmethod
    async def delete(session: AsyncSession, formula_id: int):
        formula = await FormulaService.get_by_id(session, formula_id)
        if not formula:
            return None

        await session.delete(formula)
        await commit_or_raise(session, f"Cannot delete formula {formula_id}")
        return formula

    @staticmethod
    async def toggle(session: AsyncSession, formula_id: int, is_active: bool | None = None):
        formula = await FormulaService.get_by_id(session, formula_id)
        if not formula:
            return None

        formula.is_active = (not formula.is_active) if is_active is None else is_active
        await commit_or_raise(session, f"Cannot update formula {formula_id}")
        await session.refresh(formula)
        return formula

    @staticmethod
    async def execute(session: AsyncSession, request: FormulaExecuteRequest) -> FormulaExecuteResponse:
        if request.formula_text:
            template = request.formula_text
        elif request.formula_id is not None:
            formula = await FormulaService.get_by_id(session, request.formula_id)
            if not formula:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                    detail=f"Formula {request.formula_id} not found")
            template = formula.formula_text
        else:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                                detail="formula_text or formula_id is required")

        context = await load_resolution_context(session, request.fields, settings.formula.missing_field_policy)
        return run_guarded(template, context, settings.formula.timeout_seconds)

    @staticmethod
    async def render(session: AsyncSession, request: FormulaRenderRequest) -> str:
        context = await load_resolution_context(session, request.fields, settings.formula.missing_field_policy)
        return render_display(request.content, context, deadline=Deadline(settings.formula.timeout_seconds))

    @staticmethod
    async def test_lookup(session: AsyncSession, name: str, fields: dict) -> LookupTestResponse:
        context = await load_resolution_context(session, fields, settings.formula.missing_field_policy)
        started = time.perf_counter()
        resolver = ShortcodeResolver(context, deadline=Deadline(settings.formula.timeout_seconds))
        try:
            outcome = resolver.resolve_lookup(name)
        except FormulaError as e:
            log.info("lookup %s test failed: %s", name, e)
            return LookupTestResponse(success=False, error=str(e), execution_time=elapsed_ms(started))
        return LookupTestResponse(success=True, result=outcome.value, matched_condition=outcome.matched_condition,
                                  used_default=outcome.used_default, execution_time=elapsed_ms(started))

    @staticmethod
    async def shortcodes(session: AsyncSession) -> list[ShortcodeInfo]:
        items = list()
        for card_field in await fetch_card_fields(session):
            items.append(ShortcodeInfo(name=card_field.field_name,
                                       shortcode=make_shortcode("field", card_field.field_name),
                                       description=card_field.label, category="field"))
        for formula in await FormulaService.get_all(session, active_only=True):
            items.append(ShortcodeInfo(name=formula.name, shortcode=make_shortcode("calc", formula.name),
                                       description=formula.description or "", category="calc", unit=formula.unit))
        for lookup in await fetch_lookups(session, active_only=True):
            items.append(ShortcodeInfo(name=lookup.name, shortcode=make_shortcode("lookup", lookup.name),
                                       description=lookup.title or lookup.description or "", category="lookup"))
        return items
