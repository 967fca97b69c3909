from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from api_service.dependencies import require_admin, get_rate_limiter
from api_service.formula.functions import FUNCTION_DOCS
from api_service.formula.guard import RateLimiter
from api_service.formula.service import FormulaService
from api_service.formula.templates import ENERGY_CALCULATION_TEMPLATES
from api_service.formula.validation import validate_formula
from api_service.routers.widget import invalidate_widget_config
from api_service.schemas import (
    FormulaCreate,
    FormulaExecuteRequest,
    FormulaExecuteResponse,
    FormulaRenderRequest,
    FormulaRenderResponse,
    FormulaResponse,
    FormulaTemplate,
    FormulaToggleRequest,
    FormulaUpdate,
    FormulaValidateRequest,
    FormulaValidateResponse,
    ShortcodeInfo,
)
from config import settings
from engine import db

formula_router = APIRouter(prefix="/formulas", tags=["Formulas"])


@formula_router.get("/templates", response_model=list[FormulaTemplate])
async def get_formula_templates():
    return ENERGY_CALCULATION_TEMPLATES


@formula_router.get("/functions")
async def get_function_docs():
    return FUNCTION_DOCS


@formula_router.get("/shortcodes", response_model=list[ShortcodeInfo])
async def get_shortcodes(session: AsyncSession = Depends(db.session_dependency)):
    return await FormulaService.shortcodes(session)


@formula_router.post("/validate", response_model=FormulaValidateResponse)
async def validate_formula_api(body: FormulaValidateRequest):
    return validate_formula(body.formula_text)


@formula_router.post("/execute", response_model=FormulaExecuteResponse)
async def execute_formula(body: FormulaExecuteRequest,
                          identity: str = Depends(require_admin),
                          limiter: RateLimiter = Depends(get_rate_limiter),
                          session: AsyncSession = Depends(db.session_dependency)):
    if not await limiter.hit(identity):
        limited = FormulaExecuteResponse(
            success=False,
            error=f"Rate limit exceeded: {settings.formula.rate_limit} executions "
                  f"per {settings.formula.rate_window_seconds}s"
        )
        return JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content=limited.model_dump())
    return await FormulaService.execute(session, body)


@formula_router.post("/render", response_model=FormulaRenderResponse)
async def render_content(body: FormulaRenderRequest, session: AsyncSession = Depends(db.session_dependency)):
    result = await FormulaService.render(session, body)
    return FormulaRenderResponse(result=result)


@formula_router.get("", response_model=list[FormulaResponse])
async def get_all_formulas(active_only: bool = False, session: AsyncSession = Depends(db.session_dependency)):
    return await FormulaService.get_all(session, active_only=active_only)


@formula_router.post("", response_model=FormulaResponse, status_code=status.HTTP_201_CREATED)
async def create_formula(data: FormulaCreate, session: AsyncSession = Depends(db.session_dependency)):
    formula = await FormulaService.create(session, data)
    await invalidate_widget_config()
    return formula


@formula_router.get("/{formula_id}", response_model=FormulaResponse)
async def get_formula(formula_id: int, session: AsyncSession = Depends(db.session_dependency)):
    formula = await FormulaService.get_by_id(session, formula_id)
    if not formula:
        raise HTTPException(404, "Formula not found")
    return formula


@formula_router.put("/{formula_id}", response_model=FormulaResponse)
async def update_formula(formula_id: int, data: FormulaUpdate,
                         session: AsyncSession = Depends(db.session_dependency)):
    formula = await FormulaService.update(session, formula_id, data)
    if not formula:
        raise HTTPException(404, "Formula not found")
    await invalidate_widget_config()
    return formula


@formula_router.delete("/{formula_id}")
async def delete_formula(formula_id: int, session: AsyncSession = Depends(db.session_dependency)):
    formula = await FormulaService.delete(session, formula_id)
    if not formula:
        raise HTTPException(404, "Formula not found")
    await invalidate_widget_config()
    return {"status": "ok"}


@formula_router.post("/{formula_id}/toggle", response_model=FormulaResponse)
async def toggle_formula(formula_id: int, body: FormulaToggleRequest | None = None,
                         session: AsyncSession = Depends(db.session_dependency)):
    formula = await FormulaService.toggle(session, formula_id, body.is_active if body else None)
    if not formula:
        raise HTTPException(404, "Formula not found")
    await invalidate_widget_config()
    return formula
