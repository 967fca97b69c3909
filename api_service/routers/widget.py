import json
import logging

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from fastapi_cache import FastAPICache
from sqlalchemy.ext.asyncio import AsyncSession

from api_service.crud.card_field import fetch_card_fields
from api_service.crud.lead import create_lead
from api_service.crud.lookup import fetch_lookups
from api_service.formula.errors import FormulaError
from api_service.formula.guard import Deadline
from api_service.formula.loader import load_resolution_context
from api_service.formula.resolver import ShortcodeResolver
from api_service.formula.shortcodes import make_shortcode
from api_service.formula.service import FormulaService
from api_service.schemas import CardFieldResponse, LeadResponse, LeadSubmit
from config import settings
from engine import db

log = logging.getLogger(__name__)

widget_router = APIRouter(prefix="/widget", tags=["Widget"])

WIDGET_CONFIG_KEY = "widget-config"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def cache_headers() -> dict:
    return {
        **CORS_HEADERS,
        "Cache-Control": f"public, max-age={settings.widget.browser_max_age}, "
                         f"s-maxage={settings.widget.cdn_max_age}",
    }


def widget_cache_key() -> str:
    return f"{FastAPICache.get_prefix()}:{WIDGET_CONFIG_KEY}"


def deserialize(raw):
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None


async def invalidate_widget_config():
    backend = FastAPICache.get_backend()
    key = widget_cache_key()
    if await backend.get(key) is not None:
        await backend.clear(key=key)
        log.info("widget config cache cleared")


async def build_widget_config(session: AsyncSession) -> dict:
    card_fields = await fetch_card_fields(session)
    formulas = await FormulaService.get_all(session, active_only=True)
    lookups = await fetch_lookups(session, active_only=True)
    return jsonable_encoder({
        "card_fields": [CardFieldResponse.model_validate(cf) for cf in card_fields],
        "formulas": [
            {"name": f.name, "shortcode": make_shortcode("calc", f.name), "unit": f.unit,
             "description": f.description, "formula_type": f.formula_type}
            for f in formulas
        ],
        "lookups": [
            {"name": lk.name, "shortcode": make_shortcode("lookup", lk.name), "title": lk.title}
            for lk in lookups
        ],
    })


@widget_router.get("/config")
async def get_widget_config(session: AsyncSession = Depends(db.session_dependency)):
    backend = FastAPICache.get_backend()
    key = widget_cache_key()

    cached = deserialize(await backend.get(key))
    if cached is not None:
        return JSONResponse(content=cached, headers={**cache_headers(), "X-Cache": "HIT"})

    config = await build_widget_config(session)
    await backend.set(key, json.dumps(config).encode("utf-8"), settings.widget.cdn_max_age)
    return JSONResponse(content=config, headers={**cache_headers(), "X-Cache": "MISS"})


@widget_router.options("/config")
async def widget_config_options():
    return Response(status_code=200, headers=CORS_HEADERS)


@widget_router.post("/leads", response_model=LeadResponse, status_code=201)
async def submit_lead(data: LeadSubmit, session: AsyncSession = Depends(db.session_dependency)):
    context = await load_resolution_context(session, data.form_data, "default")
    resolver = ShortcodeResolver(context, deadline=Deadline(settings.formula.timeout_seconds))

    results = dict()
    for formula in await FormulaService.get_all(session, active_only=True):
        try:
            results[formula.name] = resolver.resolve_calc(formula.name)
        except FormulaError as e:
            log.info("lead calculation %s skipped: %s", formula.name, e)

    lead = await create_lead(session, data, results)
    return lead
