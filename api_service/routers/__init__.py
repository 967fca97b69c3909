from fastapi import APIRouter, Depends

from api_service.dependencies import require_admin
from api_service.routers.card_field import card_field_router
from api_service.routers.form_schema import form_schema_router
from api_service.routers.formula import formula_router
from api_service.routers.lead import lead_router
from api_service.routers.lookup import lookup_router
from api_service.routers.shortcode_config import shortcode_config_router
from api_service.routers.widget import widget_router

admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])
admin_router.include_router(formula_router)
admin_router.include_router(lookup_router)
admin_router.include_router(card_field_router)
admin_router.include_router(lead_router)
admin_router.include_router(form_schema_router)
admin_router.include_router(shortcode_config_router)

__all__ = ["admin_router", "widget_router"]
