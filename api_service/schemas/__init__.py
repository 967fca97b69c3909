from api_service.schemas.card_field import CardField, CardFieldCreate, CardFieldUpdate, CardFieldResponse
from api_service.schemas.formula import (Formula, FormulaCreate, FormulaUpdate, FormulaResponse, FormulaToggleRequest,
                                         FormulaValidateRequest, FormulaValidateResponse, FormulaReferences,
                                         FormulaExecuteRequest, FormulaExecuteResponse, FormulaRenderRequest,
                                         FormulaRenderResponse, FormulaTemplate, FormulaVariable, ShortcodeInfo)
from api_service.schemas.form_schema import FormSchemaCreate, FormSchemaUpdate, FormSchemaResponse
from api_service.schemas.lead import (LeadResponse, LeadStatusUpdate, LeadSubmit, LeadSummary, LeadBulkDelete,
                                      LeadBulkStatusUpdate)
from api_service.schemas.lookup import (LookupTable, LookupCreate, LookupUpdate, LookupResponse, LookupTestRequest,
                                        LookupTestResponse, RuleCondition, LogicCondition, ConditionLogic,
                                        FieldCondition, FormulaAction, ValueAction, ErrorAction)
from api_service.schemas.shortcode_config import (ShortcodeConfigCreate, ShortcodeConfigUpdate,
                                                  ShortcodeConfigResponse, ShortcodeProcessRequest,
                                                  ShortcodeProcessResponse)

__all__ = list()

__all__ += ["CardField", "CardFieldCreate", "CardFieldUpdate", "CardFieldResponse"]
__all__ += [
    "Formula", "FormulaCreate", "FormulaUpdate", "FormulaResponse", "FormulaToggleRequest", "FormulaValidateRequest",
    "FormulaValidateResponse", "FormulaReferences", "FormulaExecuteRequest", "FormulaExecuteResponse",
    "FormulaRenderRequest", "FormulaRenderResponse", "FormulaTemplate", "FormulaVariable", "ShortcodeInfo"]
__all__ += ["FormSchemaCreate", "FormSchemaUpdate", "FormSchemaResponse"]
__all__ += ["LeadResponse", "LeadStatusUpdate", "LeadSubmit", "LeadSummary", "LeadBulkDelete", "LeadBulkStatusUpdate"]
__all__ += [
    "LookupTable", "LookupCreate", "LookupUpdate", "LookupResponse", "LookupTestRequest", "LookupTestResponse",
    "RuleCondition", "LogicCondition", "ConditionLogic", "FieldCondition", "FormulaAction", "ValueAction",
    "ErrorAction"]
__all__ += [
    "ShortcodeConfigCreate", "ShortcodeConfigUpdate", "ShortcodeConfigResponse", "ShortcodeProcessRequest",
    "ShortcodeProcessResponse"]
