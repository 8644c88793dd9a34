from __future__ import annotations

from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, constr


CategoryName = Literal["TEXTO", "IMAGEN", "VIDEO", "SONIDO", "CODIGO"]
SavedId = constr(strip_whitespace=True, min_length=1)


class ChoiceOut(BaseModel):
    value: str
    label: str


class FieldOut(BaseModel):
    id: str
    label: str
    placeholder: str
    kind: Literal["input", "textarea", "select"]
    default: Optional[str] = None
    choices: List[ChoiceOut] = []


class CategoryOut(BaseModel):
    category: CategoryName
    fields: List[FieldOut]


class RenderIn(BaseModel):
    form_values: Dict[str, Optional[str]] = {}


class RenderOut(BaseModel):
    category: CategoryName
    instruction: str


class WorkflowStateOut(BaseModel):
    status: Literal["idle", "pending"]
    category: CategoryName
    form_values: Dict[str, str]
    generated_text: Optional[str] = None
    can_save: bool
    saved_count: int


class SelectCategoryIn(BaseModel):
    category: CategoryName


class FieldsIn(BaseModel):
    form_values: Dict[str, Optional[str]]


class GenerateIn(BaseModel):
    # when omitted, the current form values are used
    form_values: Optional[Dict[str, Optional[str]]] = None


class SavedResultOut(BaseModel):
    id: SavedId
    category: CategoryName
    form_values: Dict[str, str]
    text: str


class SaveOut(BaseModel):
    saved: Optional[SavedResultOut] = None
    message: Optional[str] = None


class DeleteOut(BaseModel):
    id: str
    deleted: bool
