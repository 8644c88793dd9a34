from __future__ import annotations

from typing import List
from fastapi import APIRouter, HTTPException
import logging

from app.schemas import CategoryOut, ChoiceOut, FieldOut, RenderIn, RenderOut
from promptgen.workflow.categories import CATEGORIES, is_category
from promptgen.workflow import templates as tpl


router = APIRouter(prefix="/api/categories", tags=["categories"])
log = logging.getLogger("app.routes.categories")


def _require(category: str) -> str:
    if not is_category(category):
        raise HTTPException(status_code=404, detail=f"unknown category: {category}")
    return category


def _category_out(category: str) -> CategoryOut:
    fields = [
        FieldOut(
            id=f.id,
            label=f.label,
            placeholder=f.placeholder,
            kind=f.kind,
            default=f.default,
            choices=[ChoiceOut(value=c.value, label=c.label) for c in f.choices],
        )
        for f in tpl.fields_for(category)
    ]
    return CategoryOut(category=category, fields=fields)


@router.get("", response_model=List[CategoryOut])
def list_categories():
    log.info("category_list")
    return [_category_out(c) for c in CATEGORIES]


@router.get("/{category}", response_model=CategoryOut)
def get_category(category: str):
    log.info("category_get category=%s", category)
    _require(category)
    return _category_out(category)


@router.post("/{category}/render", response_model=RenderOut)
def render_instruction(category: str, body: RenderIn):
    _require(category)
    instruction = tpl.render(category, tpl.normalize_values(category, body.form_values))
    log.info("category_render category=%s instruction_len=%s", category, len(instruction))
    return RenderOut(category=category, instruction=instruction)
