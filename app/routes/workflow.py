from __future__ import annotations

import logging
from fastapi import APIRouter, Depends

from app.deps import busy, get_workflow, saved_out, state_out
from app.schemas import FieldsIn, GenerateIn, SaveOut, SelectCategoryIn, WorkflowStateOut
from promptgen.workflow.runner import GenerationWorkflow, WorkflowBusyError


router = APIRouter(prefix="/api/workflow", tags=["workflow"])
log = logging.getLogger("app.routes.workflow")

SAVED_MESSAGE = "¡Prompt guardado!"


@router.get("", response_model=WorkflowStateOut)
async def get_state(wf: GenerationWorkflow = Depends(get_workflow)):
    return state_out(wf)


@router.post("/category", response_model=WorkflowStateOut)
async def select_category(body: SelectCategoryIn, wf: GenerationWorkflow = Depends(get_workflow)):
    log.info("select_category_enter category=%s status=%s", body.category, wf.status)
    try:
        wf.select_category(body.category)
    except WorkflowBusyError as e:
        raise busy(e)
    return state_out(wf)


@router.patch("/fields", response_model=WorkflowStateOut)
async def update_fields(body: FieldsIn, wf: GenerationWorkflow = Depends(get_workflow)):
    ignored = [k for k, v in body.form_values.items() if not wf.set_field(k, v)]
    log.info("update_fields category=%s fields=%s ignored=%s", wf.category, len(body.form_values), ignored)
    return state_out(wf)


@router.post("/generate", response_model=WorkflowStateOut)
async def generate(body: GenerateIn, wf: GenerationWorkflow = Depends(get_workflow)):
    log.info("generate_enter category=%s status=%s", wf.category, wf.status)
    try:
        await wf.generate(body.form_values)
    except WorkflowBusyError as e:
        raise busy(e)
    log.info("generate_exit category=%s result_len=%s", wf.category, len(wf.generated_text or ""))
    return state_out(wf)


@router.post("/improve", response_model=WorkflowStateOut)
async def improve(wf: GenerationWorkflow = Depends(get_workflow)):
    log.info("improve_enter category=%s status=%s", wf.category, wf.status)
    try:
        await wf.improve()
    except WorkflowBusyError as e:
        raise busy(e)
    return state_out(wf)


@router.post("/save", response_model=SaveOut)
async def save(wf: GenerationWorkflow = Depends(get_workflow)):
    item = wf.save()
    if item is None:
        log.info("save_skipped category=%s", wf.category)
        return SaveOut(saved=None, message=None)
    return SaveOut(saved=saved_out(item), message=SAVED_MESSAGE)
