from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from app.config import settings
from app.gemini import GeminiCompleter
from app.schemas import SavedResultOut, WorkflowStateOut
from app.store import build_store
from promptgen.workflow.runner import GenerationWorkflow, SavedResult, WorkflowBusyError


log = logging.getLogger("app.deps")


def build_workflow() -> GenerationWorkflow:
    store = build_store(settings)
    completer = GeminiCompleter(api_key=settings.gemini_api_key, timeout=settings.gemini_timeout)
    log.info("workflow_build store=%s model=%s", type(store).__name__, settings.gemini_model)
    return GenerationWorkflow(completer=completer, store=store, model=settings.gemini_model)


async def get_workflow(request: Request) -> GenerationWorkflow:
    # Built on first use so the saved list is loaded after configuration is in place
    wf = getattr(request.app.state, "workflow", None)
    if wf is None:
        wf = build_workflow()
        request.app.state.workflow = wf
    return wf


def busy(e: WorkflowBusyError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


def state_out(wf: GenerationWorkflow) -> WorkflowStateOut:
    return WorkflowStateOut(**wf.state())


def saved_out(item: SavedResult) -> SavedResultOut:
    return SavedResultOut(id=item.id, category=item.category, form_values=dict(item.form_values), text=item.text)
