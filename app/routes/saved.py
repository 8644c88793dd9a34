from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
import logging

from app.deps import busy, get_workflow, saved_out, state_out
from app.schemas import DeleteOut, SavedResultOut, WorkflowStateOut
from promptgen.workflow.runner import GenerationWorkflow, WorkflowBusyError


router = APIRouter(prefix="/api/saved", tags=["saved"])
log = logging.getLogger("app.routes.saved")


@router.get("", response_model=List[SavedResultOut])
async def list_saved(wf: GenerationWorkflow = Depends(get_workflow)):
    log.info("saved_list count=%s", len(wf.saved))
    return [saved_out(s) for s in wf.saved]


@router.get("/{saved_id}", response_model=SavedResultOut)
async def get_saved(saved_id: str, wf: GenerationWorkflow = Depends(get_workflow)):
    item = wf.find_saved(saved_id)
    if not item:
        raise HTTPException(status_code=404, detail="saved prompt not found")
    return saved_out(item)


@router.delete("/{saved_id}", response_model=DeleteOut)
async def delete_saved(saved_id: str, wf: GenerationWorkflow = Depends(get_workflow)):
    deleted = wf.delete_saved(saved_id)
    log.info("saved_delete id=%s deleted=%s", saved_id, deleted)
    return DeleteOut(id=saved_id, deleted=deleted)


@router.post("/{saved_id}/select", response_model=WorkflowStateOut)
async def select_saved(saved_id: str, wf: GenerationWorkflow = Depends(get_workflow)):
    log.info("saved_select id=%s status=%s", saved_id, wf.status)
    item = wf.find_saved(saved_id)
    if not item:
        raise HTTPException(status_code=404, detail="saved prompt not found")
    try:
        wf.select_saved(item)
    except WorkflowBusyError as e:
        raise busy(e)
    return state_out(wf)
