"""
Results sync API routes.
"""
from fastapi import APIRouter, Depends, HTTPException

from ..context import AppContext, get_context
from ..exceptions import IntegrityViolation
from ..schemas import SyncRunResponse, SyncStatusResponse

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(ctx: AppContext = Depends(get_context)):
    """Scheduler state and the outcome of the most recent pass."""
    last_run = await ctx.reconciler.last_run()
    return {
        "scheduler_running": ctx.scheduler.is_running,
        "poll_interval_hours": ctx.settings.poll_interval_hours,
        "next_run": ctx.scheduler.next_run,
        "last_run": SyncRunResponse.model_validate(last_run) if last_run else None,
    }


@router.post("")
async def trigger_sync(ctx: AppContext = Depends(get_context)):
    """Run one pass now and return its summary."""
    try:
        results = await ctx.scheduler.trigger_now()
    except IntegrityViolation as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "success", "results": results}
