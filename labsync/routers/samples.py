"""
Sample listing and registration routes.
"""
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..context import AppContext, get_context, get_db
from ..pages import render_index
from ..schemas import SampleCreate, SampleListResponse, SampleResponse
from ..services.samples import SampleService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["samples"])


@router.get("/", response_class=HTMLResponse)
async def index(
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Recent samples and the form to register a new one."""
    samples = await SampleService(db).list_samples(ctx.settings.listing_limit)
    return HTMLResponse(content=render_index(ctx.settings.app_name, ctx.roster.people, samples))


@router.post("/new")
async def new_sample(
    person: str = Form(default=""),
    barcode: str = Form(default=""),
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Form handler: register a sample then go back to the listing."""
    service = SampleService(db, ctx.resolver)
    try:
        await service.add_sample(person, barcode)
    except ValueError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=400, detail=str(e))
    return RedirectResponse(url="/", status_code=303)


@router.get("/api/samples", response_model=SampleListResponse)
async def list_samples(
    limit: int = Query(default=10, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    samples = await SampleService(db).list_samples(limit)
    return {"samples": samples}


@router.post("/api/samples", response_model=SampleResponse, status_code=201)
async def create_sample(
    request: SampleCreate,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    service = SampleService(db, ctx.resolver)
    try:
        sample = await service.add_sample(request.person, request.barcode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return sample
