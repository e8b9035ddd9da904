import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from media_catalog.api.routers.deps import get_orchestrator, get_registry
from media_catalog.models.catalog import SiteCreate, SiteCreated, SiteOut
from media_catalog.services.crawl.base import RegistrationInputError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sites"])


async def _refresh_in_background(orchestrator) -> None:
    try:
        await orchestrator.refresh()
    except Exception:  # pylint: disable=broad-except
        logger.exception("Refresh triggered by registration failed")


@router.post("/add-site", response_model=SiteCreated)
def api_add_site(
    payload: SiteCreate,
    background_tasks: BackgroundTasks,
    registry=Depends(get_registry),
    orchestrator=Depends(get_orchestrator),
):
    """Register a site and re-crawl every registered site in the background."""
    try:
        site = registry.register(payload.url)
    except RegistrationInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    background_tasks.add_task(_refresh_in_background, orchestrator)
    return {"success": True, "catalogId": site.catalog_id}


@router.get("/sites", response_model=List[SiteOut])
def api_list_sites(registry=Depends(get_registry)):
    return [{"catalogId": s.catalog_id, "url": s.url} for s in registry.list_all()]


@router.post("/refresh", status_code=202)
def api_refresh(background_tasks: BackgroundTasks, orchestrator=Depends(get_orchestrator)):
    queued = orchestrator.running
    background_tasks.add_task(_refresh_in_background, orchestrator)
    return {"status": "queued" if queued else "started"}
