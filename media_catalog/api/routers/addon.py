from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from media_catalog.api.routers.deps import get_registry, get_store
from media_catalog.models.catalog import CatalogResponse, Manifest, MetaResponse, StreamResponse
from media_catalog.services.catalog_service import (
    build_manifest,
    get_meta,
    get_streams,
    list_catalog,
    parse_extra,
)
from media_catalog.services.crawl.base import StoreFailure

router = APIRouter(tags=["addon"])


@router.get("/manifest.json", response_model=Manifest)
def api_manifest(registry=Depends(get_registry)):
    return build_manifest(registry.list_all())


def _catalog(store, catalog_id: str, extra: Optional[str]):
    search = parse_extra(extra).get("search")
    try:
        return {"metas": list_catalog(store, catalog_id, search)}
    except StoreFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@router.get("/catalog/{type}/{catalog_id}.json", response_model=CatalogResponse)
def api_catalog(type: str, catalog_id: str, store=Depends(get_store)):
    return _catalog(store, catalog_id, None)


@router.get("/catalog/{type}/{catalog_id}/{extra}.json", response_model=CatalogResponse)
def api_catalog_extra(type: str, catalog_id: str, extra: str, store=Depends(get_store)):
    return _catalog(store, catalog_id, extra)


@router.get(
    "/meta/{type}/{entry_id}.json",
    response_model=MetaResponse,
    response_model_exclude_none=True,
)
def api_meta(type: str, entry_id: str, store=Depends(get_store)):
    try:
        meta = get_meta(store, entry_id)
    except StoreFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return {"meta": meta} if meta else {}


@router.get("/stream/{type}/{entry_id}.json", response_model=StreamResponse, response_model_exclude_none=True)
def api_stream(type: str, entry_id: str, store=Depends(get_store)):
    try:
        return {"streams": get_streams(store, entry_id)}
    except StoreFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc))
