from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class SiteCreate(BaseModel):
    url: Optional[str] = Field(None, description="Seed URL of the site to crawl")


class SiteOut(BaseModel):
    catalogId: str
    url: str


class SiteCreated(BaseModel):
    success: bool = True
    catalogId: str


class MetaPreview(BaseModel):
    id: str
    type: str = "movie"
    name: str
    poster: Optional[str] = None
    description: Optional[str] = None


class CatalogResponse(BaseModel):
    metas: List[MetaPreview] = Field(default_factory=list)


class MetaResponse(BaseModel):
    meta: Optional[MetaPreview] = None


class Stream(BaseModel):
    url: str
    title: Optional[str] = None


class StreamResponse(BaseModel):
    streams: List[Stream] = Field(default_factory=list)


class CatalogDescriptor(BaseModel):
    type: str = "movie"
    id: str
    name: str
    extra: List[Dict[str, Any]] = Field(
        default_factory=lambda: [{"name": "search", "isRequired": False}]
    )


class Manifest(BaseModel):
    """Addon manifest describing what the catalog server offers."""
    id: str
    version: str
    name: str
    description: str
    resources: List[str]
    types: List[str]
    catalogs: List[CatalogDescriptor]
