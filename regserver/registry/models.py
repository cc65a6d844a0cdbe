from pydantic import BaseModel, Field, HttpUrl, field_validator
from typing import List, Optional
from urllib.parse import urlparse

class CatalogResponse(BaseModel):
    """Registry catalog response"""
    repositories: List[str] = Field(default_factory=list)

    @field_validator('repositories', mode='before')
    @classmethod
    def null_to_empty(cls, v):
        return v or []

class TagsResponse(BaseModel):
    """Registry tags list response"""
    name: str
    tags: List[str] = Field(default_factory=list)

    @field_validator('tags', mode='before')
    @classmethod
    def null_to_empty(cls, v):
        return v or []

class FsLayer(BaseModel):
    """Schema 1 filesystem layer reference"""
    blobSum: str

class HistoryEntry(BaseModel):
    """Schema 1 history entry, newest layer first"""
    v1Compatibility: str

class ManifestV1(BaseModel):
    """Docker image manifest, schema version 1"""
    schemaVersion: int = 1
    name: str = ""
    tag: str = ""
    architecture: str = ""
    fsLayers: List[FsLayer] = Field(default_factory=list)
    history: List[HistoryEntry] = Field(default_factory=list)

class RegistryConfig(BaseModel):
    """Registry client configuration"""
    url: HttpUrl = Field(default="http://localhost:5000")
    timeout: int = Field(default=10, gt=0)
    username: Optional[str] = None
    password: Optional[str] = None
    verify_tls: bool = True

    @field_validator('url')
    @classmethod
    def strip_trailing_slash(cls, v):
        return str(v).rstrip('/')

    @property
    def domain(self) -> str:
        """Registry host[:port] as used in image references"""
        return urlparse(str(self.url)).netloc
