"""Request and response bodies for the mirror API."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SaveRequest(BaseModel):
    """Body of POST/PUT: create-or-update, or move when action == "move".

    Fields are optional here so that missing values produce a 400 with a
    readable message instead of a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    path: Optional[str] = None
    content: Any = None
    message: Optional[str] = None
    action: Optional[str] = None
    new_path: Optional[str] = Field(default=None, alias="newPath")


class DeleteRequest(BaseModel):
    """Body of DELETE."""

    path: Optional[str] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
    provider: str
    repository: Optional[str] = None
    subscribers: int
    poller_running: bool
    cached_paths: int


