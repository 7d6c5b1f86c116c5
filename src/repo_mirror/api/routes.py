"""Mirror endpoints: snapshot reads, the push stream, and mutations."""

from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..broadcaster import QueueSubscriber
from ..errors import InvalidRequestError
from ..service import MirrorService
from .dependencies import get_service
from .schemas import DeleteRequest, HealthResponse, SaveRequest

router = APIRouter(tags=["mirror"])
health_router = APIRouter(tags=["health"])

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def format_event(payload: str) -> str:
    """Frame one serialized snapshot as a server-sent event."""
    return f"event: snapshot\ndata: {payload}\n\n"


async def snapshot_events(service: MirrorService, subscriber: QueueSubscriber) -> AsyncIterator[str]:
    """Yield events until the subscriber is closed or the client goes away."""
    try:
        while True:
            payload = await subscriber.receive()
            if payload is None:
                break
            yield format_event(payload)
    finally:
        service.unsubscribe(subscriber)


@router.get("/api")
async def read_tree(stream: bool = False, service: MirrorService = Depends(get_service)):
    """
    Current snapshot of the repository.

    With `?stream=true` the response becomes a server-sent event stream:
    the cached snapshot first (if any), then every new snapshot.
    """
    if stream:
        subscriber = await service.subscribe()
        return StreamingResponse(
            snapshot_events(service, subscriber),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
    snapshot = await service.read_snapshot()
    return snapshot.to_dict()


async def _save(body: SaveRequest, service: MirrorService) -> Dict[str, Any]:
    if not body.path or body.content is None:
        raise InvalidRequestError("path and content are required")
    result = await service.save(body.path, body.content, body.message)
    return result.model_dump(mode="json", by_alias=True)


@router.post("/api")
async def create_file(body: SaveRequest, service: MirrorService = Depends(get_service)):
    """Create or update a file."""
    return await _save(body, service)


@router.put("/api")
async def update_file(body: SaveRequest, service: MirrorService = Depends(get_service)):
    """Create or update a file, or move it when `action` is "move"."""
    if body.action is None:
        return await _save(body, service)
    if body.action != "move":
        raise InvalidRequestError(f"Unknown action '{body.action}'")
    if not body.path or not body.new_path:
        raise InvalidRequestError("path and newPath are required to move a file")
    result = await service.move(body.path, body.new_path, body.message)
    return result.model_dump(mode="json", by_alias=True)


@router.delete("/api")
async def delete_file(body: DeleteRequest, service: MirrorService = Depends(get_service)):
    """Delete a file."""
    if not body.path:
        raise InvalidRequestError("path is required")
    result = await service.remove(body.path, body.message)
    return result.model_dump(mode="json", by_alias=True)


@health_router.get("/health", response_model=HealthResponse)
async def health(service: MirrorService = Depends(get_service)) -> HealthResponse:
    """Server status, subscriber count, and poller state."""
    return HealthResponse(**service.status())
