"""
Live odds API routes
Streams odds updates for a contest via WebSocket, backed by Redis pub/sub.
"""

from uuid import UUID
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, HTTPException, Response

from arena.core.redis import get_redis_client, odds_cache_key, odds_channel

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/contests/{contest_id}/odds")
async def odds_stream(websocket: WebSocket, contest_id: UUID):
    """
    WebSocket endpoint for live odds.
    Usage: ws://localhost:8000/live/contests/{contest_id}/odds
    Sends the cached snapshot first (if any), then every update.
    """
    redis = get_redis_client()
    if not redis:
        await websocket.close(code=1011, reason="Odds feed unavailable")
        return

    await websocket.accept()

    cached = await redis.get(odds_cache_key(contest_id))
    if cached:
        await websocket.send_text(cached.decode("utf-8"))

    pubsub = redis.pubsub()
    await pubsub.subscribe(odds_channel(contest_id))

    try:
        async for message in pubsub.listen():
            if message["type"] == "message":
                data = message["data"]
                await websocket.send_text(data.decode("utf-8") if isinstance(data, bytes) else data)
    except WebSocketDisconnect:
        logger.debug(f"Odds stream for contest {contest_id} disconnected")
    finally:
        await pubsub.unsubscribe(odds_channel(contest_id))
        await pubsub.aclose()


@router.get("/contests/{contest_id}/odds")
async def get_cached_odds(contest_id: UUID):
    """Last odds snapshot published for a contest."""
    redis = get_redis_client()
    if not redis:
        raise HTTPException(status_code=503, detail="Odds feed unavailable")

    cached = await redis.get(odds_cache_key(contest_id))
    if not cached:
        raise HTTPException(status_code=404, detail="No odds published yet")
    return Response(content=cached, media_type="application/json")
