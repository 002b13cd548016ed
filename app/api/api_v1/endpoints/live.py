from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
import logging
from app.core.auth import user_from_token
from app.core.database import get_store
from app.core.permissions import can_view_section
from app.services.live import VIEWS, LiveView
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)
router = APIRouter()

# Live view name -> navigation section that gates it
VIEW_SECTIONS = {"appointments": "calendar"}

@router.websocket("/{view}")
async def live_view(
    websocket: WebSocket,
    view: str,
    token: Optional[str] = Query(None),
    store: DocumentStore = Depends(get_store)
):
    """
    Push the joined rows of ``view`` every time one of its collections changes.

    Browsers cannot set headers on a WebSocket, so the bearer token comes in
    the ``token`` query parameter.
    """
    if view not in VIEWS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        user = await user_from_token(store, token or "")
    except HTTPException as e:
        logger.warning(f"Live view {view} rejected: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if not can_view_section(user.role, VIEW_SECTIONS.get(view, view)):
        logger.warning(f"User {user.id} with role {user.role} denied live view {view}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    live = LiveView.for_view(store, view, websocket.send_json)
    try:
        await live.start()
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Live view {view} disconnected for user {user.id}")
    finally:
        await live.close()
