"""Websocket endpoint delivering change notifications."""
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, status

from todays.middleware.auth import decode_token
from todays.ws.notifier import change_notifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])


@router.websocket("/ws")
async def notifications(websocket: WebSocket, token: str = Query(...)):
    try:
        user = decode_token(token)
    except HTTPException as e:
        logger.warning(f"Rejected websocket connection: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await change_notifier.connect(websocket, user.user_id)
