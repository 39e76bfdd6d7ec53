"""
WebSocket Handler

Video analysis with live progress via WebSocket connection.
The client uploads a video, receives progress updates while it is
sampled and can cancel the run at any time.
"""

import base64
import json
import os
import time
import logging
import asyncio
import contextlib
from typing import Any, Optional
from fastapi import Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .schemas import StartAnalysisMessage, WebSocketMessageType
from .dependencies import get_analyzer, get_enhancer
from .enhancement import FeedbackEnhancer
from .routes import result_to_response
from core.services import CancellationToken, ShotAnalyzer, remove_temp_video, save_temp_video

# Configure logging
logger = logging.getLogger(__name__)


def _message(msg_type: WebSocketMessageType, data: dict) -> dict:
    return {
        "type": msg_type.value,
        "data": data,
        "timestamp": int(time.time() * 1000),
    }


class AnalysisSession:
    """
    One connection's analysis state.

    Outgoing messages go through a single queue so progress updates
    and the final result reach the client in order, while the
    receive loop stays free to handle cancel requests.
    """

    def __init__(
        self,
        websocket: WebSocket,
        analyzer: ShotAnalyzer,
        enhancer: Optional[FeedbackEnhancer] = None,
    ):
        self.websocket = websocket
        self.analyzer = analyzer
        self.enhancer = enhancer
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.task: Optional[asyncio.Task] = None
        self.cancel_token: Optional[CancellationToken] = None

    @property
    def busy(self) -> bool:
        return self.task is not None and not self.task.done()

    def post(self, msg_type: WebSocketMessageType, data: dict) -> None:
        self.outbox.put_nowait(_message(msg_type, data))

    async def send_loop(self) -> None:
        while True:
            message = await self.outbox.get()
            await self.websocket.send_json(message)

    def start(self, request: StartAnalysisMessage) -> None:
        self.cancel_token = CancellationToken()
        self.task = asyncio.create_task(self._run(request, self.cancel_token))

    def cancel(self) -> None:
        if self.cancel_token is not None:
            self.cancel_token.cancel()

    async def close(self) -> None:
        """Cancel any running analysis and wait for it to stop."""
        self.cancel()
        if self.task is not None:
            await self.task

    async def _run(self, request: StartAnalysisMessage, cancel: CancellationToken) -> None:
        shot = request.shot_type.value if request.shot_type else None
        temp_path = None
        try:
            video_bytes = base64.b64decode(request.video_base64, validate=True)
            suffix = os.path.splitext(request.filename or "")[1] or ".mp4"
            temp_path = save_temp_video(video_bytes, suffix)

            result = await self.analyzer.analyze_video(
                temp_path,
                shot_type=shot,
                progress=lambda percent: self.post(
                    WebSocketMessageType.PROGRESS, {"percent": percent}
                ),
                cancel=cancel,
            )
            if self.enhancer is not None:
                result = await self.enhancer.enhance(result, shot)

            self.post(
                WebSocketMessageType.ANALYSIS_RESULT,
                result_to_response(result).model_dump(mode="json"),
            )

        except ValueError as e:
            # Undecodable base64 or a file OpenCV cannot open
            logger.warning(f"Rejected WebSocket upload: {e}")
            self.post(WebSocketMessageType.ERROR, {"error": str(e)})
        except Exception as e:
            logger.error(f"WebSocket analysis failed: {e}")
            self.post(WebSocketMessageType.ERROR, {"error": str(e)})
        finally:
            remove_temp_video(temp_path)


class ConnectionManager:
    """
    Manages WebSocket connections.

    Tracks the analysis session of each open connection.
    """

    def __init__(self):
        self.sessions: dict[WebSocket, AnalysisSession] = {}

    async def connect(
        self,
        websocket: WebSocket,
        analyzer: ShotAnalyzer,
        enhancer: Optional[FeedbackEnhancer] = None,
    ) -> AnalysisSession:
        """Accept new WebSocket connection."""
        await websocket.accept()
        session = AnalysisSession(websocket, analyzer, enhancer)
        self.sessions[websocket] = session
        logger.info(f"New WebSocket connection. Total: {len(self.sessions)}")
        return session

    async def disconnect(self, websocket: WebSocket) -> None:
        """Handle WebSocket disconnection."""
        session = self.sessions.pop(websocket, None)
        if session is not None:
            await session.close()
        logger.info(f"WebSocket disconnected. Remaining: {len(self.sessions)}")


# Global connection manager
manager = ConnectionManager()


async def websocket_endpoint(
    websocket: WebSocket,
    analyzer: ShotAnalyzer = Depends(get_analyzer),
    enhancer: Optional[FeedbackEnhancer] = Depends(get_enhancer),
) -> None:
    """
    WebSocket endpoint for video analysis with progress.

    Protocol:
    1. Client connects, server sends session_started
    2. Client sends start_analysis with the video
    3. Server sends progress messages, then analysis_result
    4. Client may send cancel at any time during step 3

    Message format (client -> server):
    {
        "type": "start_analysis",
        "data": {"video_base64": "...", "shot_type": "jump_shot"}
    }

    Message format (server -> client):
    {
        "type": "progress",
        "data": {"percent": 42},
        "timestamp": 1704067200025
    }
    """
    session = await manager.connect(websocket, analyzer, enhancer)
    sender = asyncio.create_task(session.send_loop())

    try:
        session.post(
            WebSocketMessageType.SESSION_STARTED,
            {"message": "Connected to ShotCoach analysis"},
        )

        # Main message loop
        while True:
            try:
                data: Any = await websocket.receive_json()
            except json.JSONDecodeError:
                session.post(WebSocketMessageType.ERROR, {"error": "Invalid JSON"})
                continue

            msg_type = data.get("type") if isinstance(data, dict) else None

            if msg_type == WebSocketMessageType.START_ANALYSIS.value:
                handle_start(session, data.get("data") or {})

            elif msg_type == WebSocketMessageType.CANCEL.value:
                session.cancel()

            else:
                session.post(
                    WebSocketMessageType.ERROR,
                    {"error": f"Unknown message type: {msg_type}"},
                )

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        await manager.disconnect(websocket)
        sender.cancel()
        # A send that failed on a closed socket surfaces here
        with contextlib.suppress(Exception, asyncio.CancelledError):
            await sender


def handle_start(session: AnalysisSession, payload: dict) -> None:
    """Validate a start_analysis payload and launch the run."""
    if session.busy:
        session.post(
            WebSocketMessageType.ERROR,
            {"error": "An analysis is already running"},
        )
        return

    if not isinstance(payload, dict):
        payload = {}

    try:
        request = StartAnalysisMessage(**payload)
    except ValidationError as e:
        session.post(WebSocketMessageType.ERROR, {"error": str(e)})
        return

    session.start(request)
