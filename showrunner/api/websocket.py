"""WebSocket handler streaming "regenerate all" progress"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from ..core.errors import RequestValidationFailed
from ..core.state import ProgressUpdate
from ..core.workflow import CancellationToken, StagePipeline
from .api_types import WebSocketMessage
from .validation import parse_regenerate_all_request

logger = logging.getLogger(__name__)


class RegenerateAllSocketHandler:
    """Runs one pipeline at a time per connection and forwards its progress

    Client messages:
        {"type": "start", ...regenerate-all body}   start a run
        {"type": "cancel"}                           cancel the running pipeline
        {"type": "ping"}                             keepalive
    A message without "type" is treated as "start".
    """

    def __init__(self, websocket: WebSocket, pipeline: StagePipeline):
        self.websocket = websocket
        self.pipeline = pipeline
        self.running_run: Optional[asyncio.Task] = None
        self.cancel_token: Optional[CancellationToken] = None
        self.is_closing = False

    async def handle(self):
        """Main WebSocket message handler"""
        try:
            while True:
                raw_data = await self.websocket.receive_text()
                try:
                    data = json.loads(raw_data)
                except json.JSONDecodeError as e:
                    await self.send_event({"type": "error", "message": f"Invalid JSON: {str(e)}"})
                    continue
                if not isinstance(data, dict):
                    await self.send_event({"type": "error", "message": "Message must be a JSON object"})
                    continue

                message = WebSocketMessage.model_validate({"type": "start", **data})
                logger.info(f"[WebSocket] Received message type: {message.type}")

                if message.type == "start":
                    await self.start_run(message.data if message.data is not None else data)
                elif message.type == "cancel":
                    await self.cancel_run()
                elif message.type == "ping":
                    await self.send_event({"type": "pong"})
                else:
                    await self.send_event({
                        "type": "error",
                        "message": f"Unknown message type: {message.type}"
                    })

        except WebSocketDisconnect as e:
            self.is_closing = True
            logger.info(f"[WebSocket] Client disconnected (code={e.code})")
            if self.cancel_token:
                self.cancel_token.cancel()
            if self.running_run and not self.running_run.done():
                try:
                    await self.running_run
                except asyncio.CancelledError:
                    pass

    async def start_run(self, body: Dict[str, Any]):
        if self.running_run and not self.running_run.done():
            await self.send_event({"type": "error", "message": "A regeneration is already running"})
            return
        try:
            request, stages = parse_regenerate_all_request(body)
        except RequestValidationFailed as e:
            await self.send_event({
                "type": "error",
                "error": "Invalid request data",
                "details": ", ".join(e.errors),
                "validationErrors": e.errors,
            })
            return

        self.cancel_token = CancellationToken()
        logger.info(f"[WebSocket] Starting regeneration of {len(stages)} stages")
        self.running_run = asyncio.create_task(self._execute(request, stages, self.cancel_token))

    async def _execute(self, request, stages, cancel_token: CancellationToken):
        try:
            run = await self.pipeline.run(
                request,
                stages=stages,
                on_progress=self.send_progress,
                cancel_token=cancel_token,
            )
        except Exception as e:
            logger.error(f"[WebSocket] Regeneration failed: {type(e).__name__}: {e}", exc_info=True)
            await self.send_event({
                "type": "error",
                "error": "Regeneration failed",
                "details": f"{type(e).__name__}: {e}",
            })
            return
        await self.send_event({"type": "complete", "run": run.to_wire()})

    async def cancel_run(self):
        if not self.running_run or self.running_run.done():
            await self.send_event({"type": "cancelled", "running": False})
            return
        logger.info("[WebSocket] Cancel requested for running regeneration")
        self.cancel_token.cancel()
        # The pipeline settles cancelled stages and then sends "complete"
        await self.send_event({"type": "cancelled", "running": True})

    async def send_progress(self, update: ProgressUpdate):
        await self.send_event({"type": "progress", **update.to_wire()})

    async def send_event(self, event: Dict[str, Any]):
        """Send event to WebSocket client"""
        if self.is_closing:
            return
        try:
            await self.websocket.send_text(json.dumps(event, default=str))
        except (WebSocketDisconnect, RuntimeError) as e:
            # Socket closed mid-run; the pipeline keeps going and persists
            self.is_closing = True
            logger.warning(f"[WebSocket] Error sending event: {str(e)}")
