"""Main FastAPI application with WebSocket support"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..agents import run_stage, GoogleVeoGenerator
from ..core.config import ShowrunnerConfig, setup_logging, ALL_STAGES
from ..core.errors import RequestValidationFailed
from ..core.llm import GenerationClient
from ..core.workflow import StagePipeline
from ..prompts import get_payload_key
from ..storage import RedisSectionStore
from .api_types import ErrorResponse, GenerationFailedResponse, VideoPreviewRequest
from .validation import (
    resolve_stage,
    parse_stage_request,
    parse_regenerate_all_request,
    collect_video_errors,
)
from .websocket import RegenerateAllSocketHandler

logger = logging.getLogger(__name__)

SERVICE_NAME = "Showrunner Generation Service"
SERVICE_VERSION = "1.0.0"


def validation_error_response(errors) -> JSONResponse:
    body = ErrorResponse(details=", ".join(errors), validation_errors=errors)
    return JSONResponse(status_code=400, content=body.model_dump(by_alias=True))


def generation_failed_response(error: str, details: Optional[str] = None) -> JSONResponse:
    body = GenerationFailedResponse(error=error, details=details)
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


async def read_json(request: Request):
    """Request body as JSON, or None when it is not valid JSON"""
    try:
        return await request.json()
    except ValueError:
        return None


def create_app(config: Optional[ShowrunnerConfig] = None, client=None, store=None, veo=None) -> FastAPI:
    """Build the app; collaborators not passed in are created from config"""
    config = config or ShowrunnerConfig.from_env()
    setup_logging(config.log_level)

    owns_client = client is None
    if client is None:
        client = GenerationClient(config)
    if store is None and config.redis_url:
        store = RedisSectionStore(config.redis_url, ttl_seconds=config.section_ttl_seconds)
    elif store is None:
        logger.warning("[API] REDIS_URL not set, generated sections will not be persisted")
    if veo is None:
        veo = GoogleVeoGenerator(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan"""
        yield
        # Shutdown
        if owns_client:
            await client.aclose()
        if app.state.store is not None:
            await app.state.store.close()

    app = FastAPI(
        title=SERVICE_NAME,
        description="Story and pre-production generation for scripted web series",
        version=SERVICE_VERSION,
        lifespan=lifespan
    )

    # CORS configuration for client applications
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure with actual client domains in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.client = client
    app.state.store = store
    app.state.veo = veo
    app.state.pipeline = StagePipeline(client, config, store=store)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "running",
            "stages": [stage.replace("_", "-") for stage in ALL_STAGES],
        }

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        if app.state.store is None:
            store_status = "disabled"
        elif await app.state.store.ping():
            store_status = "connected"
        else:
            store_status = "error"

        return {
            "status": "healthy",
            "redis": store_status,
            "timestamp": datetime.now().isoformat()
        }

    # Declared before /generate/{stage} so the fixed paths win
    @app.post("/generate/regenerate-all")
    async def regenerate_all(request: Request):
        """Run every requested pre-production stage in dependency order"""
        body = await read_json(request)
        try:
            generation_request, stages = parse_regenerate_all_request(body)
        except RequestValidationFailed as e:
            logger.warning(f"[API] regenerate-all rejected: {e.errors}")
            return validation_error_response(e.errors)

        logger.info(f"[API] regenerate-all: {', '.join(stages)}")
        run = await app.state.pipeline.run(generation_request, stages=stages)
        return run.to_wire()

    @app.post("/generate/video-preview")
    async def video_preview(request: Request):
        """Submit a VEO teaser job; polls to completion only when wait is set"""
        body = await read_json(request)
        if not isinstance(body, dict):
            return validation_error_response(["Request body must be a JSON object"])
        errors = collect_video_errors(body)
        if errors:
            return validation_error_response(errors)
        preview = VideoPreviewRequest.model_validate(body)

        result = await app.state.veo.generate_video(
            prompt=preview.prompt,
            model=preview.model,
            aspect_ratio=preview.aspect_ratio,
            duration_seconds=preview.duration_seconds,
            output_gcs_uri=preview.output_gcs_uri,
        )
        if result["code"] != 0:
            return generation_failed_response("Video preview generation failed", result["message"])
        if preview.wait:
            result = await app.state.veo.wait_for_completion(result["data"]["task_id"])
        return {"success": result["code"] == 0, **result}

    @app.post("/generate/{stage_name}")
    async def generate_stage(stage_name: str, request: Request):
        """Run one generation stage"""
        stage = resolve_stage(stage_name)
        if stage is None:
            return JSONResponse(status_code=404, content={
                "success": False,
                "error": f"Unknown stage: {stage_name}",
            })

        body = await read_json(request)
        try:
            generation_request = parse_stage_request(stage, body)
        except RequestValidationFailed as e:
            logger.warning(f"[API] {stage} request rejected: {e.errors}")
            return validation_error_response(e.errors)

        try:
            result = await run_stage(generation_request, app.state.client)
        except Exception as e:
            logger.error(f"[API] {stage} agent raised: {type(e).__name__}: {e}", exc_info=True)
            return generation_failed_response(f"{stage.replace('_', ' ').capitalize()} generation failed",
                                              f"{type(e).__name__}: {e}")
        if not result.success:
            return generation_failed_response(f"{stage.replace('_', ' ').capitalize()} generation failed", result.error)

        response = {
            "success": True,
            get_payload_key(stage): result.payload,
            "fallbackUsed": result.fallback_used,
            "model": result.model,
        }
        if stage == "beat_sheet":
            response["episodeNumber"] = generation_request.episode_number
            response["episodeGoal"] = generation_request.episode_goal
        return response

    @app.websocket("/ws/regenerate-all")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for streaming regenerate-all progress"""
        await websocket.accept()
        handler = RegenerateAllSocketHandler(websocket, app.state.pipeline)
        try:
            await handler.handle()
        except WebSocketDisconnect:
            pass

    return app


def __getattr__(name):
    # Build the module-level app on first access so importing create_app has no side effects
    if name == "app":
        global app
        app = create_app()
        return app
    raise AttributeError(name)


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
