"""Type definitions for API request/response validation"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.config import GOOGLE_VEO_CONFIG


class ErrorResponse(BaseModel):
    """400 body for caller input problems"""
    error: str = "Invalid request data"
    details: str
    validation_errors: List[str] = Field(serialization_alias="validationErrors")


class GenerationFailedResponse(BaseModel):
    """500 body when every model in the chain failed"""
    success: bool = False
    error: str
    details: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class VideoPreviewRequest(BaseModel):
    """Request for a marketing teaser preview"""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    prompt: str
    model: str = GOOGLE_VEO_CONFIG["default_model"]
    aspect_ratio: str = Field(default=GOOGLE_VEO_CONFIG["aspect_ratios"]["vertical"], alias="aspectRatio")
    duration_seconds: int = Field(default=8, alias="durationSeconds")
    output_gcs_uri: Optional[str] = Field(default=None, alias="outputGcsUri")
    wait: bool = False


class WebSocketMessage(BaseModel):
    """Type for WebSocket messages from the client"""
    model_config = ConfigDict(extra="allow")

    type: str
    data: Optional[Dict[str, Any]] = None
