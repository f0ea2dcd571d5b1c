"""
Google Veo video generation using google-genai SDK
"""

import asyncio
import time
import logging
from typing import Dict, Any, Optional
from google import genai
from google.genai import types
from google.genai.types import GenerateVideosConfig

from ...core.config import GOOGLE_VEO_CONFIG, ShowrunnerConfig

logger = logging.getLogger(__name__)


class GoogleVeoGenerator:
    """Google Veo marketing teaser generation via the google-genai async client"""

    def __init__(self, config: ShowrunnerConfig, client: Any = None, sleep=asyncio.sleep):
        self.config = config
        self._client = client
        self._sleep = sleep

    @property
    def client(self):
        """Lazy client initialization"""
        if self._client is None:
            if self.config.use_vertex:
                self._client = genai.Client(
                    vertexai=True,
                    project=self.config.gcp_project_id,
                    location=self.config.gcp_location,
                    credentials=self.config.credentials
                )
            else:
                self._client = genai.Client(api_key=self.config.gemini_api_key)
        return self._client

    async def generate_video(
        self,
        prompt: str,
        model: str = GOOGLE_VEO_CONFIG["default_model"],
        aspect_ratio: str = GOOGLE_VEO_CONFIG["aspect_ratios"]["vertical"],
        duration_seconds: int = 8,
        output_gcs_uri: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Submit video generation task to Google Veo

        Args:
            prompt: Teaser prompt describing the shot and motion
            model: Veo model name
            aspect_ratio: Video aspect ratio (16:9 or 9:16)
            duration_seconds: Video duration in seconds (4, 6 or 8)
            output_gcs_uri: GCS URI prefix for output video (Vertex AI only)

        Returns:
            Dict with code (0=success), data (task_id), and message
        """
        try:
            logger.info(f"[GoogleVeo] Submitting video generation task")
            logger.info(f"[GoogleVeo] Model: {model}, Aspect ratio: {aspect_ratio}, Duration: {duration_seconds}s")
            logger.info(f"[GoogleVeo] Prompt: {prompt[:200]}...")

            config_params = {
                "aspect_ratio": aspect_ratio,
                "duration_seconds": duration_seconds
            }
            if output_gcs_uri:
                config_params["output_gcs_uri"] = output_gcs_uri

            # Submit generation request (returns long-running operation)
            operation = await self.client.aio.models.generate_videos(
                model=model,
                prompt=prompt,
                config=GenerateVideosConfig(**config_params)
            )

            logger.info(f"[GoogleVeo] Task submitted successfully: {operation.name}")

            return {
                "code": 0,
                "data": {
                    "task_id": operation.name,
                    "task_status": "submitted"
                },
                "message": "Success"
            }

        except Exception as e:
            logger.error(f"[GoogleVeo] Error submitting task: {str(e)}")
            return {
                "code": -1,
                "data": {"task_id": None, "task_status": "failed"},
                "message": f"Google Veo error: {str(e)}"
            }

    async def query_task(self, operation_name: str) -> Dict[str, Any]:
        """
        Query task status using operation name

        Returns:
            Dict with code, data (task_id, task_status, task_result), and message
        """
        try:
            # Reconstruct operation object from name
            operation = types.GenerateVideosOperation(name=operation_name)
            operation = await self.client.aio.operations.get(operation)

            if not operation.done:
                logger.info(f"[GoogleVeo] Task still processing: {operation_name}")
                return {
                    "code": 0,
                    "data": {
                        "task_id": operation_name,
                        "task_status": "processing"
                    },
                    "message": "Processing"
                }

            if operation.error:
                error_msg = str(operation.error)
                logger.error(f"[GoogleVeo] Task failed: {error_msg}")
                return {
                    "code": -1,
                    "data": {
                        "task_id": operation_name,
                        "task_status": "failed"
                    },
                    "message": error_msg
                }

            videos = operation.result.generated_videos if operation.result else None
            if not videos:
                logger.warning(f"[GoogleVeo] Task completed but no videos in result")
                return {
                    "code": -1,
                    "data": {
                        "task_id": operation_name,
                        "task_status": "failed"
                    },
                    "message": "No videos in result"
                }

            video_url = videos[0].video.uri
            logger.info(f"[GoogleVeo] Task completed: {video_url}")
            return {
                "code": 0,
                "data": {
                    "task_id": operation_name,
                    "task_status": "succeed",
                    "task_result": {
                        "videos": [{"url": video_url}]
                    }
                },
                "message": "Success"
            }

        except Exception as e:
            logger.error(f"[GoogleVeo] Error querying task {operation_name}: {str(e)}")
            return {
                "code": -1,
                "data": {
                    "task_id": operation_name,
                    "task_status": "failed"
                },
                "message": f"Query error: {str(e)}"
            }

    async def wait_for_completion(
        self,
        operation_name: str,
        max_wait_time: int = GOOGLE_VEO_CONFIG["max_wait_time"],
        poll_interval: int = GOOGLE_VEO_CONFIG["check_interval"]
    ) -> Dict[str, Any]:
        """
        Wait for video generation to complete

        Returns:
            Final task result dict
        """
        start_time = time.monotonic()

        while time.monotonic() - start_time < max_wait_time:
            result = await self.query_task(operation_name)

            status = result.get("data", {}).get("task_status")
            if status in ("succeed", "failed"):
                return result

            elapsed = int(time.monotonic() - start_time)
            logger.info(f"[GoogleVeo] Waiting... ({elapsed}s elapsed)")
            await self._sleep(poll_interval)

        logger.error(f"[GoogleVeo] Timeout after {max_wait_time}s waiting for {operation_name}")
        return {
            "code": -1,
            "data": {
                "task_id": operation_name,
                "task_status": "timeout"
            },
            "message": f"Timeout after {max_wait_time}s"
        }
