"""Beat sheet agent: episode goal -> prose beat structure"""

import logging
import time

from ...core.errors import GenerationError
from ...core.state import GenerationRequest, GenerationResult, SUCCEEDED
from ...prompts import build_fallback_beat_sheet
from ..base import failed_result, format_time, generate_for_stage, model_label

logger = logging.getLogger(__name__)

# Shorter responses are treated as a failed generation
MIN_BEAT_SHEET_LENGTH = 50


async def beat_sheet_agent(request: GenerationRequest, client) -> GenerationResult:
    """Generate a beat sheet; too-short output is replaced by a three-beat skeleton"""
    started_at = time.monotonic()
    logger.info(f"[Beat Sheet Agent] Episode {request.episode_number} goal: {request.episode_goal}")
    try:
        output = await generate_for_stage("beat_sheet", request, client)
    except GenerationError as e:
        logger.error(f"[Beat Sheet Agent] Generation failed: {e}")
        return failed_result("beat_sheet", str(e), started_at)

    beat_sheet = (output.text or "").strip()
    fallback_used = len(beat_sheet) < MIN_BEAT_SHEET_LENGTH
    if fallback_used:
        logger.warning(f"[Beat Sheet Agent] Response too short ({len(beat_sheet)} chars), using fallback beat sheet")
        beat_sheet = build_fallback_beat_sheet(request)

    finished_at = time.monotonic()
    logger.info(f"[Beat Sheet Agent] Completed in {format_time(finished_at - started_at)}")
    return GenerationResult(
        stage="beat_sheet",
        success=True,
        payload=beat_sheet,
        fallback_used=fallback_used,
        status=SUCCEEDED,
        started_at=started_at,
        finished_at=finished_at,
        model=model_label(output),
    )
