"""
Shared helpers for the stage agents: model options, the generate -> parse ->
result flow, and result bookkeeping.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from ..core.config import DEFAULT_GENERATION_CONFIGS, STAGE_MODELS, STRUCTURED_MODEL
from ..core.errors import GenerationError
from ..core.llm import GenerationOptions, GenerationOutput
from ..core.response_parser import parse_response
from ..core.state import GenerationRequest, GenerationResult, SUCCEEDED, FAILED
from ..prompts import build_prompt, is_prose_stage
from ..prompts.breakdown import breakdown_for
from ..prompts.context import character_names
from ..prompts.series import build_concept_synopsis, requested_series_title
from ..schemas import has_schema

logger = logging.getLogger(__name__)

Normaliser = Callable[[Dict[str, Any], GenerationRequest], Dict[str, Any]]


def format_time(seconds: float) -> str:
    """Format time in seconds to minutes and seconds"""
    minutes = int(seconds // 60)
    remaining_seconds = seconds % 60
    if minutes > 0:
        return f"{minutes}m {remaining_seconds:.1f}s"
    else:
        return f"{remaining_seconds:.1f}s"


def get_stage_options(stage: str, structured_output: bool = True) -> GenerationOptions:
    """Model role and sampling settings for a stage"""
    settings = DEFAULT_GENERATION_CONFIGS.get(stage, {})
    return GenerationOptions(
        model=STAGE_MODELS.get(stage, STRUCTURED_MODEL),
        temperature=settings.get("temperature", 0.7),
        max_tokens=settings.get("max_tokens", 4000),
        response_schema=stage if structured_output and not is_prose_stage(stage) and has_schema(stage) else None,
    )


def get_fallback_context(request: GenerationRequest) -> Dict[str, Any]:
    """Inputs the parser's stage fallbacks are built from"""
    return {
        "episode_number": request.episode_number,
        "beat_sheet": request.beat_sheet,
        "directors_notes": request.notes,
        "character_names": character_names(request.story_bible),
        "questionnaire_type": request.questionnaire_type,
        "episode_data": request.episode_data,
        "breakdown": breakdown_for(request),
        "synopsis": build_concept_synopsis(request),
        "series_title": requested_series_title(request),
    }


def model_label(output: GenerationOutput) -> str:
    return f"{output.provider}:{output.model}"


def failed_result(stage: str, error: str, started_at: float) -> GenerationResult:
    return GenerationResult(
        stage=stage,
        success=False,
        error=error,
        status=FAILED,
        started_at=started_at,
        finished_at=time.monotonic(),
    )


async def generate_for_stage(stage: str, request: GenerationRequest, client) -> GenerationOutput:
    """Build the stage prompt and run it through the generation client"""
    built = build_prompt(stage, request)
    logger.info(f"[{stage}] Prompt built ({len(built.prompt)} chars), generating...")
    return await client.generate(built.prompt, built.system_prompt, get_stage_options(stage))


async def run_json_stage(stage: str, request: GenerationRequest, client,
                         normalise: Optional[Normaliser] = None) -> GenerationResult:
    """Generate, parse tolerantly, normalise; generation errors become failed results"""
    started_at = time.monotonic()
    try:
        output = await generate_for_stage(stage, request, client)
    except GenerationError as e:
        logger.error(f"[{stage}] Generation failed after {len(e.attempts)} attempts: {e}")
        return failed_result(stage, str(e), started_at)

    parsed = parse_response(output.text, stage=stage, context=get_fallback_context(request))
    if parsed.fallback_used:
        logger.warning(f"[{stage}] Could not extract JSON from {model_label(output)} output, using fallback payload")
    payload = normalise(parsed.data, request) if normalise else parsed.data

    finished_at = time.monotonic()
    logger.info(f"[{stage}] Completed in {format_time(finished_at - started_at)} "
                f"(model={model_label(output)}, strategy={parsed.strategy})")
    return GenerationResult(
        stage=stage,
        success=True,
        payload=payload,
        fallback_used=parsed.fallback_used,
        status=SUCCEEDED,
        started_at=started_at,
        finished_at=finished_at,
        model=model_label(output),
    )


def ensure_list(data: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Replace missing or non-list values under keys with empty lists"""
    for key in keys:
        if not isinstance(data.get(key), list):
            data[key] = []
    return data
