"""Prompt templates for the generation stages

build_prompt is the single entry point used by the stage agents; the
per-stage builders are re-exported for direct use.
"""

from typing import Callable, Dict, NamedTuple

from ..core.state import GenerationRequest
from .breakdown import build_script_breakdown_prompt, build_shot_list_prompt
from .casting import build_casting_prompt
from .locations import build_locations_prompt
from .logistics import build_props_wardrobe_prompt, build_equipment_prompt, build_permits_prompt
from .marketing import build_marketing_prompt
from .questionnaire import build_questionnaire_prompt, QUESTIONNAIRE_TYPES
from .registry import STAGE_REGISTRY, get_system_prompt, get_payload_key, is_prose_stage
from .scheduling import build_schedule_prompt, build_budget_prompt
from .series import build_story_bible_prompt
from .story import (
    build_beat_sheet_prompt,
    build_episode_prompt,
    build_storyboard_prompt,
    build_fallback_beat_sheet,
)


class PromptSpec(NamedTuple):
    prompt: str
    system_prompt: str


PROMPT_BUILDERS: Dict[str, Callable[[GenerationRequest], str]] = {
    "story_bible": build_story_bible_prompt,
    "beat_sheet": build_beat_sheet_prompt,
    "episode": build_episode_prompt,
    "storyboard": build_storyboard_prompt,
    "questionnaire": build_questionnaire_prompt,
    "script_breakdown": build_script_breakdown_prompt,
    "shot_list": build_shot_list_prompt,
    "casting": build_casting_prompt,
    "locations": build_locations_prompt,
    "props_wardrobe": build_props_wardrobe_prompt,
    "equipment": build_equipment_prompt,
    "permits": build_permits_prompt,
    "marketing": build_marketing_prompt,
    "schedule": build_schedule_prompt,
    "budget": build_budget_prompt,
}


def build_prompt(stage: str, request: GenerationRequest) -> PromptSpec:
    """Prompt and system prompt for a stage; deterministic for identical input"""
    if stage not in PROMPT_BUILDERS:
        raise KeyError(f"Unknown stage: {stage}")
    return PromptSpec(prompt=PROMPT_BUILDERS[stage](request), system_prompt=get_system_prompt(stage))


__all__ = [
    'PromptSpec',
    'PROMPT_BUILDERS',
    'build_prompt',
    'build_fallback_beat_sheet',
    'STAGE_REGISTRY',
    'QUESTIONNAIRE_TYPES',
    'get_system_prompt',
    'get_payload_key',
    'is_prose_stage',
]
