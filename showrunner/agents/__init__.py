"""Stage agents: prompt -> generate -> parse -> GenerationResult"""


from ..core.state import GenerationRequest, GenerationResult
from .base import format_time, get_stage_options, run_json_stage

# Import story agents
from .creative import story_bible_agent, beat_sheet_agent, episode_agent, storyboard_agent, GoogleVeoGenerator

# Import pre-production agents
from .preproduction import (
    questionnaire_agent,
    casting_agent,
    locations_agent,
    props_wardrobe_agent,
    equipment_agent,
    permits_agent,
    schedule_agent,
    budget_agent,
    marketing_agent,
    script_breakdown_agent,
    shot_list_agent,
)


# Stage name -> agent
STAGE_AGENTS = {
    "story_bible": story_bible_agent,
    "beat_sheet": beat_sheet_agent,
    "episode": episode_agent,
    "storyboard": storyboard_agent,
    "questionnaire": questionnaire_agent,
    "script_breakdown": script_breakdown_agent,
    "shot_list": shot_list_agent,
    "casting": casting_agent,
    "locations": locations_agent,
    "props_wardrobe": props_wardrobe_agent,
    "equipment": equipment_agent,
    "permits": permits_agent,
    "marketing": marketing_agent,
    "schedule": schedule_agent,
    "budget": budget_agent,
}


async def run_stage(request: GenerationRequest, client) -> GenerationResult:
    """Run the agent for request.stage

    Generation failures come back as success=False results; only cancellation
    and programming errors propagate.
    """
    agent = STAGE_AGENTS.get(request.stage)
    if agent is None:
        raise ValueError(f"Unknown stage: {request.stage}")
    return await agent(request, client)


__all__ = [
    'STAGE_AGENTS',
    'run_stage',
    'format_time',
    'get_stage_options',
    'run_json_stage',
    'GoogleVeoGenerator',
    'story_bible_agent',
    'beat_sheet_agent',
    'episode_agent',
    'storyboard_agent',
    'questionnaire_agent',
    'casting_agent',
    'locations_agent',
    'props_wardrobe_agent',
    'equipment_agent',
    'permits_agent',
    'schedule_agent',
    'budget_agent',
    'marketing_agent',
    'script_breakdown_agent',
    'shot_list_agent',
]
