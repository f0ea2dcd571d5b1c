"""Shooting schedule and budget prompts

Schedule depends on locations and budget on schedule. A missing prerequisite
is stated explicitly in the prompt rather than silently dropped.
"""

from ..core.state import GenerationRequest
from .context import (
    build_story_bible_context,
    build_scripts_block,
    build_scope_line,
    build_prerequisite_block,
    series_title,
)

SCHEDULE_PROMPT_TEMPLATE = """Build the shooting schedule for "{series_title}".
{scope_line}

{story_bible_context}

{scripts_block}

{locations_block}
{casting_block}
SCHEDULING RULES:
• Group scenes by location to minimise company moves
• No more than 10 hours per shooting day including setup and wrap
• Put exterior day scenes in daylight hours and night scenes together
• Schedule actors in consecutive days where possible
• Leave buffer time for complex scenes

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "shootingDays": [
    {{
      "dayNumber": 1,
      "location": "Location name",
      "callTime": "07:00",
      "wrapTime": "17:00",
      "scenes": [{{"episodeNumber": 1, "sceneNumber": 1, "estimatedDuration": "2h", "cast": ["Character"]}}],
      "notes": ""
    }}
  ],
  "totalDays": 1,
  "notes": "Scheduling rationale"
}}"""


BUDGET_PROMPT_TEMPLATE = """Suggest the optional production budget for "{series_title}".
{scope_line}

{story_bible_context}

{scripts_block}

{schedule_block}
{supporting_blocks}
RULES:
1. Only suggest ON-SET production crew and equipment; post-production is automated
2. Per episode target: $30-$625
3. Crew day rates: camera operator $100-$300, sound $100-$200, gaffer $100-$200, PA $50-$100, grip $75-$150
4. Multiply day rates by the shooting days in the schedule when one is available
5. Necessity: "highly-recommended", "recommended" or "optional", each with a reason from the scripts

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "crew": [
    {{
      "id": "crew-1",
      "role": "Camera Operator",
      "costRange": [100, 300],
      "suggestedCost": 200,
      "necessity": "recommended",
      "reason": "Specific justification from the scripts",
      "included": true
    }}
  ],
  "equipment": [],
  "miscellaneous": [],
  "totalEstimate": 0,
  "notes": "Budget rationale"
}}"""


def build_schedule_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    casting = request.prerequisites.get("casting")
    casting_block = "\n" + build_prerequisite_block("Casting", casting) + "\n" if casting else ""
    return SCHEDULE_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        scope_line=build_scope_line(request),
        story_bible_context=build_story_bible_context(bible),
        scripts_block=build_scripts_block(request),
        locations_block=build_prerequisite_block("Locations", request.prerequisites.get("locations")),
        casting_block=casting_block,
    )


def build_budget_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    supporting = []
    for stage, label in (("casting", "Casting"), ("locations", "Locations"), ("equipment", "Equipment")):
        payload = request.prerequisites.get(stage)
        if payload is not None:
            supporting.append(build_prerequisite_block(label, payload))
    supporting_blocks = "\n" + "\n\n".join(supporting) + "\n" if supporting else ""
    return BUDGET_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        scope_line=build_scope_line(request),
        story_bible_context=build_story_bible_context(bible),
        scripts_block=build_scripts_block(request),
        schedule_block=build_prerequisite_block("Shooting Schedule", request.prerequisites.get("schedule")),
        supporting_blocks=supporting_blocks,
    )
