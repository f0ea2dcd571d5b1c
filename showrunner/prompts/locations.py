"""Location scouting prompts"""

from ..core.state import GenerationRequest
from .context import (
    build_story_bible_context,
    build_scripts_block,
    build_scope_line,
    build_prerequisite_block,
    series_title,
)

LOCATIONS_PROMPT_TEMPLATE = """Scout filming locations for "{series_title}".
{scope_line}

{story_bible_context}

{scripts_block}

{casting_block}

LOCATION REQUIREMENTS:
• One entry per distinct script location, listing the scenes that use it
• 2-3 options per location: recommended, budget-friendly, alternative style
• Micro-budget: per location $0-$500, most should be $0-$150
• Prioritize free spaces, then public spaces, then low-cost rental
• Locations must match the story setting; prefer places near the cast when casting lists a base
• Honest pros and cons, 2-4 each
• Logistics: parking, power, restrooms, permit needed

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "locations": [
    {{
      "scriptLocation": "Location as written in the script",
      "scenes": [{{"episodeNumber": 1, "sceneNumber": 1}}],
      "options": [
        {{
          "name": "Option name",
          "type": "recommended | budget | alternative",
          "description": "What it is",
          "estimatedCost": 0,
          "pros": ["Matches script aesthetic"],
          "cons": ["Limited availability"],
          "logistics": {{"parking": "available", "power": true, "restrooms": true, "permitRequired": false, "notes": ""}}
        }}
      ]
    }}
  ],
  "notes": "Overall scouting strategy"
}}"""


def build_locations_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    casting = request.prerequisites.get("casting") or request.casting_data
    casting_block = build_prerequisite_block("Casting", casting) if casting else ""
    return LOCATIONS_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        scope_line=build_scope_line(request),
        story_bible_context=build_story_bible_context(bible),
        scripts_block=build_scripts_block(request),
        casting_block=casting_block,
    )
