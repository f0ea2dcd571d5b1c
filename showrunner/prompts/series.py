"""Story bible prompt: series concept -> full story bible"""

from typing import List

from ..core.state import GenerationRequest
from .context import DIVIDER

STORY_BIBLE_PROMPT_TEMPLATE = """Create a comprehensive Story Bible with flexible structure based on story complexity.

SERIES CONCEPT:
{divider}
Synopsis: {synopsis}
Theme: {theme}
{title_line}{character_block}{divider}

Return ONLY valid JSON in this exact structure, without markdown or additional text:
{{
  "seriesTitle": "A catchy title for the series",
  "genre": "Primary genre",
  "tone": "Overall tone",
  "premise": {{
    "premiseStatement": "One-sentence premise",
    "coreConflict": "The central conflict",
    "stakes": "What is at risk"
  }},
  "targetAudience": "Who this series is for",
  "mainCharacters": [
    {{
      "name": "Character Name",
      "archetype": "Character Archetype",
      "description": "Detailed character description",
      "motivation": "What drives them",
      "arc": "Brief description of the character's full-series arc"
    }}
  ],
  "narrativeArcs": [
    {{
      "title": "Arc Title",
      "summary": "Summary of this narrative arc",
      "episodes": [
        {{"number": 1, "title": "Episode Title", "summary": "Brief episode summary"}}
      ]
    }}
  ],
  "potentialBranchingPaths": "Major choices and consequences available to viewers throughout the series",
  "worldBuilding": {{
    "setting": "Overall setting description",
    "rules": "Key rules or laws of this world",
    "locations": [
      {{"name": "Location Name", "description": "Location description", "significance": "Why this location matters"}}
    ]
  }},
  "themes": ["Theme"]
}}

GUIDELINES:
• Let the story determine the character, arc and episode counts; do not force template numbers
• Character count should reflect story complexity and the perspectives the story needs
• Episode count per arc should follow that arc's pacing and development needs
• Number episodes consecutively across arcs, starting at 1
• Each story should feel specific to this concept and never generic
• Every location should be practical to shoot for a micro-budget web series"""


def split_character_info(character_info) -> List[str]:
    """Character notes as a list; text input is split on "--" separators"""
    if not character_info:
        return []
    if isinstance(character_info, str):
        parts = character_info.split("--")
    else:
        parts = [str(part) for part in character_info]
    return [part.strip() for part in parts if part.strip()]


def build_concept_synopsis(request: GenerationRequest) -> str:
    """Synopsis from the concept questions, or the legacy synopsis as given"""
    if request.logline and request.protagonist:
        synopsis = (f"{request.logline} The story follows {request.protagonist}. {request.stakes or ''} "
                    f"The story is set in {request.setting or 'a world of its own'}. "
                    f"The overall vibe is {request.vibe or 'grounded'}, exploring themes of {request.theme or 'growth'}.")
        synopsis = " ".join(synopsis.split())
        if request.additional_info:
            synopsis += f"\n\nAdditional context: {request.additional_info.strip()}"
        return synopsis
    return request.synopsis or "A story about characters facing challenges"


def requested_series_title(request: GenerationRequest) -> str:
    settings = request.advanced_settings or {}
    title = settings.get("seriesTitle")
    return title.strip() if isinstance(title, str) else ""


def build_story_bible_prompt(request: GenerationRequest) -> str:
    title = requested_series_title(request)
    characters = split_character_info(request.character_info)
    character_block = ""
    if characters:
        lines = "\n".join(f"{index}. {text}" for index, text in enumerate(characters, start=1))
        character_block = f"\nCHARACTERS THE CREATOR ALREADY HAS IN MIND (keep them, add others only if needed):\n{lines}\n"
    return STORY_BIBLE_PROMPT_TEMPLATE.format(
        divider=DIVIDER,
        synopsis=build_concept_synopsis(request),
        theme=request.theme or "Growth and discovery",
        title_line=f'Series Title (use exactly): "{title}"\n' if title else "",
        character_block=character_block,
    )
