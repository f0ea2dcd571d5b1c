"""Casting prompts"""

from ..core.state import GenerationRequest
from .context import (
    build_story_bible_context,
    build_scripts_block,
    build_scope_line,
    character_names,
    series_title,
)

CASTING_PROMPT_TEMPLATE = """Create a casting breakdown for "{series_title}".
{scope_line}

{story_bible_context}

{scripts_block}

CHARACTERS TO CAST ({character_count}):
{character_list}

CASTING REQUIREMENTS:
• One role entry for EVERY character listed above, in the same order
• Describe the actor type in terms a casting call can use (age range, look, energy)
• Key scenes and emotional beats the actor must carry, taken from the scripts
• Micro-budget focus: favour local, non-union and social media talent where it fits
• Note chemistry reads needed between characters who share key scenes

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "roles": [
    {{
      "character": "Character name",
      "roleType": "lead | supporting | recurring",
      "ageRange": "25-35",
      "description": "Casting call description",
      "actorTemplates": [
        {{"archetype": "Actor type", "examples": ["Known actor for reference"], "specialSkills": ["skill"]}}
      ],
      "keyBeats": ["Beat the actor must land"],
      "keyScenes": [{{"episodeNumber": 1, "sceneNumber": 2, "why": "Reason"}}],
      "relationships": [{{"character": "Other name", "chemistry": "What the pairing needs"}}],
      "castingNotes": "Practical notes for the casting call"
    }}
  ],
  "chemistryReads": [{{"characters": ["A", "B"], "reason": "Shared key scenes"}}],
  "notes": "Overall casting strategy"
}}"""


def build_casting_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    names = character_names(bible)
    return CASTING_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        scope_line=build_scope_line(request),
        story_bible_context=build_story_bible_context(bible),
        scripts_block=build_scripts_block(request),
        character_count=len(names),
        character_list="\n".join(f"- {name}" for name in names) or "- No characters listed; infer from the scripts",
    )
