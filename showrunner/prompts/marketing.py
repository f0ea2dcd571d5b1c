"""Marketing prompts"""

from ..core.state import GenerationRequest
from .context import (
    build_story_bible_context,
    build_scripts_block,
    build_scope_line,
    build_prerequisite_block,
    series_title,
)

MARKETING_PROMPT_TEMPLATE = """Create the marketing strategy for "{series_title}".
{scope_line}

{story_bible_context}

{scripts_block}
{casting_block}
MARKETING REQUIREMENTS:
• Primary and secondary audiences with the reason each will watch
• 3-5 hooks: tagline plus supporting copy, grounded in specific story moments
• Platform strategy for short-form video (TikTok, Instagram Reels, YouTube Shorts)
• A teaser concept per hook that could be generated as a short vertical video
• When casting is provided, name which roles front the campaign

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "marketing": {{
    "targetAudience": {{
      "primaryDemographic": "Who",
      "secondaryDemographics": ["Who else"],
      "psychographics": "Why they watch"
    }},
    "marketingHooks": [
      {{"tagline": "Hook", "supportingCopy": "Copy", "storyMoment": "Episode and scene it comes from"}}
    ],
    "platformStrategy": [
      {{"platform": "TikTok", "contentTypes": ["Teaser"], "postingCadence": "3x per week"}}
    ],
    "teaserConcepts": [
      {{"title": "Teaser", "prompt": "Visual description for a short vertical video", "aspectRatio": "9:16"}}
    ]
  }}
}}"""


def build_marketing_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    casting = request.prerequisites.get("casting") or request.casting_data
    casting_block = "\n" + build_prerequisite_block("Casting", casting) + "\n" if casting else ""
    return MARKETING_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        scope_line=build_scope_line(request),
        story_bible_context=build_story_bible_context(bible),
        scripts_block=build_scripts_block(request),
        casting_block=casting_block,
    )
