"""Script breakdown and shot list prompts

The breakdown works from the episode script. The shot list works from the
breakdown and, when one exists, the storyboard of the same episode.
"""

from ..core.state import GenerationRequest
from .context import (
    build_story_bible_context,
    build_episode_content,
    build_prerequisite_block,
    series_title,
)

SCRIPT_BREAKDOWN_PROMPT_TEMPLATE = """Analyze this screenplay and create a detailed production breakdown for micro-budget filming.

SERIES INFORMATION:
Title: {series_title}
Format: Web series, 5-minute episodes
Per Episode Budget: ~$30-$625 (ultra-micro-budget)
Production Model: Actors not paid (revenue share), crew optional

{story_bible_context}

=== SCREENPLAY ===
{episode_content}

YOUR TASK:
You MUST analyze ALL {scene_count} scenes above, one breakdown entry per scene. Do not skip any scene.
For each scene provide:
1. Scene info: scene number, title, location exactly as written, time of day (DAY, NIGHT, SUNRISE, SUNSET or MAGIC_HOUR)
2. Characters who appear or speak in the scene, with dialogue line count and importance (lead, supporting or background)
3. Props characters interact with: importance (hero, secondary or background), source (buy, rent, borrow or actor-owned) and estimated cost
4. Special requirements beyond a basic camera and microphone, only when the scene clearly needs them
5. Shoot time estimate in minutes (rehearsed actors: 15-90 minutes per scene)
6. Budget impact in dollars covering location fees, props and extras only, with budgetDetails
7. Logistics, coverage and continuity notes
8. Warnings for anything risky: over budget, unclear slug lines, continuity risks

RULES:
• Extract only what exists in the screenplay; never invent characters, props or locations
• Keep each scene under $250 and the episode under $625
• Extras cost $30-$40 per day and only when the scene needs background actors

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "scenes": [
    {{
      "sceneNumber": 1,
      "sceneTitle": "Radio Booth - Night",
      "location": "INT. RADIO BOOTH",
      "timeOfDay": "NIGHT",
      "estimatedShootTime": 20,
      "characters": [{{"name": "MAYA", "lineCount": 5, "importance": "lead"}}],
      "props": [{{"item": "Headphones", "importance": "hero", "source": "actor-owned", "estimatedCost": 0}}],
      "specialRequirements": ["Practical desk lamp"],
      "budgetImpact": 8,
      "budgetDetails": {{"locationCost": 0, "propCost": 8, "extrasCost": 0, "specialEqCost": 0, "contingency": 0, "savingsTips": [], "assumptions": []}},
      "logistics": {{"nightShoot": true, "companyMoveRequired": false}},
      "coverage": {{"suggestedSetupCount": 2, "complexity": "simple"}},
      "continuity": {{"keyPropsCarried": [], "wardrobeNotes": ""}},
      "warnings": [],
      "notes": "Production considerations"
    }}
  ]
}}

The "scenes" array must contain exactly {scene_count} objects."""


SHOT_LIST_PROMPT_TEMPLATE = """Generate a production shot list for Episode {episode_number} "{episode_title}" of the series "{series_title}".

STORY CONTEXT:
Series Genre: {genre}
Series Tone: {tone}
Production Model: Micro-budget web series ($1k-$20k total series budget)

{breakdown_block}

{storyboard_block}

SHOT LIST RULES:
• Shot lists are production execution plans for the camera team and AD, not creative descriptions
• Use the storyboard for shot count and angles when it is available, otherwise work from the breakdown
• Vary shot counts per scene: simple 2-3, medium 4-5, complex 6-8
• Camera angle: wide, medium, close-up, extreme-close-up, over-shoulder, pov or dutch
• Camera movement: static, pan, tilt, dolly, tracking, handheld, steadicam or crane; prefer simple moves
• Lens: wide 24-35mm, medium 50-85mm, close-up 85-135mm
• Priority: must-have for critical story beats, nice-to-have for coverage, optional for extras
• Duration in seconds: dialogue 3-8, action 5-15, establishing 2-5, reactions 2-4

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "scenes": [
    {{
      "sceneNumber": 1,
      "sceneTitle": "INT. RADIO BOOTH - NIGHT",
      "location": "Radio booth",
      "shots": [
        {{
          "shotNumber": "1",
          "description": "Wide establishing shot of the booth",
          "cameraAngle": "wide",
          "cameraMovement": "static",
          "lensRecommendation": "24mm",
          "durationEstimate": 3,
          "priority": "must-have",
          "fpsCameraFrameRate": 24,
          "notes": "Establish location"
        }}
      ]
    }}
  ]
}}

Generate shots for every scene of the breakdown."""


def breakdown_for(request: GenerationRequest):
    """Breakdown payload from the request body or an upstream stage"""
    return request.breakdown_data or request.prerequisites.get("script_breakdown")


def storyboard_for(request: GenerationRequest):
    return request.storyboard_data or request.prerequisites.get("storyboard")


def build_script_breakdown_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    episode_data = request.episode_data or {}
    return SCRIPT_BREAKDOWN_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        story_bible_context=build_story_bible_context(bible),
        episode_content=build_episode_content(request.episode_data),
        scene_count=len(episode_data.get("scenes") or []),
    )


def build_shot_list_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    episode_number = request.episode_number or (request.episode_data or {}).get("episodeNumber") or 1
    breakdown = breakdown_for(request) or {}
    storyboard = storyboard_for(request)
    episode_title = breakdown.get("episodeTitle") or (request.episode_data or {}).get("title") or f"Episode {episode_number}"
    return SHOT_LIST_PROMPT_TEMPLATE.format(
        episode_number=episode_number,
        episode_title=episode_title,
        series_title=series_title(bible),
        genre=bible.genre or "Drama",
        tone=bible.tone or "Realistic",
        breakdown_block=build_prerequisite_block("Script Breakdown", breakdown_for(request)),
        storyboard_block=(build_prerequisite_block("Storyboard", storyboard) if storyboard
                          else "=== STORYBOARD ===\nNo storyboard yet. Plan shots from the breakdown."),
    )
