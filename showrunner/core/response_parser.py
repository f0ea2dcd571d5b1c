"""Tolerant JSON extraction from free-form model output

Strategies are tried in order and the first one that yields a JSON object wins:
direct parse, fenced code block, first balanced {...} substring, and finally a
fixed stage-specific fallback object. parse_response never raises.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, NamedTuple, Optional

logger = logging.getLogger(__name__)

FENCED_BLOCK_PATTERN = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)```")
TRAILING_COMMA_PATTERN = re.compile(r",(\s*[}\]])")


class ParseResult(NamedTuple):
    data: Dict[str, Any]
    fallback_used: bool
    strategy: str


def clean_json_response(response_text: str) -> str:
    """
    Clean JSON response from markdown code blocks and extra trailing braces.
    LLMs may wrap JSON in ```json...``` blocks which need to be stripped.
    Some models occasionally add extra closing braces at the end.

    Args:
        response_text: Raw text that might contain markdown-wrapped JSON

    Returns:
        Clean JSON string ready for parsing
    """
    response_text = response_text.strip()
    if response_text.startswith("```json"):
        response_text = response_text[7:]
        if response_text.endswith("```"):
            response_text = response_text[:-3]
        response_text = response_text.strip()
    elif response_text.startswith("```"):
        response_text = response_text[3:]
        if response_text.endswith("```"):
            response_text = response_text[:-3]
        response_text = response_text.strip()

    # Only strip trailing braces on a clear imbalance, at most 3
    max_removals = 3
    removals = 0
    while removals < max_removals:
        open_count = response_text.count('{')
        close_count = response_text.count('}')
        if close_count <= open_count:
            break
        if response_text.rstrip().endswith('}'):
            response_text = response_text.rstrip()[:-1]
            removals += 1
        else:
            break

    return response_text.strip()


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    """json.loads that only accepts objects, retrying once without trailing commas"""
    for text in (candidate, TRAILING_COMMA_PATTERN.sub(r"\1", candidate)):
        try:
            value = json.loads(text)
        except (json.JSONDecodeError, TypeError, ValueError):
            continue
        if isinstance(value, dict):
            return value
    return None


def parse_direct(raw_text: str) -> Optional[Dict[str, Any]]:
    """Strategy 1: the whole string is JSON"""
    data = _loads_object(raw_text)
    if data is None:
        cleaned = clean_json_response(raw_text)
        if cleaned != raw_text.strip():
            data = _loads_object(cleaned)
    return data


def parse_fenced(raw_text: str) -> Optional[Dict[str, Any]]:
    """Strategy 2: first ``` block, optionally tagged json"""
    match = FENCED_BLOCK_PATTERN.search(raw_text)
    if not match:
        return None
    return _loads_object(match.group(1).strip())


def find_balanced_objects(text: str) -> List[str]:
    """Every top-level balanced {...} substring, in order

    Objects nested inside a candidate are never candidates themselves.
    Braces inside JSON strings are ignored, escapes are honoured.
    """
    candidates = []
    start = text.find('{')
    while start != -1:
        depth = 0
        in_string = False
        escape = False
        end = -1
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escape:
                    escape = False
                elif char == '\\':
                    escape = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end == -1:
            # Unclosed, so no later opening brace can close either
            break
        candidates.append(text[start:end + 1])
        start = text.find('{', end + 1)
    return candidates


def parse_brace_matched(raw_text: str) -> Optional[Dict[str, Any]]:
    """Strategy 3: first balanced {...} substring anywhere in the text that parses"""
    for candidate in find_balanced_objects(raw_text):
        data = _loads_object(candidate)
        if data is not None:
            return data
    return None


STRATEGIES: List[tuple] = [
    ("direct", parse_direct),
    ("fenced", parse_fenced),
    ("brace_matched", parse_brace_matched),
]


# ---------------------------------------------------------------------------
# Fallback payloads
# ---------------------------------------------------------------------------

DEFAULT_BRANCHING_OPTIONS = [
    {"id": 1, "text": "Continue the story", "isCanonical": True},
    {"id": 2, "text": "Explore alternative path", "isCanonical": False},
    {"id": 3, "text": "Focus on character development", "isCanonical": False},
]


def fallback_episode(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    """Single placeholder scene built from the beat sheet plus three default options"""
    episode_number = context.get("episode_number") or 1
    beat_sheet = context.get("beat_sheet") or ""
    notes = context.get("directors_notes")

    beat_lines = [line for line in beat_sheet.split('\n') if line.strip()]
    if beat_lines:
        scene_content = '\n\n'.join(beat_lines)
    else:
        scene_content = 'The episode unfolds according to the beat sheet structure.'
    synopsis = beat_sheet[:200] + '...' if len(beat_sheet) > 200 else beat_sheet
    if notes:
        notes_summary = notes[:100] + '...' if len(notes) > 100 else notes
    else:
        notes_summary = 'Applied creative direction'

    return {
        "episodeNumber": episode_number,
        "title": f"Episode {episode_number}",
        "synopsis": synopsis,
        "scenes": [
            {
                "sceneNumber": 1,
                "title": "Episode Scene",
                "content": scene_content + '\n\n[Episode continues based on beat sheet and creative direction...]'
            }
        ],
        "branchingOptions": [dict(option) for option in DEFAULT_BRANCHING_OPTIONS],
        "episodeRundown": f"Episode generated from beat sheet with custom vibe settings. Director's notes: {notes_summary}"
    }


def fallback_storyboard(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "episodeNumber": context.get("episode_number") or 1,
        "scenes": [
            {
                "sceneNumber": 1,
                "location": "Location",
                "description": "Storyboard content was generated but couldn't be parsed properly",
                "shots": [
                    {"shotNumber": 1, "shotType": "Wide", "description": "Establishing shot"}
                ]
            }
        ]
    }


def fallback_marketing(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "marketing": {
            "targetAudience": {
                "primaryDemographic": "General audience",
                "secondaryDemographics": ["Young adults", "Tech enthusiasts"]
            },
            "marketingHooks": [
                {
                    "tagline": "Compelling Story",
                    "supportingCopy": "Marketing content was generated but couldn't be parsed properly."
                }
            ]
        }
    }


def fallback_props_wardrobe(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "props": [
            {
                "name": "Main Prop",
                "description": "Props content was generated but couldn't be parsed properly",
                "importance": "hero"
            }
        ],
        "wardrobe": []
    }


def fallback_casting(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    characters = context.get("character_names") or []
    return {
        "roles": [
            {
                "character": name,
                "castingNotes": "Casting content was generated but couldn't be parsed properly. Please regenerate.",
            }
            for name in characters
        ]
    }


def fallback_locations(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "locations": [],
        "notes": "Location suggestions were generated but couldn't be parsed properly. Please regenerate."
    }


def fallback_equipment(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "camera": [],
        "lighting": [],
        "sound": [],
        "notes": "Equipment list was generated but couldn't be parsed properly. Please regenerate."
    }


def fallback_permits(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "requiredPermits": [],
        "notes": "Permit requirements should be reviewed based on selected locations and shooting schedule."
    }


def fallback_schedule(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "shootingDays": [],
        "notes": "Schedule was generated but couldn't be parsed properly. Please regenerate."
    }


def fallback_budget(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "crew": [],
        "equipment": [],
        "miscellaneous": [],
        "totalEstimate": 0,
        "notes": "Budget was generated but couldn't be parsed properly. Please regenerate."
    }


def fallback_questionnaire(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "questionnaireType": context.get("questionnaire_type") or "both",
        "categories": [
            {
                "category": "budget-constraints",
                "questions": [
                    {
                        "id": "budget-1",
                        "category": "budget-constraints",
                        "question": "What is the total budget available for this episode?",
                        "type": "number",
                        "required": True
                    }
                ]
            }
        ]
    }


def fallback_story_bible(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    """Minimal bible carrying the concept through so the creator can regenerate"""
    synopsis = context.get("synopsis") or ""
    return {
        "seriesTitle": context.get("series_title") or "Untitled Series",
        "premise": synopsis,
        "mainCharacters": [],
        "narrativeArcs": [],
        "worldBuilding": {"setting": "", "rules": "", "locations": []},
        "notes": "Story bible was generated but couldn't be parsed properly. Please regenerate."
    }


SLUG_LOCATION_PATTERN = re.compile(r"(?:INT\.|EXT\.)\s+(.+?)(?:\s+-\s+|$)", re.IGNORECASE)
TIMES_OF_DAY = ["NIGHT", "SUNRISE", "SUNSET", "MAGIC HOUR"]


def slug_time_of_day(heading: str) -> str:
    upper = heading.upper()
    for time_of_day in TIMES_OF_DAY:
        if time_of_day in upper:
            return time_of_day.replace(" ", "_")
    return "DAY"


def basic_scene_breakdown(scene: Any, index: int) -> Dict[str, Any]:
    """Breakdown entry read off the scene heading alone"""
    if isinstance(scene, dict):
        number = scene.get("sceneNumber") or index
        text = scene.get("content") or scene.get("screenplay") or ""
        heading = scene.get("title") or (text.splitlines()[0] if text else "")
    else:
        number = index
        heading = str(scene).splitlines()[0] if scene else ""
    match = SLUG_LOCATION_PATTERN.search(heading)
    time_of_day = slug_time_of_day(heading)
    return {
        "sceneNumber": number,
        "sceneTitle": heading or f"Scene {number}",
        "location": match.group(1).strip() if match else "Unknown Location",
        "timeOfDay": time_of_day,
        "estimatedShootTime": 30,
        "characters": [],
        "props": [],
        "specialRequirements": [],
        "budgetImpact": 10,
        "logistics": {"nightShoot": time_of_day == "NIGHT", "companyMoveRequired": False},
        "coverage": {"suggestedSetupCount": 2, "complexity": "simple"},
        "warnings": ["Basic breakdown - AI generation failed for this scene"],
        "notes": "Basic breakdown created automatically. Please review and update with full details."
    }


def fallback_script_breakdown(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    episode_data = context.get("episode_data") or {}
    scenes = episode_data.get("scenes") or []
    return {
        "scenes": [basic_scene_breakdown(scene, index) for index, scene in enumerate(scenes, start=1)]
    }


def fallback_shot_list(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    """One establishing shot per breakdown scene"""
    breakdown = context.get("breakdown") or {}
    scenes = []
    for index, scene in enumerate(breakdown.get("scenes") or [], start=1):
        if not isinstance(scene, dict):
            continue
        scenes.append({
            "sceneNumber": scene.get("sceneNumber") or index,
            "sceneTitle": scene.get("sceneTitle") or f"Scene {index}",
            "location": scene.get("location") or "Location TBD",
            "shots": [
                {
                    "shotNumber": "1",
                    "description": "Establishing shot. Shot list was generated but couldn't be parsed properly",
                    "cameraAngle": "wide",
                    "cameraMovement": "static",
                    "durationEstimate": 3,
                    "priority": "must-have",
                }
            ]
        })
    return {"scenes": scenes}


def fallback_generic(raw_text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "content": "Content was generated but couldn't be parsed properly",
        "rawContent": (raw_text or "")[:1000],
        "error": "JSON parsing failed - content available in rawContent field"
    }


FALLBACK_BUILDERS: Dict[str, Callable[[str, Dict[str, Any]], Dict[str, Any]]] = {
    "episode": fallback_episode,
    "storyboard": fallback_storyboard,
    "marketing": fallback_marketing,
    "props_wardrobe": fallback_props_wardrobe,
    "casting": fallback_casting,
    "locations": fallback_locations,
    "equipment": fallback_equipment,
    "permits": fallback_permits,
    "schedule": fallback_schedule,
    "budget": fallback_budget,
    "questionnaire": fallback_questionnaire,
    "story_bible": fallback_story_bible,
    "script_breakdown": fallback_script_breakdown,
    "shot_list": fallback_shot_list,
}


def guess_stage(raw_text: str) -> Optional[str]:
    """Pick a fallback shape from the text when the caller did not name a stage"""
    if 'episode' in raw_text or 'scenes' in raw_text:
        return "episode"
    if 'marketing' in raw_text:
        return "marketing"
    return None


def build_fallback(stage: Optional[str], raw_text: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Strategy 4: fixed placeholder payload for the stage"""
    builder = FALLBACK_BUILDERS.get(stage or guess_stage(raw_text or ""), fallback_generic)
    return builder(raw_text or "", context or {})


def parse_response(raw_text: Optional[str], stage: Optional[str] = None,
                   context: Optional[Dict[str, Any]] = None) -> ParseResult:
    """Extract a JSON object from model output; never raises"""
    text = raw_text if isinstance(raw_text, str) else ""
    if text.strip():
        for name, strategy in STRATEGIES:
            try:
                data = strategy(text)
            except Exception as e:
                # A strategy bug must not break the never-raises contract
                logger.warning(f"[Response Parser] Strategy {name} errored: {type(e).__name__}: {e}")
                data = None
            if data is not None:
                logger.debug(f"[Response Parser] Parsed {stage or 'response'} with strategy {name}")
                return ParseResult(data=data, fallback_used=False, strategy=name)

    logger.warning(f"[Response Parser] All strategies failed for {stage or 'response'}, using fallback "
                   f"(excerpt: {text[:200]!r})")
    try:
        data = build_fallback(stage, text, context)
    except Exception as e:
        logger.error(f"[Response Parser] Fallback builder for {stage} errored: {e}")
        data = fallback_generic(text, {})
    return ParseResult(data=data, fallback_used=True, strategy="fallback")
