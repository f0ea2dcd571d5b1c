"""Boundary validation for generation requests

Checks run on the raw JSON body so that every problem is reported at once
and no provider is contacted for an invalid request.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..core.config import ALL_STAGES, PREPRODUCTION_STAGES, GOOGLE_VEO_CONFIG
from ..core.errors import RequestValidationFailed
from ..core.state import GenerationRequest
from ..prompts import QUESTIONNAIRE_TYPES

MIN_BEAT_SHEET_LENGTH = 50

# URL names that differ from the stage name
STAGE_ALIASES = {
    "script": "episode",
}

VIBE_FIELDS = [
    ("tone", "Tone"),
    ("pacing", "Pacing"),
    ("dialogueStyle", "Dialogue style"),
]


def resolve_stage(name: str) -> Optional[str]:
    """URL stage name ("props-wardrobe", "script") -> stage, or None if unknown"""
    stage = name.strip().lower().replace("-", "_")
    stage = STAGE_ALIASES.get(stage, stage)
    return stage if stage in ALL_STAGES else None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _valid_episode_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _check_story_bible(body: Dict[str, Any], errors: List[str], strict: bool = False):
    story_bible = body.get("storyBible")
    if not story_bible:
        errors.append("Story bible is required")
        return
    if not isinstance(story_bible, dict):
        errors.append("Story bible must be an object")
        return
    if strict:
        if not story_bible.get("seriesTitle"):
            errors.append("Story bible must have a series title")
        if not story_bible.get("mainCharacters"):
            errors.append("Story bible must have at least one character")


def _check_vibe_settings(body: Dict[str, Any], errors: List[str]):
    vibe = body.get("vibeSettings")
    if vibe is None:
        return
    if not isinstance(vibe, dict):
        errors.append("Vibe settings must be an object")
        return
    for key, label in VIBE_FIELDS:
        value = vibe.get(key, 50)
        if not _is_number(value) or value < 0 or value > 100:
            errors.append(f"{label} must be a number between 0 and 100")
        elif value != int(value):
            errors.append(f"{label} must be a whole number")


CONCEPT_FIELDS = ("logline", "protagonist", "stakes", "vibe", "theme")


def _has_text(body: Dict[str, Any], key: str) -> bool:
    value = body.get(key)
    return isinstance(value, str) and bool(value.strip())


def _check_concept(body: Dict[str, Any], errors: List[str]):
    """Story bible input: the concept questions or the legacy synopsis and theme"""
    if all(_has_text(body, key) for key in CONCEPT_FIELDS):
        return
    if _has_text(body, "synopsis") and _has_text(body, "theme"):
        return
    errors.append("Either the 5 essential questions (logline, protagonist, stakes, vibe, theme) "
                  "or legacy format (synopsis, theme) is required")


def _check_scenes(container: Any, message: str, errors: List[str]):
    if not isinstance(container, dict) or not isinstance(container.get("scenes"), list) or not container["scenes"]:
        errors.append(message)


def collect_stage_errors(stage: str, body: Dict[str, Any]) -> List[str]:
    """Every validation problem of a single-stage request body"""
    errors: List[str] = []
    if stage == "story_bible":
        _check_concept(body, errors)
        _check_vibe_settings(body, errors)
        return errors
    _check_story_bible(body, errors, strict=(stage == "episode"))

    episode_number = body.get("episodeNumber")
    if stage in ("beat_sheet", "episode"):
        if not _valid_episode_number(episode_number):
            errors.append("Valid episode number is required")
    elif episode_number is not None and not _valid_episode_number(episode_number):
        errors.append("Episode number must be a positive integer")

    if stage == "beat_sheet":
        if not isinstance(body.get("episodeGoal"), str) or not body["episodeGoal"].strip():
            errors.append("Episode goal is required")

    if stage == "episode":
        beat_sheet = body.get("beatSheet")
        if not isinstance(beat_sheet, str) or len(beat_sheet.strip()) < MIN_BEAT_SHEET_LENGTH:
            errors.append(f"Beat sheet must be at least {MIN_BEAT_SHEET_LENGTH} characters long")

    if stage in ("storyboard", "script_breakdown"):
        _check_scenes(body.get("episodeData"), "Episode data with at least one scene is required", errors)

    if stage == "shot_list":
        _check_scenes(body.get("breakdownData"),
                      "No scenes found in script breakdown. Please generate script breakdown first.", errors)

    if stage == "questionnaire":
        questionnaire_type = body.get("questionnaireType")
        if questionnaire_type is not None and questionnaire_type not in QUESTIONNAIRE_TYPES:
            errors.append(f"Questionnaire type must be one of: {', '.join(QUESTIONNAIRE_TYPES)}")
        if not body.get("episodes") and not body.get("episodeData"):
            errors.append("Script data is required for questionnaire context")

    _check_vibe_settings(body, errors)
    return errors


def resolve_stage_list(names: Any, errors: List[str]) -> List[str]:
    """Requested "regenerate all" stages; defaults to every pre-production stage"""
    if names is None:
        return list(PREPRODUCTION_STAGES)
    if not isinstance(names, list) or not names:
        errors.append("Stages must be a non-empty list")
        return []
    stages = []
    for name in names:
        stage = resolve_stage(name) if isinstance(name, str) else None
        if stage not in PREPRODUCTION_STAGES:
            errors.append(f"Unknown pre-production stage: {name}")
        elif stage not in stages:
            stages.append(stage)
    return stages


def collect_regenerate_all_errors(body: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    _check_story_bible(body, errors)
    resolve_stage_list(body.get("stages"), errors)

    arc_index = body.get("arcIndex")
    if arc_index is not None and (not isinstance(arc_index, int) or isinstance(arc_index, bool) or arc_index < 0):
        errors.append("Arc index must be a non-negative integer")
    episode_number = body.get("episodeNumber")
    if episode_number is not None and not _valid_episode_number(episode_number):
        errors.append("Episode number must be a positive integer")
    if body.get("userId") and not body.get("storyBibleId"):
        errors.append("storyBibleId is required to save pre-production")
    _check_vibe_settings(body, errors)
    return errors


def collect_video_errors(body: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    prompt = body.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        errors.append("Prompt is required")
    aspect_ratio = body.get("aspectRatio")
    if aspect_ratio is not None and aspect_ratio not in GOOGLE_VEO_CONFIG["aspect_ratios"].values():
        errors.append(f"Aspect ratio must be one of: {', '.join(GOOGLE_VEO_CONFIG['aspect_ratios'].values())}")
    duration = body.get("durationSeconds")
    if duration is not None and duration not in GOOGLE_VEO_CONFIG["durations"]:
        errors.append(f"Duration must be one of: {', '.join(str(d) for d in GOOGLE_VEO_CONFIG['durations'])} seconds")
    return errors


def _pydantic_messages(e: ValidationError) -> List[str]:
    messages = []
    for error in e.errors():
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


def build_request(stage: Optional[str], body: Any, errors: List[str]) -> GenerationRequest:
    """Raise RequestValidationFailed with errors, or return the parsed request"""
    if errors:
        raise RequestValidationFailed(errors)
    try:
        request = GenerationRequest.model_validate(body)
    except ValidationError as e:
        raise RequestValidationFailed(_pydantic_messages(e))
    request.stage = stage
    return request


def parse_stage_request(stage: str, body: Any) -> GenerationRequest:
    if not isinstance(body, dict):
        raise RequestValidationFailed(["Request body must be a JSON object"])
    return build_request(stage, body, collect_stage_errors(stage, body))


def parse_regenerate_all_request(body: Any):
    """(request, stages) for a "regenerate all" body"""
    if not isinstance(body, dict):
        raise RequestValidationFailed(["Request body must be a JSON object"])
    errors = collect_regenerate_all_errors(body)
    stages = resolve_stage_list(body.get("stages"), [])
    fields = {key: value for key, value in body.items() if key not in ("stages", "type")}
    return build_request(None, fields, errors), stages
