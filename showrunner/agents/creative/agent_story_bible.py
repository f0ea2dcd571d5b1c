"""Story bible agent: series concept -> story bible"""

import logging
import re
from typing import Any, Dict

from pydantic import ValidationError

from ...core.state import GenerationRequest, GenerationResult, StoryBible
from ...prompts.series import build_concept_synopsis, requested_series_title
from ..base import run_json_stage, ensure_list

logger = logging.getLogger(__name__)

TITLE_STOPWORDS = {"a", "an", "the", "of", "and", "in", "on", "to", "for", "with", "who", "when", "after"}


def heuristic_title(request: GenerationRequest) -> str:
    """Short title-cased phrase from the concept when the model gave none"""
    source = request.logline or request.synopsis or request.theme or ""
    words = [w for w in re.findall(r"[A-Za-z']+", source) if w.lower() not in TITLE_STOPWORDS]
    if not words:
        return "Untitled Series"
    return " ".join(word.capitalize() for word in words[:3])


def normalise_story_bible(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    """Requested title wins, lists are lists and episodes are numbered across arcs"""
    bible = ensure_list(dict(data), "mainCharacters", "narrativeArcs")
    title = requested_series_title(request)
    if title:
        bible["seriesTitle"] = title
    elif not isinstance(bible.get("seriesTitle"), str) or not bible["seriesTitle"].strip():
        bible["seriesTitle"] = heuristic_title(request)
    if not bible.get("premise"):
        bible["premise"] = build_concept_synopsis(request)

    bible["mainCharacters"] = [c for c in bible["mainCharacters"] if isinstance(c, dict)]
    arcs = []
    next_number = 1
    for index, arc in enumerate(bible["narrativeArcs"], start=1):
        if not isinstance(arc, dict):
            continue
        arc = dict(arc)
        arc.setdefault("title", f"Arc {index}")
        episodes = []
        for episode in arc.get("episodes") or []:
            if not isinstance(episode, dict):
                continue
            episode = dict(episode)
            if not isinstance(episode.get("number"), int) or isinstance(episode.get("number"), bool):
                episode["number"] = next_number
            next_number = episode["number"] + 1
            episodes.append(episode)
        arc["episodes"] = episodes
        arcs.append(arc)
    bible["narrativeArcs"] = arcs

    try:
        return StoryBible.model_validate(bible).to_wire()
    except ValidationError as e:
        logger.warning(f"[Story Bible Agent] Story bible does not match the StoryBible model, returning as-is: {e}")
        return bible


async def story_bible_agent(request: GenerationRequest, client) -> GenerationResult:
    """Generate a story bible from the concept questions"""
    logger.info("[Story Bible Agent] Generating story bible"
                + (f" titled {requested_series_title(request)!r}" if requested_series_title(request) else ""))
    result = await run_json_stage("story_bible", request, client, normalise=normalise_story_bible)
    if result.success:
        episodes = sum(len(arc["episodes"]) for arc in result.payload.get("narrativeArcs", []))
        logger.info(f"[Story Bible Agent] {len(result.payload.get('mainCharacters', []))} characters, "
                    f"{len(result.payload.get('narrativeArcs', []))} arcs, {episodes} episodes")
    return result
