"""Episode agent: beat sheet + vibe settings + director's notes -> prose episode"""

import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from ...core.response_parser import DEFAULT_BRANCHING_OPTIONS
from ...core.state import Episode, GenerationRequest, GenerationResult
from ..base import run_json_stage

logger = logging.getLogger(__name__)


def ensure_single_canonical(options: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the first canonical option; mark the first option canonical when none is"""
    seen = False
    for option in options:
        if option.get("isCanonical") is True and not seen:
            seen = True
        else:
            option["isCanonical"] = False
    if options and not seen:
        options[0]["isCanonical"] = True
    return options


def normalise_episode(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    """Fill required episode fields and enforce the canonical-option invariant"""
    episode_number = request.episode_number or data.get("episodeNumber") or 1
    episode = dict(data)
    episode["episodeNumber"] = episode_number
    if not episode.get("title"):
        episode["title"] = f"Episode {episode_number}"
    if not isinstance(episode.get("synopsis"), str):
        episode["synopsis"] = ""

    scenes = []
    for index, scene in enumerate(episode.get("scenes") or [], start=1):
        if isinstance(scene, str):
            scene = {"content": scene}
        elif not isinstance(scene, dict):
            continue
        scene = dict(scene)
        scene.setdefault("sceneNumber", index)
        scene.setdefault("title", f"Scene {index}")
        if not scene.get("content"):
            scene["content"] = scene.get("screenplay") or scene.get("sceneContent") or ""
        scenes.append(scene)
    episode["scenes"] = scenes

    options = []
    for index, option in enumerate(episode.get("branchingOptions") or [], start=1):
        if isinstance(option, str):
            option = {"text": option}
        elif not isinstance(option, dict):
            continue
        option = dict(option)
        option.setdefault("id", index)
        option["text"] = str(option.get("text") or option.get("choice") or f"Option {index}")
        option["isCanonical"] = option.get("isCanonical") is True
        options.append(option)
    if not options:
        logger.warning("[Episode Agent] No branching options in output, using defaults")
        options = [dict(option) for option in DEFAULT_BRANCHING_OPTIONS]
    episode["branchingOptions"] = ensure_single_canonical(options)

    try:
        return Episode.model_validate(episode).to_wire()
    except ValidationError as e:
        logger.warning(f"[Episode Agent] Episode does not match the Episode model, returning as-is: {e}")
        return episode


async def episode_agent(request: GenerationRequest, client) -> GenerationResult:
    """Generate one episode from its beat sheet"""
    logger.info(f"[Episode Agent] Generating episode {request.episode_number} "
                f"(beat sheet {len(request.beat_sheet or '')} chars)")
    result = await run_json_stage("episode", request, client, normalise=normalise_episode)
    if result.success:
        logger.info(f"[Episode Agent] Episode has {len(result.payload['scenes'])} scenes, "
                    f"{len(result.payload['branchingOptions'])} branching options")
    return result
