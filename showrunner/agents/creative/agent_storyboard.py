"""Storyboard agent: episode script -> shots per scene"""

import logging
from typing import Any, Dict

from ...core.state import GenerationRequest, GenerationResult
from ..base import run_json_stage

logger = logging.getLogger(__name__)


def normalise_storyboard(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    storyboard = dict(data)
    episode_data = request.episode_data or {}
    storyboard.setdefault("episodeNumber", request.episode_number or episode_data.get("episodeNumber") or 1)
    scenes = []
    for index, scene in enumerate(storyboard.get("scenes") or [], start=1):
        if not isinstance(scene, dict):
            continue
        scene = dict(scene)
        scene.setdefault("sceneNumber", index)
        shots = [shot for shot in scene.get("shots") or [] if isinstance(shot, dict)]
        for shot_index, shot in enumerate(shots, start=1):
            shot.setdefault("shotNumber", shot_index)
            # Models sometimes emit a bare string here
            if not isinstance(shot.get("propsInFrame", []), list):
                shot["propsInFrame"] = [shot["propsInFrame"]] if shot["propsInFrame"] else []
        scene["shots"] = shots
        scenes.append(scene)
    storyboard["scenes"] = scenes
    return storyboard


async def storyboard_agent(request: GenerationRequest, client) -> GenerationResult:
    result = await run_json_stage("storyboard", request, client, normalise=normalise_storyboard)
    if result.success:
        shots = sum(len(scene["shots"]) for scene in result.payload["scenes"])
        logger.info(f"[Storyboard Agent] {len(result.payload['scenes'])} scenes, {shots} shots")
    return result
