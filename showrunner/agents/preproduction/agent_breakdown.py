"""Script breakdown and shot list agents"""

import logging
from typing import Any, Dict, List

from ...core.response_parser import basic_scene_breakdown
from ...core.state import GenerationRequest, GenerationResult
from ...prompts.breakdown import breakdown_for
from ..base import run_json_stage, ensure_list

logger = logging.getLogger(__name__)

MAX_SCENE_BUDGET = 250
MAX_EPISODE_BUDGET = 625

TIMES_OF_DAY = ("DAY", "NIGHT", "SUNRISE", "SUNSET", "MAGIC_HOUR")
CHARACTER_IMPORTANCE = ("lead", "supporting", "background")
PROP_IMPORTANCE = ("hero", "secondary", "background")
PROP_SOURCES = ("buy", "rent", "borrow", "actor-owned")
SHOT_PRIORITIES = ("must-have", "nice-to-have", "optional")


def _choice(value: Any, allowed, default: str) -> str:
    if isinstance(value, str):
        for option in allowed:
            if value.strip().lower() == option.lower():
                return option
    return default


def _number(value: Any, default: float = 0) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return default


def _script_scenes(request: GenerationRequest) -> List[Any]:
    return (request.episode_data or {}).get("scenes") or []


def normalise_breakdown_scene(scene: Dict[str, Any], index: int) -> Dict[str, Any]:
    scene = dict(scene)
    scene.setdefault("sceneNumber", index)
    scene.setdefault("sceneTitle", f"Scene {scene['sceneNumber']}")
    scene["timeOfDay"] = _choice(scene.get("timeOfDay"), TIMES_OF_DAY, "DAY")
    ensure_list(scene, "characters", "props", "specialRequirements", "warnings")
    scene["characters"] = [c for c in scene["characters"] if isinstance(c, dict)]
    for character in scene["characters"]:
        character["importance"] = _choice(character.get("importance"), CHARACTER_IMPORTANCE, "supporting")
    scene["props"] = [p for p in scene["props"] if isinstance(p, dict)]
    for prop in scene["props"]:
        prop["importance"] = _choice(prop.get("importance"), PROP_IMPORTANCE, "secondary")
        prop["source"] = _choice(prop.get("source"), PROP_SOURCES, "buy")
        prop["estimatedCost"] = _number(prop.get("estimatedCost"))
    scene["estimatedShootTime"] = _number(scene.get("estimatedShootTime"), 30)

    budget = _number(scene.get("budgetImpact"))
    if budget > MAX_SCENE_BUDGET:
        scene["warnings"].append(f"Scene budget target ${MAX_SCENE_BUDGET} exceeded: ${budget}, capped")
        budget = MAX_SCENE_BUDGET
    scene["budgetImpact"] = budget
    return scene


def normalise_script_breakdown(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    """One entry per script scene, with totals and budget warnings"""
    breakdown = dict(data)
    # Models asked for an object sometimes answer with {"breakdown": [...]}
    if not isinstance(breakdown.get("scenes"), list) and isinstance(breakdown.get("breakdown"), list):
        breakdown["scenes"] = breakdown.pop("breakdown")
    ensure_list(breakdown, "scenes")

    scenes = [normalise_breakdown_scene(scene, index)
              for index, scene in enumerate(breakdown["scenes"], start=1) if isinstance(scene, dict)]
    covered = {scene["sceneNumber"] for scene in scenes}
    for index, script_scene in enumerate(_script_scenes(request), start=1):
        basic = basic_scene_breakdown(script_scene, index)
        if basic["sceneNumber"] not in covered:
            logger.warning(f"[Breakdown Agent] Scene {basic['sceneNumber']} missing from output, adding basic breakdown")
            scenes.append(basic)
    scenes.sort(key=lambda scene: _number(scene.get("sceneNumber")))

    episode_data = request.episode_data or {}
    breakdown["episodeNumber"] = request.episode_number or episode_data.get("episodeNumber") or 1
    breakdown.setdefault("episodeTitle", episode_data.get("title") or f"Episode {breakdown['episodeNumber']}")
    breakdown["scenes"] = scenes
    breakdown["totalScenes"] = len(scenes)
    breakdown["totalEstimatedTime"] = sum(_number(scene.get("estimatedShootTime")) for scene in scenes)
    breakdown["totalBudgetImpact"] = sum(_number(scene.get("budgetImpact")) for scene in scenes)
    warnings = [w for w in breakdown.get("warnings") or [] if isinstance(w, str)]
    if breakdown["totalBudgetImpact"] > MAX_EPISODE_BUDGET:
        warnings.append(f"Episode budget target ${MAX_EPISODE_BUDGET} exceeded: ${breakdown['totalBudgetImpact']}")
    breakdown["warnings"] = warnings
    return breakdown


def normalise_shot_list(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    """Shot defaults, titles and locations from the breakdown, and totals"""
    shot_list = ensure_list(dict(data), "scenes")
    breakdown_scenes = {
        scene.get("sceneNumber"): scene
        for scene in (breakdown_for(request) or {}).get("scenes") or [] if isinstance(scene, dict)
    }
    scenes = []
    for index, scene in enumerate(shot_list["scenes"], start=1):
        if not isinstance(scene, dict):
            continue
        scene = dict(scene)
        scene.setdefault("sceneNumber", index)
        reference = breakdown_scenes.get(scene["sceneNumber"], {})
        scene["sceneTitle"] = scene.get("sceneTitle") or reference.get("sceneTitle") or f"Scene {scene['sceneNumber']}"
        scene["location"] = scene.get("location") or reference.get("location") or "Location TBD"
        shots = [shot for shot in scene.get("shots") or [] if isinstance(shot, dict)]
        for shot_index, shot in enumerate(shots, start=1):
            shot["shotNumber"] = str(shot.get("shotNumber") or shot_index)
            shot["description"] = shot.get("description") or f"Shot {shot['shotNumber']}"
            shot["cameraAngle"] = shot.get("cameraAngle") or "medium"
            shot["cameraMovement"] = shot.get("cameraMovement") or "static"
            shot["durationEstimate"] = _number(shot.get("durationEstimate"), 5) or 5
            shot["priority"] = _choice(shot.get("priority"), SHOT_PRIORITIES, "must-have")
        scene["shots"] = shots
        scene["totalShots"] = len(shots)
        scenes.append(scene)

    shot_list["scenes"] = scenes
    shot_list["episodeNumber"] = request.episode_number or (request.episode_data or {}).get("episodeNumber") or 1
    shot_list["totalShots"] = sum(scene["totalShots"] for scene in scenes)
    return shot_list


async def script_breakdown_agent(request: GenerationRequest, client) -> GenerationResult:
    logger.info(f"[Breakdown Agent] Analyzing {len(_script_scenes(request))} scenes")
    result = await run_json_stage("script_breakdown", request, client, normalise=normalise_script_breakdown)
    if result.success:
        logger.info(f"[Breakdown Agent] {result.payload['totalScenes']} scenes, "
                    f"{result.payload['totalEstimatedTime']} minutes, ${result.payload['totalBudgetImpact']}")
    return result


async def shot_list_agent(request: GenerationRequest, client) -> GenerationResult:
    result = await run_json_stage("shot_list", request, client, normalise=normalise_shot_list)
    if result.success:
        logger.info(f"[Shot List Agent] {len(result.payload['scenes'])} scenes, {result.payload['totalShots']} shots")
    return result
