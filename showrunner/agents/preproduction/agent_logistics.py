"""Props/wardrobe, equipment and permits agents"""

from typing import Any, Dict

from ...core.state import GenerationRequest, GenerationResult
from ..base import run_json_stage, ensure_list


def normalise_props_wardrobe(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    return ensure_list(dict(data), "props", "wardrobe")


def normalise_equipment(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    return ensure_list(dict(data), "camera", "lighting", "sound")


def normalise_permits(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    return ensure_list(dict(data), "requiredPermits")


async def props_wardrobe_agent(request: GenerationRequest, client) -> GenerationResult:
    return await run_json_stage("props_wardrobe", request, client, normalise=normalise_props_wardrobe)


async def equipment_agent(request: GenerationRequest, client) -> GenerationResult:
    return await run_json_stage("equipment", request, client, normalise=normalise_equipment)


async def permits_agent(request: GenerationRequest, client) -> GenerationResult:
    return await run_json_stage("permits", request, client, normalise=normalise_permits)
