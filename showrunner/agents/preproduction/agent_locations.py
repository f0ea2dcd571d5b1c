"""Location scouting agent"""

from typing import Any, Dict

from ...core.state import GenerationRequest, GenerationResult
from ..base import run_json_stage, ensure_list


def normalise_locations(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    locations = dict(data)
    # Some responses use the scene-requirement shape
    if not isinstance(locations.get("locations"), list) and isinstance(locations.get("sceneRequirements"), list):
        locations["locations"] = locations.pop("sceneRequirements")
    ensure_list(locations, "locations")
    for entry in locations["locations"]:
        if isinstance(entry, dict):
            ensure_list(entry, "options")
    return locations


async def locations_agent(request: GenerationRequest, client) -> GenerationResult:
    return await run_json_stage("locations", request, client, normalise=normalise_locations)
