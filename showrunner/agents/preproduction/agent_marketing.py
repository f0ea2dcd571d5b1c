"""Marketing agent"""

from typing import Any, Dict

from ...core.state import GenerationRequest, GenerationResult
from ..base import run_json_stage, ensure_list


def normalise_marketing(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    """Payload is always wrapped under the marketing key"""
    marketing = data.get("marketing") if isinstance(data.get("marketing"), dict) else dict(data)
    ensure_list(marketing, "marketingHooks")
    return {"marketing": marketing}


async def marketing_agent(request: GenerationRequest, client) -> GenerationResult:
    return await run_json_stage("marketing", request, client, normalise=normalise_marketing)
