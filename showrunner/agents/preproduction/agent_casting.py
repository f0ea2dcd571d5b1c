"""Casting agent"""

import logging
from typing import Any, Dict

from ...core.state import GenerationRequest, GenerationResult
from ...prompts.context import character_names
from ..base import run_json_stage, ensure_list

logger = logging.getLogger(__name__)


def normalise_casting(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    """One role per story bible character, in story bible order"""
    casting = dict(data)
    # Older prompt versions answered under "cast"
    if not isinstance(casting.get("roles"), list) and isinstance(casting.get("cast"), list):
        casting["roles"] = casting.pop("cast")
    ensure_list(casting, "roles")

    roles = [role for role in casting["roles"] if isinstance(role, dict)]
    by_name = {}
    for role in roles:
        name = role.get("character") or role.get("characterName") or role.get("name")
        if isinstance(name, dict):
            name = name.get("name")
        if isinstance(name, str) and name:
            role["character"] = name
            by_name.setdefault(name.lower(), role)

    missing = [name for name in character_names(request.story_bible) if name.lower() not in by_name]
    if missing:
        logger.warning(f"[Casting Agent] No role returned for: {', '.join(missing)}")
        for name in missing:
            roles.append({"character": name, "castingNotes": "No casting suggestion generated. Please regenerate."})
    casting["roles"] = roles
    return casting


async def casting_agent(request: GenerationRequest, client) -> GenerationResult:
    return await run_json_stage("casting", request, client, normalise=normalise_casting)
