"""Shooting schedule and budget agents"""

import logging
from typing import Any, Dict

from ...core.state import GenerationRequest, GenerationResult
from ..base import run_json_stage, ensure_list

logger = logging.getLogger(__name__)

BUDGET_SECTIONS = ("crew", "equipment", "miscellaneous")


def normalise_schedule(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    schedule = ensure_list(dict(data), "shootingDays")
    for index, day in enumerate(schedule["shootingDays"], start=1):
        if isinstance(day, dict):
            day.setdefault("dayNumber", index)
            ensure_list(day, "scenes")
    if not isinstance(schedule.get("totalDays"), int):
        schedule["totalDays"] = len(schedule["shootingDays"])
    return schedule


def _item_cost(item: Dict[str, Any]) -> float:
    cost = item.get("suggestedCost")
    if not isinstance(cost, (int, float)):
        cost_range = item.get("costRange")
        if isinstance(cost_range, list) and len(cost_range) == 2 and all(isinstance(c, (int, float)) for c in cost_range):
            cost = (cost_range[0] + cost_range[1]) / 2
        else:
            cost = 0
    return cost


def normalise_budget(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    """Fill the total from included line items when the model left it out"""
    budget = ensure_list(dict(data), *BUDGET_SECTIONS)
    total = 0
    for section in BUDGET_SECTIONS:
        for item in budget[section]:
            if isinstance(item, dict):
                item.setdefault("included", True)
                if item["included"]:
                    total += _item_cost(item)
    if not isinstance(budget.get("totalEstimate"), (int, float)) or (budget["totalEstimate"] == 0 and total):
        budget["totalEstimate"] = total
    return budget


async def schedule_agent(request: GenerationRequest, client) -> GenerationResult:
    if request.prerequisites.get("locations") is None:
        logger.info("[Schedule Agent] Locations not available, scheduling from scripts only")
    return await run_json_stage("schedule", request, client, normalise=normalise_schedule)


async def budget_agent(request: GenerationRequest, client) -> GenerationResult:
    if request.prerequisites.get("schedule") is None:
        logger.info("[Budget Agent] Schedule not available, budgeting from scripts only")
    return await run_json_stage("budget", request, client, normalise=normalise_budget)
