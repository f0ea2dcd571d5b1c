"""Questionnaire agent: project-specific pre-production questions"""

from typing import Any, Dict

from ...core.state import GenerationRequest, GenerationResult
from ..base import run_json_stage, ensure_list


def normalise_questionnaire(data: Dict[str, Any], request: GenerationRequest) -> Dict[str, Any]:
    questionnaire = ensure_list(dict(data), "categories")
    questionnaire["questionnaireType"] = request.questionnaire_type or questionnaire.get("questionnaireType") or "both"
    for category in questionnaire["categories"]:
        if isinstance(category, dict):
            ensure_list(category, "questions")
            for question in category["questions"]:
                if isinstance(question, dict):
                    question.setdefault("category", category.get("category"))
                    question.setdefault("required", False)
    return questionnaire


async def questionnaire_agent(request: GenerationRequest, client) -> GenerationResult:
    return await run_json_stage("questionnaire", request, client, normalise=normalise_questionnaire)
