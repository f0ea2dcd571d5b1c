"""Pre-production questionnaire prompts"""

from ..core.state import GenerationRequest
from .context import build_story_bible_context, build_scripts_block, series_title

QUESTIONNAIRE_TYPES = ["props-wardrobe", "equipment", "both"]

QUESTIONNAIRE_FOCUS = {
    "props-wardrobe": "props and wardrobe sourcing (actor-owned items, materials access, borrowing)",
    "equipment": "equipment and crew (owned gear, crew hiring vs DIY, logistics)",
    "both": "props, wardrobe, equipment and crew",
}

QUESTIONNAIRE_PROMPT_TEMPLATE = """Create a pre-production questionnaire for "{series_title}".

{story_bible_context}

{scripts_block}

FOCUS: {focus}

QUESTION RULES:
1. Questions must be SPECIFIC to this project, based on the scripts
2. Maximum 12-15 questions total
3. Categories: cast-capabilities, production-crew, existing-equipment, budget-constraints, materials-access, logistics
4. Types: "yes-no", "multiple-choice" (with an "options" array of 2-5 choices), "text", "number"
5. Keep helpText to one sentence

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "questionnaireType": "{questionnaire_type}",
  "categories": [
    {{
      "category": "cast-capabilities",
      "questions": [
        {{
          "id": "q1",
          "category": "cast-capabilities",
          "question": "Do any cast members own cameras or production equipment?",
          "type": "yes-no",
          "required": true,
          "helpText": "This helps identify existing equipment to avoid rental costs"
        }}
      ]
    }}
  ]
}}"""


def build_questionnaire_prompt(request: GenerationRequest) -> str:
    questionnaire_type = request.questionnaire_type or "both"
    return QUESTIONNAIRE_PROMPT_TEMPLATE.format(
        series_title=series_title(request.story_bible),
        story_bible_context=build_story_bible_context(request.story_bible),
        scripts_block=build_scripts_block(request),
        focus=QUESTIONNAIRE_FOCUS.get(questionnaire_type, QUESTIONNAIRE_FOCUS["both"]),
        questionnaire_type=questionnaire_type,
    )
