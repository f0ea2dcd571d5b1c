"""Props/wardrobe, equipment and permit prompts"""

from ..core.state import GenerationRequest
from .context import (
    build_story_bible_context,
    build_scripts_block,
    build_scope_line,
    build_prerequisite_block,
    series_title,
)

PROPS_WARDROBE_PROMPT_TEMPLATE = """Create the props and wardrobe breakdown for "{series_title}".
{scope_line}

{story_bible_context}

{scripts_block}
{casting_block}
RULES:
1. EXTRACT FROM SCRIPT ONLY: include items mentioned or clearly implied, invent nothing
2. MICRO-BUDGET: total props + wardrobe per episode $5-$350 MAX
3. SOURCE PRIORITY: actor-owned ($0), borrow ($0), diy ($5-$30), rent ($10-$50), buy ($20-$500)
4. IMPORTANCE: hero (close-ups, key to scene), secondary, background
5. PROCUREMENT STATUS: needed, sourced, obtained

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "props": [
    {{
      "name": "Vintage coffee mug",
      "description": "1950s style ceramic mug with chip",
      "scenes": [1, 3],
      "importance": "hero",
      "source": "borrow",
      "estimatedCost": 0,
      "status": "needed",
      "notes": "Hero prop for close-up in Scene 1"
    }}
  ],
  "wardrobe": [
    {{
      "name": "Business suit",
      "description": "Dark navy suit, white dress shirt",
      "characterAssociated": "Character name",
      "scenes": [1, 2],
      "importance": "hero",
      "source": "actor-owned",
      "estimatedCost": 0,
      "status": "needed",
      "notes": "Signature look"
    }}
  ]
}}"""


EQUIPMENT_PROMPT_TEMPLATE = """Plan the production equipment for "{series_title}".
{scope_line}

{story_bible_context}

{scripts_block}

EQUIPMENT REQUIREMENTS:
• Camera, lighting, sound and grip packages sized to the scenes in the scripts
• Each item justified by a specific scene need (night exteriors, dialogue-heavy scenes, movement)
• Source priority: owned, borrowed, rented, purchased
• Daily rental rates in dollars; keep the package micro-budget
• Post-production is automated, list on-set gear only

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "camera": [{{"item": "Mirrorless camera body", "quantity": 1, "source": "rent", "dailyCost": 50, "reason": "Why the scenes need it"}}],
  "lighting": [],
  "sound": [],
  "grip": [],
  "totalDailyCost": 0,
  "notes": "Packaging and sourcing notes"
}}"""


PERMITS_PROMPT_TEMPLATE = """Identify the permits, releases and insurance needed to film "{series_title}".
{scope_line}

{story_bible_context}

{scripts_block}

{locations_block}

PERMIT REQUIREMENTS:
• One entry per permit or release, naming the scenes or locations that trigger it
• Mark each as required, recommended or avoidable, and how to avoid it when possible
• Typical cost and lead time in days
• Cover public-space filming, private property releases, drone use, minors and stunts when the scripts call for them
• Insurance coverage the production should carry

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "requiredPermits": [
    {{
      "name": "Permit or release",
      "authority": "Who issues it",
      "appliesTo": ["Location or scene"],
      "necessity": "required | recommended | avoidable",
      "estimatedCost": 0,
      "leadTimeDays": 0,
      "howToAvoid": "",
      "notes": ""
    }}
  ],
  "insurance": [{{"type": "General liability", "estimatedCost": 0, "notes": ""}}],
  "notes": "Overall permit strategy"
}}"""


def build_props_wardrobe_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    casting = request.prerequisites.get("casting") or request.casting_data
    casting_block = "\n" + build_prerequisite_block("Casting", casting) + "\n" if casting else ""
    return PROPS_WARDROBE_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        scope_line=build_scope_line(request),
        story_bible_context=build_story_bible_context(bible),
        scripts_block=build_scripts_block(request),
        casting_block=casting_block,
    )


def build_equipment_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    return EQUIPMENT_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        scope_line=build_scope_line(request),
        story_bible_context=build_story_bible_context(bible),
        scripts_block=build_scripts_block(request),
    )


def build_permits_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    locations = request.prerequisites.get("locations")
    return PERMITS_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        scope_line=build_scope_line(request),
        story_bible_context=build_story_bible_context(bible),
        scripts_block=build_scripts_block(request),
        locations_block=build_prerequisite_block("Locations", locations),
    )
