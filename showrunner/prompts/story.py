"""Story stage prompts: beat sheet, episode script and storyboard"""

from ..core.state import GenerationRequest, VibeSettings
from .context import (
    DIVIDER,
    build_story_bible_context,
    build_previous_episodes_context,
    build_previous_episode_context,
    build_previous_choice_context,
    build_vibe_direction,
    build_episode_content,
    find_arc_info,
    series_title,
    tone_direction,
    pacing_direction,
    dialogue_direction,
)

BEAT_SHEET_PROMPT_TEMPLATE = """Create a detailed beat sheet for Episode {episode_number} of "{series_title}".

{story_bible_context}

CURRENT EPISODE CONTEXT:
{divider}
Arc: {arc_title}
Arc Summary: {arc_summary}
Episode: {episode_title}

{previous_context}

EPISODE GOAL:
"{episode_goal}"

{divider}

BEAT SHEET REQUIREMENTS:
• Create 3-6 scenes based on what the story needs (no rigid constraints)
• Each beat should advance the episode goal while developing characters
• Include specific dramatic moments, conflicts, and character interactions
• Design scenes for approximately 5-minute total runtime
• Include compelling opening hook and cliffhanger ending
• Maintain series continuity and character consistency

BEAT SHEET FORMAT:
EPISODE {episode_number}: [Episode Title]

OPENING HOOK (30-60 seconds):
[Compelling opening that immediately engages audience]

BEAT 1: [Scene Title] (Location - Time)
PURPOSE: [What this scene accomplishes]
CONFLICT: [Central tension or obstacle]
CHARACTER FOCUS: [Which characters drive this scene]
KEY MOMENTS:
• [Specific dramatic beat]
• [Character development moment]
TRANSITION: [How it leads to next scene]

[Continue for 3-6 beats as needed]

CLIFFHANGER/RESOLUTION (30-60 seconds):
[Compelling ending that resolves episode goal while setting up future episodes]

EPISODE THEME: [What deeper meaning or character growth occurs]
CHARACTER ARCS: [How characters change or develop]
SERIES IMPACT: [How this episode affects the larger story]"""


EPISODE_PROMPT_TEMPLATE = """Write Episode {episode_number} of "{series_title}" as rich narrative prose.

{story_bible_context}

CURRENT EPISODE CONTEXT:
{divider}
Arc: {arc_title}
Arc Summary: {arc_summary}
Episode: {episode_title}

{previous_context}

BEAT SHEET (STRUCTURAL BLUEPRINT):
{divider}
{beat_sheet}
{divider}

{vibe_direction}

DIRECTOR'S NOTES (MANDATORY):
{directors_notes}

REQUIREMENTS:
1. BEAT SHEET: Count the beats and create AT LEAST that many scenes, one scene per beat minimum. No beat may be skipped.
2. VIBE SETTINGS (NON-NEGOTIABLE):
   - Tone {tone}/100: {tone_direction}
   - Pacing {pacing}/100: {pacing_direction}
   - Dialogue {dialogue}/100: {dialogue_direction}
3. QUALITY: Rich narrative prose (not screenplay format), natural dialogue woven into prose, compelling branching choices that emerge from the story.

CRITICAL OUTPUT FORMAT:
Return ONLY valid JSON in this exact structure:

{{
  "episodeNumber": {episode_number},
  "title": "[Compelling episode title]",
  "synopsis": "[Brief episode summary reflecting vibe and content]",
  "scenes": [
    {{
      "sceneNumber": 1,
      "title": "[Scene title]",
      "content": "[Full scene with rich descriptions, authentic dialogue, character actions]"
    }}
  ],
  "branchingOptions": [
    {{"id": 1, "text": "[Meaningful choice that emerges from episode events]", "isCanonical": true}},
    {{"id": 2, "text": "[Alternative choice reflecting character values]", "isCanonical": false}},
    {{"id": 3, "text": "[Third choice offering different story direction]", "isCanonical": false}}
  ],
  "episodeRundown": "[Analysis of the episode's narrative significance, character development, and series impact]"
}}

Exactly one branching option must have "isCanonical": true."""


STORYBOARD_PROMPT_TEMPLATE = """Create a storyboard for the following episode of "{series_title}".

{story_bible_context}

{episode_content}

STORYBOARD REQUIREMENTS:
• Cover every scene of the episode, in order
• 3-8 shots per scene depending on complexity
• Each shot: shot type, camera angle, camera movement, description, characters and props in frame
• Practical for a micro-budget crew with a single camera
• All array fields must have brackets: "propsInFrame": [] not "propsInFrame":

OUTPUT FORMAT:
Return ONLY valid JSON:
{{
  "episodeNumber": {episode_number},
  "scenes": [
    {{
      "sceneNumber": 1,
      "location": "Location name",
      "shots": [
        {{
          "shotNumber": 1,
          "shotType": "Wide",
          "cameraAngle": "Eye level",
          "cameraMovement": "Static",
          "description": "What the frame shows",
          "characters": ["Name"],
          "propsInFrame": ["prop"],
          "duration": "5s"
        }}
      ]
    }}
  ]
}}"""


def _previous_context(request: GenerationRequest, episode_number: int) -> str:
    blocks = [
        build_previous_episodes_context(request.all_previous_episodes),
        build_previous_episode_context(request.previous_episode, episode_number),
        build_previous_choice_context(request.previous_choice),
    ]
    return "\n\n".join(block for block in blocks if block)


def build_beat_sheet_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    episode_number = request.episode_number or 1
    arc = find_arc_info(bible, episode_number)
    return BEAT_SHEET_PROMPT_TEMPLATE.format(
        episode_number=episode_number,
        series_title=series_title(bible),
        story_bible_context=build_story_bible_context(bible),
        divider=DIVIDER,
        arc_title=arc["arc_title"],
        arc_summary=arc["arc_summary"],
        episode_title=arc["episode_title"],
        previous_context=_previous_context(request, episode_number),
        episode_goal=request.episode_goal or "",
    )


def build_episode_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    episode_number = request.episode_number or 1
    arc = find_arc_info(bible, episode_number)
    vibe = request.vibe_settings or VibeSettings()
    if request.notes:
        notes = f'The director specifically requested:\n"{request.notes}"\nEVERY element of this must appear in the episode content.'
    else:
        notes = "No specific director notes provided."
    return EPISODE_PROMPT_TEMPLATE.format(
        episode_number=episode_number,
        series_title=series_title(bible),
        story_bible_context=build_story_bible_context(bible),
        divider=DIVIDER,
        arc_title=arc["arc_title"],
        arc_summary=arc["arc_summary"],
        episode_title=arc["episode_title"],
        previous_context=_previous_context(request, episode_number),
        beat_sheet=request.beat_sheet or "",
        vibe_direction=build_vibe_direction(vibe),
        directors_notes=notes,
        tone=vibe.tone,
        tone_direction=tone_direction(vibe.tone),
        pacing=vibe.pacing,
        pacing_direction=pacing_direction(vibe.pacing),
        dialogue=vibe.dialogue_style,
        dialogue_direction=dialogue_direction(vibe.dialogue_style),
    )


def build_storyboard_prompt(request: GenerationRequest) -> str:
    bible = request.story_bible
    episode_data = request.episode_data or {}
    episode_number = request.episode_number or episode_data.get("episodeNumber") or 1
    return STORYBOARD_PROMPT_TEMPLATE.format(
        series_title=series_title(bible),
        story_bible_context=build_story_bible_context(bible),
        episode_content=build_episode_content(request.episode_data),
        episode_number=episode_number,
    )


FALLBACK_BEAT_SHEET_TEMPLATE = """EPISODE {episode_number}: {episode_goal}

OPENING HOOK (30-60 seconds):
{main_character} faces an immediate challenge that connects to the episode goal: "{episode_goal}"

BEAT 1: Establishing the Situation (Location - Present)
PURPOSE: Set up the central conflict and character motivations
CONFLICT: {main_character} must confront the main challenge
CHARACTER FOCUS: {main_character} and supporting characters
KEY MOMENTS:
• Introduction of the episode's central problem
• Character reactions and initial decisions
• Stakes are established
TRANSITION: Conflict escalates, forcing action

BEAT 2: Rising Action and Development (Location - Present)
PURPOSE: Develop the conflict and character relationships
CONFLICT: Obstacles increase, tensions rise
CHARACTER FOCUS: Character interactions and growth
KEY MOMENTS:
• Characters work toward resolving the episode goal
• Relationships are tested or strengthened
• New complications arise
TRANSITION: Builds toward climactic moment

BEAT 3: Resolution and Forward Movement (Location - Present)
PURPOSE: Address the episode goal and set up future episodes
CONFLICT: Final confrontation or decision point
CHARACTER FOCUS: Character growth and change
KEY MOMENTS:
• Episode goal is addressed (success/failure/complication)
• Character development is solidified
• Series progression is advanced
TRANSITION: Sets up next episode

CLIFFHANGER/RESOLUTION (30-60 seconds):
The resolution of "{episode_goal}" leads to new questions and challenges for future episodes

EPISODE THEME: Growth, challenge, and progression
CHARACTER ARCS: {main_character} develops through facing the episode challenge
SERIES IMPACT: This episode advances the overall narrative of {series_title}"""


def build_fallback_beat_sheet(request: GenerationRequest) -> str:
    """Three-beat skeleton used when the model returns too little text"""
    bible = request.story_bible
    main_character = "Protagonist"
    if bible.main_characters and bible.main_characters[0].name:
        main_character = bible.main_characters[0].name
    return FALLBACK_BEAT_SHEET_TEMPLATE.format(
        episode_number=request.episode_number or 1,
        episode_goal=request.episode_goal or "",
        main_character=main_character,
        series_title=series_title(bible),
    )
