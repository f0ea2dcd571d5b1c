"""Shared context blocks interpolated into stage prompts

Everything here is a pure function of its input. Lists are rendered in full.
"""

import json
from typing import Any, Dict, List, Optional

from ..core.state import StoryBible, VibeSettings

DIVIDER = "━" * 62


def as_text(value: Any) -> str:
    """Strings pass through, structured values become stable JSON"""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def pretty_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2, sort_keys=True)


def _extra(model, key: str) -> Any:
    return (model.model_extra or {}).get(key)


def series_title(bible: StoryBible) -> str:
    return bible.series_title or "Untitled Series"


def character_names(bible: StoryBible) -> List[str]:
    return [c.name or "Unnamed Character" for c in bible.main_characters]


def build_story_bible_context(bible: Optional[StoryBible]) -> str:
    """Series identity, premise, every character, world, themes and arcs"""
    if bible is None:
        return "No story bible provided."

    sections = ["=== SERIES IDENTITY ===", f"Series Title: {series_title(bible)}"]
    if bible.genre:
        sections.append(f"Genre: {bible.genre}")
    if bible.tone:
        sections.append(f"Tone: {bible.tone}")
    if bible.target_audience:
        audience = bible.target_audience
        if isinstance(audience, dict):
            audience = audience.get("primary") or audience.get("primaryAudience") or as_text(audience)
        sections.append(f"Target Audience: {audience}")

    if bible.premise:
        sections.append("\n=== PREMISE ===")
        if isinstance(bible.premise, str):
            sections.append(bible.premise)
        else:
            premise = bible.premise
            if premise.get("premiseStatement"):
                sections.append(premise["premiseStatement"])
            if premise.get("coreConflict"):
                sections.append(f"Core Conflict: {premise['coreConflict']}")
            if premise.get("stakes"):
                sections.append(f"Stakes: {premise['stakes']}")

    if bible.main_characters:
        sections.append("\n=== CHARACTERS ===")
        for index, char in enumerate(bible.main_characters, start=1):
            details = [f"{index}. {char.name or 'Unnamed Character'}"]
            role = char.archetype or _extra(char, "premiseRole")
            if role:
                details.append(f"   Archetype/Role: {role}")
            if char.description:
                details.append(f"   Description: {as_text(char.description)}")
            if char.background:
                details.append(f"   Background: {as_text(char.background)}")
            psychology = _extra(char, "psychology")
            if isinstance(psychology, dict):
                for label, key in (("Want", "want"), ("Need", "need"), ("Fear", "fear")):
                    if psychology.get(key):
                        details.append(f"   {label}: {psychology[key]}")
                flaw = psychology.get("flaw") or psychology.get("primaryFlaw")
                if flaw:
                    details.append(f"   Flaw: {flaw}")
            if _extra(char, "relationships"):
                details.append(f"   Relationships: {as_text(_extra(char, 'relationships'))}")
            if char.arc:
                details.append(f"   Character Arc: {as_text(char.arc)}")
            if char.motivation:
                details.append(f"   Motivation: {char.motivation}")
            if char.voice:
                details.append(f"   Voice: {char.voice}")
            sections.append("\n".join(details))

    if bible.world_building:
        sections.append("\n=== WORLD BUILDING ===")
        world = bible.world_building
        if isinstance(world, str):
            sections.append(world)
        else:
            if world.get("setting"):
                sections.append(f"Setting: {as_text(world['setting'])}")
            rules = world.get("rules")
            if isinstance(rules, list):
                sections.append("World Rules:\n" + "\n".join(f"- {rule}" for rule in rules))
            elif rules:
                sections.append(f"World Rules: {rules}")
            locations = world.get("locations")
            if isinstance(locations, list) and locations:
                sections.append("\nLocations:")
                for loc in locations:
                    if not isinstance(loc, dict):
                        sections.append(f"  - {as_text(loc)}")
                        continue
                    loc_details = [f"  - {loc.get('name') or 'Unnamed Location'}"]
                    if loc.get("type"):
                        loc_details.append(f"    Type: {loc['type']}")
                    if loc.get("description"):
                        loc_details.append(f"    Description: {as_text(loc['description'])}")
                    if loc.get("significance"):
                        loc_details.append(f"    Significance: {loc['significance']}")
                    sections.append("\n".join(loc_details))

    if bible.themes:
        sections.append("\n=== THEMES ===")
        for index, theme in enumerate(bible.themes, start=1):
            sections.append(f"{index}. {theme}")

    if bible.narrative_arcs:
        sections.append("\n=== NARRATIVE ARCS ===")
        for index, arc in enumerate(bible.narrative_arcs, start=1):
            arc_details = [f"Arc {index}: {arc.title or f'Arc {index}'}"]
            if arc.summary:
                arc_details.append(f"  Summary: {as_text(arc.summary)}")
            if arc.episodes:
                arc_details.append(f"  Episodes: {len(arc.episodes)} episodes")
                for ep in arc.episodes:
                    if ep.title:
                        arc_details.append(f"    - Episode {ep.number if ep.number is not None else '?'}: {ep.title}")
            sections.append("\n".join(arc_details))

    return "\n".join(sections)


def find_arc_info(bible: StoryBible, episode_number: int) -> Dict[str, str]:
    """Arc title, summary and episode title for an episode number"""
    for arc in bible.narrative_arcs:
        for ep in arc.episodes:
            if ep.number == episode_number:
                return {
                    "arc_title": arc.title or f"Arc {(episode_number + 9) // 10}",
                    "arc_summary": as_text(arc.summary) or "Continuing journey",
                    "episode_title": ep.title or f"Episode {episode_number}",
                }
    return {
        "arc_title": f"Arc {(episode_number + 9) // 10}",
        "arc_summary": "Story progression continues...",
        "episode_title": f"Episode {episode_number}",
    }


def _scene_text(scene: Any) -> str:
    if not isinstance(scene, dict):
        return as_text(scene)
    return as_text(scene.get("content") or scene.get("screenplay") or scene.get("sceneContent"))


def _scene_number(scene: Any, index: int) -> Any:
    if isinstance(scene, dict):
        return scene.get("sceneNumber") or index
    return index


def _scene_title(scene: Any, index: int) -> str:
    if isinstance(scene, dict) and scene.get("title"):
        return as_text(scene["title"])
    return f"Scene {_scene_number(scene, index)}"


def _episode_sort_key(episode: Dict[str, Any]):
    number = episode.get("episodeNumber")
    return number if isinstance(number, (int, float)) else 0


def build_previous_episodes_context(all_previous: List[Dict[str, Any]]) -> str:
    """Every earlier episode in episode order, synopsis and all scenes"""
    if not all_previous:
        return ""
    lines = ["ALL PREVIOUS EPISODES (Full Story Context):"]
    for ep in sorted(all_previous, key=_episode_sort_key):
        number = ep.get("episodeNumber", "?")
        title = ep.get("title") or ep.get("episodeTitle") or f"Episode {number}"
        lines.append(f"\nEpisode {number}: \"{title}\"")
        if ep.get("synopsis"):
            lines.append(f"Synopsis: {ep['synopsis']}")
        for index, scene in enumerate(ep.get("scenes") or [], start=1):
            lines.append(f"\n  {_scene_title(scene, index)}:\n  {_scene_text(scene)}")
    return "\n".join(lines)


def build_previous_episode_context(previous: Optional[Dict[str, Any]], episode_number: int) -> str:
    """The immediately preceding episode in full detail"""
    if not previous:
        return ""
    title = previous.get("title") or previous.get("episodeTitle") or f"Episode {episode_number - 1}"
    lines = [f"PREVIOUS EPISODE (Episode {episode_number - 1}): \"{title}\""]
    if previous.get("synopsis"):
        lines.append(f"Synopsis: {previous['synopsis']}")
    scenes = previous.get("scenes") or []
    if scenes:
        lines.append("\nPrevious Episode Scenes:")
        for index, scene in enumerate(scenes, start=1):
            lines.append(f"\n{_scene_title(scene, index)}:\n{_scene_text(scene)}")
    return "\n".join(lines)


PREVIOUS_CHOICE_TEMPLATE = """PREVIOUS CHOICE: "{choice}"

CRITICAL NARRATIVE STRUCTURE REQUIREMENTS:
When a previous choice exists, the episode MUST follow this progression:
1. START: Show the immediate aftermath and consequences of the previous episode's ending
2. MIDDLE: Build tension, conflict, and development leading toward the chosen option
   - DO NOT jump directly to the choice's consequences - show the journey there
3. END: Place the chosen option's narrative beat near the end (final 1-2 beats)
   - Set up the consequences for the next episode, but don't fully resolve them yet"""


def build_previous_choice_context(choice: Optional[str]) -> str:
    if not choice:
        return ""
    return PREVIOUS_CHOICE_TEMPLATE.format(choice=choice)


def tone_direction(value: int) -> str:
    if value < 20:
        return ("DARK/GRITTY: Emphasize shadows, moral ambiguity, harsh realities. Use muted descriptions, "
                "serious dialogue, and weighty consequences. Characters face difficult truths.")
    elif value < 40:
        return ("DARK-LEANING: Thoughtful with serious undertones. Some humor but grounded in reality. "
                "Characters deal with real stakes and genuine challenges.")
    elif value < 60:
        return ("BALANCED: Mix of serious moments with lighter beats. Natural humor emerges from character "
                "interactions. Authentic emotional range.")
    elif value < 80:
        return ("LIGHT-LEANING: Optimistic with occasional serious moments. Characters find hope and humor "
                "even in challenges. Upbeat but not superficial.")
    return ("LIGHT/COMEDIC: Emphasis on humor, wit, and positive outlook. Quick banter, comedic timing, "
            "and characters who find levity in situations.")


def pacing_direction(value: int) -> str:
    if value < 20:
        return ("SLOW BURN: Extended character moments, contemplative pauses, detailed atmospheric "
                "descriptions. Let scenes breathe. Focus on subtext and internal development.")
    elif value < 40:
        return ("DELIBERATE: Thoughtful pacing with purposeful scene development. Balance action with "
                "character moments. Build tension gradually.")
    elif value < 60:
        return ("STEADY: Consistent forward momentum with varied scene lengths. Mix of quick and extended "
                "moments based on narrative needs.")
    elif value < 80:
        return ("ENERGETIC: Faster scene transitions, more dynamic action, snappy exchanges. Keep momentum "
                "building throughout episode.")
    return ("HIGH OCTANE: Rapid scene changes, intense action, quick-fire dialogue. Maximum energy and "
            "excitement. Fast-paced storytelling.")


def dialogue_direction(value: int) -> str:
    if value < 20:
        return ("SPARSE/SUBTEXTUAL: Characters say less but mean more. Heavy use of subtext, meaningful "
                "silences, and actions that speak louder than words.")
    elif value < 40:
        return ("THOUGHTFUL: Measured dialogue with deeper meaning. Characters choose words carefully. "
                "Subtext is important.")
    elif value < 60:
        return ("NATURAL: Authentic conversational flow. Mix of direct and indirect communication based "
                "on character and situation.")
    elif value < 80:
        return ("ARTICULATE: Characters express themselves clearly and directly. More exposition when "
                "needed, but still natural.")
    return ("SNAPPY/EXPOSITORY: Quick wit, rapid exchanges, characters who say exactly what they mean. "
            "Fast dialogue with clear information delivery.")


def build_vibe_direction(vibe: Optional[VibeSettings]) -> str:
    vibe = vibe or VibeSettings()
    return "\n".join([
        "VIBE & CREATIVE DIRECTION:",
        DIVIDER,
        f"TONE ({vibe.tone}/100): {tone_direction(vibe.tone)}",
        "",
        f"PACING ({vibe.pacing}/100): {pacing_direction(vibe.pacing)}",
        "",
        f"DIALOGUE STYLE ({vibe.dialogue_style}/100): {dialogue_direction(vibe.dialogue_style)}",
        DIVIDER,
    ])


def build_prerequisite_block(label: str, payload: Optional[Dict[str, Any]]) -> str:
    """Upstream stage output, or an explicit line saying it is missing"""
    if payload is None:
        return f"=== {label.upper()} ===\nNot available (not generated or generation failed). Work from the script alone."
    return f"=== {label.upper()} ===\n{pretty_json(payload)}"


def build_episode_content(episode_data: Optional[Dict[str, Any]]) -> str:
    """Full script text of an episode, every scene in order"""
    if not episode_data:
        return "No episode script provided."
    number = episode_data.get("episodeNumber", "?")
    title = episode_data.get("title") or f"Episode {number}"
    lines = [f"EPISODE {number}: {title}"]
    if episode_data.get("synopsis"):
        lines.append(f"Synopsis: {episode_data['synopsis']}")
    for index, scene in enumerate(episode_data.get("scenes") or [], start=1):
        title = scene.get("title") if isinstance(scene, dict) else None
        lines.append(f"\nSCENE {_scene_number(scene, index)}: {as_text(title)}".rstrip())
        lines.append(_scene_text(scene))
    return "\n".join(lines)


def scripts_in_scope(request) -> List[Dict[str, Any]]:
    """Episode scripts a pre-production stage works from, in episode order"""
    if request.episodes:
        return sorted(request.episodes, key=_episode_sort_key)
    if request.episode_data:
        return [request.episode_data]
    return []


def build_scripts_block(request) -> str:
    scripts = scripts_in_scope(request)
    if not scripts:
        return "=== SCRIPTS ===\nNo episode scripts provided. Work from the story bible."
    return "=== SCRIPTS ===\n" + "\n\n".join(build_episode_content(ep) for ep in scripts)


def build_scope_line(request) -> str:
    if request.arc_index is not None:
        numbers = [ep.get("episodeNumber") for ep in scripts_in_scope(request)] or request.episode_numbers
        listed = ", ".join(str(n) for n in numbers if n is not None)
        return f"Scope: Arc {request.arc_index + 1}" + (f" (episodes {listed})" if listed else "")
    if request.episode_number is not None:
        return f"Scope: Episode {request.episode_number}"
    return "Scope: Series"
