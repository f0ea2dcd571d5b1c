"""
Tests for the prompt builders

Tests for showrunner/prompts
"""

import pytest

from showrunner.core.config import ALL_STAGES
from showrunner.core.state import GenerationRequest
from showrunner.prompts import PROMPT_BUILDERS, build_prompt, build_fallback_beat_sheet
from showrunner.prompts.context import (
    build_prerequisite_block,
    build_scope_line,
    dialogue_direction,
    pacing_direction,
    tone_direction,
)
from showrunner.prompts.series import split_character_info


@pytest.fixture
def full_request(make_request, sample_episode):
    previous = dict(sample_episode, episodeNumber=1)
    return make_request(
        episodeNumber=2,
        episodeGoal="Jonah proves the calls are faked",
        beatSheet="BEAT 1: Jonah studies the tape.\nBEAT 2: The caller knows his name.\nBEAT 3: Static.",
        vibeSettings={"tone": 10, "pacing": 90, "dialogueStyle": 55},
        directorsNotes="Keep the radio on in every scene",
        previousChoice="Answer the broadcast",
        previousEpisode=previous,
        allPreviousEpisodes=[previous],
        episodeData=sample_episode,
        episodes=[sample_episode],
        prerequisites={"locations": {"locations": [{"name": "Studio B {east wing}"}]}, "schedule": None},
    )


class TestDeterminism:
    """Tests for prompt builder idempotence."""

    @pytest.mark.parametrize("stage", ALL_STAGES)
    def test_same_input_same_prompt(self, stage, full_request):
        """Test two builds from identical input are byte-identical."""
        first = build_prompt(stage, full_request)
        second = build_prompt(stage, full_request.model_copy(deep=True))

        assert first == second
        assert first.prompt.strip()
        assert first.system_prompt.strip()

    def test_every_stage_has_a_builder(self):
        assert set(PROMPT_BUILDERS) == set(ALL_STAGES)

    def test_unknown_stage(self, full_request):
        with pytest.raises(KeyError):
            build_prompt("catering", full_request)


class TestContent:
    """Tests for what the prompts carry."""

    def test_scripts_are_not_truncated(self, make_request, sample_episode):
        """Test a long scene reaches pre-production prompts in full."""
        long_content = "The tape hisses and Maya leans closer. " * 500
        sample_episode["scenes"][0]["content"] = long_content

        prompt = build_prompt("casting", make_request(episodes=[sample_episode])).prompt

        assert long_content in prompt
        assert sample_episode["scenes"][1]["content"] in prompt

    def test_previous_episodes_are_not_truncated(self, make_request, sample_episode):
        """Test earlier episodes are included scene by scene for continuity."""
        prompt = build_prompt("episode", make_request(
            episodeNumber=2, beatSheet="B" * 60, allPreviousEpisodes=[sample_episode])).prompt

        for scene in sample_episode["scenes"]:
            assert scene["content"] in prompt

    def test_episode_prompt_carries_director_inputs(self, full_request):
        """Test beat sheet, notes, choice and vibe bands appear in the episode prompt."""
        prompt = build_prompt("episode", full_request).prompt

        assert full_request.beat_sheet in prompt
        assert "Keep the radio on in every scene" in prompt
        assert 'PREVIOUS CHOICE: "Answer the broadcast"' in prompt
        assert tone_direction(10) in prompt
        assert pacing_direction(90) in prompt
        assert dialogue_direction(55) in prompt
        assert "Dead Air" in prompt

    def test_missing_prerequisite_is_stated(self, full_request):
        """Test a None prerequisite is rendered as an explicit 'not available' block."""
        prompt = build_prompt("budget", full_request).prompt

        assert build_prerequisite_block("Shooting Schedule", None) in prompt
        assert "Not available" in prompt

    def test_prerequisite_payload_is_rendered(self, full_request):
        """Test upstream payloads with braces are embedded verbatim."""
        prompt = build_prompt("schedule", full_request).prompt

        assert "Studio B {east wing}" in prompt

    def test_vibe_bands(self):
        """Test each slider maps to a distinct band at the boundaries."""
        assert tone_direction(0) != tone_direction(100)
        assert tone_direction(19) != tone_direction(20)
        assert pacing_direction(79) != pacing_direction(80)
        assert dialogue_direction(39) != dialogue_direction(40)

    def test_scope_line(self, make_request, sample_episode):
        assert build_scope_line(make_request(arcIndex=0, episodes=[sample_episode])) == "Scope: Arc 1 (episodes 1)"
        assert build_scope_line(make_request(episodeNumber=3)) == "Scope: Episode 3"

    def test_fallback_beat_sheet_names_the_lead(self, make_request):
        """Test the skeleton beat sheet uses the first character and the goal."""
        text = build_fallback_beat_sheet(make_request(episodeGoal="Find the caller"))

        assert "Maya" in text
        assert '"Find the caller"' in text
        assert "BEAT 3" in text


class TestLooseScenes:
    """Tests for episodes whose scenes arrive as plain strings."""

    def test_beat_sheet_with_string_scenes(self, make_request):
        """Test string scenes in earlier episodes are rendered as text."""
        request = make_request(episodeNumber=2, allPreviousEpisodes=[
            {"episodeNumber": 1, "scenes": ["Maya hears the call."]}])

        prompt = build_prompt("beat_sheet", request).prompt

        assert "Scene 1:" in prompt
        assert "Maya hears the call." in prompt

    def test_episode_with_string_scenes(self, make_request):
        """Test string scenes in the previous episode are rendered as text."""
        previous = {"episodeNumber": 1, "title": "Static", "scenes": ["Jonah rewinds the tape.", {"title": "Booth"}]}
        request = make_request(episodeNumber=2, beatSheet="B" * 60,
                               previousEpisode=previous, allPreviousEpisodes=[previous])

        prompt = build_prompt("episode", request).prompt

        assert "Jonah rewinds the tape." in prompt
        assert "Booth:" in prompt

    def test_storyboard_with_string_scenes(self, make_request):
        """Test string scenes in the episode script reach the storyboard prompt."""
        request = make_request(episodeNumber=1, episodeData={
            "episodeNumber": 1, "title": "Pilot", "scenes": ["INT. RADIO BOOTH - NIGHT. Maya keys the mic."]})

        prompt = build_prompt("storyboard", request).prompt

        assert "SCENE 1:" in prompt
        assert "INT. RADIO BOOTH - NIGHT. Maya keys the mic." in prompt


class TestDevelopmentPrompts:
    """Tests for story bible, script breakdown and shot list prompts."""

    def test_story_bible_from_concept_questions(self):
        """Test the concept answers, title override and character notes reach the prompt."""
        request = GenerationRequest.model_validate({
            "logline": "A night-shift DJ takes calls from the dead.",
            "protagonist": "Maya, a burnt-out radio host",
            "stakes": "If she hangs up, the callers vanish for good.",
            "vibe": "eerie",
            "setting": "a small coastal town",
            "theme": "grief",
            "characterInfo": "Maya: the host -- Jonah: her engineer",
            "advancedSettings": {"seriesTitle": "Dead Air"},
        })

        prompt = build_prompt("story_bible", request).prompt

        assert "A night-shift DJ takes calls from the dead. The story follows Maya, a burnt-out radio host." in prompt
        assert "exploring themes of grief" in prompt
        assert 'Series Title (use exactly): "Dead Air"' in prompt
        assert "1. Maya: the host" in prompt
        assert "2. Jonah: her engineer" in prompt

    def test_story_bible_from_legacy_synopsis(self):
        request = GenerationRequest.model_validate({"synopsis": "Two sisters inherit a haunted motel.", "theme": "family"})

        prompt = build_prompt("story_bible", request).prompt

        assert "Synopsis: Two sisters inherit a haunted motel." in prompt
        assert "Series Title (use exactly)" not in prompt

    def test_split_character_info(self):
        assert split_character_info("A -- B --  ") == ["A", "B"]
        assert split_character_info(["A", " B "]) == ["A", "B"]
        assert split_character_info(None) == []

    def test_breakdown_prompt_counts_every_scene(self, make_request, sample_episode):
        """Test the breakdown prompt carries every scene in full and the scene count."""
        prompt = build_prompt("script_breakdown", make_request(episodeData=sample_episode)).prompt

        assert "ALL 2 scenes" in prompt
        for scene in sample_episode["scenes"]:
            assert scene["content"] in prompt

    def test_shot_list_prompt_without_storyboard(self, make_request):
        """Test the shot list prompt embeds the breakdown and states the storyboard is missing."""
        breakdown = {"episodeTitle": "The Signal", "scenes": [{"sceneNumber": 1, "location": "Booth {B}"}]}

        prompt = build_prompt("shot_list", make_request(breakdownData=breakdown)).prompt

        assert '"The Signal"' in prompt
        assert "Booth {B}" in prompt
        assert "No storyboard yet" in prompt
