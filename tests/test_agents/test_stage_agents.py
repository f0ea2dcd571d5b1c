"""
Tests for the stage agents

Tests for showrunner/agents
"""

import json

import pytest

from showrunner.agents import STAGE_AGENTS, run_stage
from showrunner.agents.base import get_stage_options
from showrunner.agents.creative.agent_episode import ensure_single_canonical, normalise_episode
from showrunner.agents.creative.agent_story_bible import normalise_story_bible
from showrunner.agents.preproduction.agent_breakdown import normalise_script_breakdown, normalise_shot_list
from showrunner.agents.preproduction.agent_scheduling import normalise_budget
from showrunner.core.state import GenerationRequest


class TestStoryAgents:
    """Tests for beat sheet, episode and storyboard agents."""

    @pytest.mark.asyncio
    async def test_beat_sheet_prose_is_returned_as_is(self, make_request, fake_client_class):
        """Test a full beat sheet passes through untouched."""
        text = "EPISODE 1: The Signal\n\nBEAT 1: Night Shift\nPURPOSE: Establish the radio booth and Maya's isolation."
        client = fake_client_class({"beat_sheet": text})

        result = await run_stage(make_request(stage="beat_sheet", episodeGoal="Hear the call"), client)

        assert result.success
        assert result.payload == text
        assert not result.fallback_used
        assert result.model == "fake:fake-model"

    @pytest.mark.asyncio
    async def test_short_beat_sheet_uses_skeleton(self, make_request, fake_client_class):
        """Test output under 50 characters is replaced by the fallback skeleton."""
        client = fake_client_class({"beat_sheet": "Too short."})

        result = await run_stage(make_request(stage="beat_sheet", episodeGoal="Hear the call"), client)

        assert result.success
        assert result.fallback_used
        assert "BEAT 1" in result.payload
        assert "Hear the call" in result.payload

    @pytest.mark.asyncio
    async def test_unparseable_episode_uses_fallback(self, make_request, fake_client_class):
        """Test garbage episode output becomes a one-scene episode with one canonical option."""
        client = fake_client_class({"episode": "I'm sorry, I got distracted and wrote a poem instead."})

        result = await run_stage(make_request(stage="episode", beatSheet="BEAT 1: " + "x" * 60), client)

        episode = result.payload
        assert result.success
        assert result.fallback_used
        assert len(episode["scenes"]) == 1
        assert len(episode["branchingOptions"]) == 3
        assert sum(1 for o in episode["branchingOptions"] if o["isCanonical"]) == 1

    @pytest.mark.asyncio
    async def test_episode_is_normalised(self, make_request, fake_client_class, sample_episode):
        """Test several canonical options are reduced to one and numbering is filled."""
        for option in sample_episode["branchingOptions"]:
            option["isCanonical"] = True
        del sample_episode["scenes"][1]["sceneNumber"]
        client = fake_client_class({"episode": "```json\n" + json.dumps(sample_episode) + "\n```"})

        result = await run_stage(make_request(stage="episode", episodeNumber=1), client)

        assert not result.fallback_used
        assert [o["isCanonical"] for o in result.payload["branchingOptions"]] == [True, False, False]
        assert result.payload["scenes"][1]["sceneNumber"] == 2

    @pytest.mark.asyncio
    async def test_generation_failure_becomes_failed_result(self, make_request, fake_client_class, generation_error):
        """Test a GenerationError is reported as success=False, not raised."""
        client = fake_client_class({"storyboard": generation_error()})

        result = await run_stage(make_request(stage="storyboard", episodeData={"scenes": [{}]}), client)

        assert not result.success
        assert result.status == "failed"
        assert "All models failed" in result.error

    def test_ensure_single_canonical_marks_first_when_none(self):
        options = [{"id": 1, "isCanonical": False}, {"id": 2, "isCanonical": False}]

        assert [o["isCanonical"] for o in ensure_single_canonical(options)] == [True, False]

    def test_normalise_episode_fills_defaults(self, make_request):
        """Test an empty object still yields a complete episode."""
        episode = normalise_episode({}, make_request(episodeNumber=7))

        assert episode["episodeNumber"] == 7
        assert episode["title"] == "Episode 7"
        assert len(episode["branchingOptions"]) == 3

    def test_structured_schema_only_where_defined(self):
        """Test only stages with a schema ask for structured output."""
        assert get_stage_options("episode").response_schema == "episode"
        assert get_stage_options("storyboard").response_schema == "storyboard"
        assert get_stage_options("casting").response_schema is None


class TestPreproductionAgents:
    """Tests for pre-production agents and their normalisers."""

    @pytest.mark.asyncio
    async def test_casting_adds_missing_characters(self, make_request, fake_client_class):
        """Test every story bible character gets a role, legacy "cast" key accepted."""
        client = fake_client_class({"casting": {"cast": [{"characterName": "Maya", "ageRange": "30-40"}]}})

        result = await run_stage(make_request(stage="casting"), client)

        characters = [role["character"] for role in result.payload["roles"]]
        assert characters == ["Maya", "Jonah"]

    @pytest.mark.asyncio
    async def test_casting_tolerates_object_names(self, make_request, fake_client_class):
        """Test roles keyed by a character object or a non-string name do not break casting."""
        client = fake_client_class({"casting": {"roles": [{"character": {"name": "Maya"}}, {"character": 7}]}})

        result = await run_stage(make_request(stage="casting"), client)

        assert result.success
        assert [role["character"] for role in result.payload["roles"]][-2:] == ["Maya", "Jonah"]

    @pytest.mark.asyncio
    async def test_marketing_is_wrapped(self, make_request, fake_client_class):
        client = fake_client_class({"marketing": {"taglines": ["Some calls should stay unanswered"]}})

        result = await run_stage(make_request(stage="marketing"), client)

        assert result.payload["marketing"]["taglines"] == ["Some calls should stay unanswered"]
        assert result.payload["marketing"]["marketingHooks"] == []

    @pytest.mark.asyncio
    async def test_schedule_without_locations(self, make_request, fake_client_class):
        """Test schedule runs and counts days when locations are missing."""
        client = fake_client_class({"schedule": {"shootingDays": [{"scenes": [1]}, {"scenes": [2]}]}})
        request = make_request(stage="schedule", prerequisites={"locations": None})

        result = await run_stage(request, client)

        assert result.success
        assert result.payload["totalDays"] == 2
        assert result.payload["shootingDays"][1]["dayNumber"] == 2
        assert "Not available" in client.calls[0]["prompt"]

    def test_budget_total_from_included_items(self, make_request):
        """Test the total sums included items, using the range midpoint when needed."""
        budget = normalise_budget({
            "crew": [{"role": "Sound", "suggestedCost": 200}],
            "equipment": [{"item": "Lights", "costRange": [100, 300]},
                          {"item": "Drone", "suggestedCost": 500, "included": False}],
        }, make_request())

        assert budget["totalEstimate"] == 400
        assert budget["miscellaneous"] == []

    @pytest.mark.asyncio
    async def test_questionnaire_type_from_request(self, make_request, fake_client_class):
        client = fake_client_class({"questionnaire": {"categories": []}})

        result = await run_stage(make_request(stage="questionnaire", questionnaireType="equipment"), client)

        assert result.payload["questionnaireType"] == "equipment"

    @pytest.mark.asyncio
    async def test_unknown_stage(self, make_request, fake_client_class):
        with pytest.raises(ValueError):
            await run_stage(make_request(stage="catering"), fake_client_class())

    def test_every_stage_has_an_agent(self):
        assert set(STAGE_AGENTS) == {
            "story_bible", "script_breakdown", "shot_list", "beat_sheet", "episode", "storyboard", "questionnaire", "casting", "locations",
            "props_wardrobe", "equipment", "permits", "marketing", "schedule", "budget",
        }


class TestDevelopmentAgents:
    """Tests for story bible, script breakdown and shot list agents."""

    @pytest.mark.asyncio
    async def test_story_bible_requested_title_wins(self, fake_client_class):
        """Test the creator's title replaces the model's and episodes are numbered across arcs."""
        client = fake_client_class({"story_bible": {
            "seriesTitle": "Model Title",
            "mainCharacters": [{"name": "Maya"}, "stray"],
            "narrativeArcs": [
                {"title": "Static", "episodes": [{"title": "The Signal"}, {"title": "Feedback"}]},
                {"episodes": [{"title": "Dead Air"}]},
            ],
        }})
        request = GenerationRequest.model_validate({
            "stage": "story_bible", "synopsis": "A DJ takes calls from the dead.", "theme": "grief",
            "advancedSettings": {"seriesTitle": "Night Calls"}})

        result = await run_stage(request, client)

        bible = result.payload
        assert result.success
        assert bible["seriesTitle"] == "Night Calls"
        assert [c["name"] for c in bible["mainCharacters"]] == ["Maya"]
        assert [e["number"] for arc in bible["narrativeArcs"] for e in arc["episodes"]] == [1, 2, 3]
        assert bible["narrativeArcs"][1]["title"] == "Arc 2"
        assert bible["premise"] == "A DJ takes calls from the dead."

    def test_story_bible_title_from_concept(self):
        request = GenerationRequest.model_validate({"logline": "The static remembers", "protagonist": "Maya"})

        bible = normalise_story_bible({"mainCharacters": []}, request)

        assert bible["seriesTitle"] == "Static Remembers"

    def test_breakdown_fills_missing_scenes_and_caps_budget(self, make_request, sample_episode):
        """Test every script scene gets an entry and scene budgets are capped."""
        breakdown = normalise_script_breakdown({"scenes": [
            {"sceneNumber": 1, "timeOfDay": "night", "budgetImpact": 400,
             "props": [{"item": "Tape", "source": "steal", "importance": "HERO"}]},
        ]}, make_request(episodeData=sample_episode))

        first, second = breakdown["scenes"]
        assert first["timeOfDay"] == "NIGHT"
        assert first["budgetImpact"] == 250
        assert first["props"][0]["source"] == "buy"
        assert first["props"][0]["importance"] == "hero"
        assert any("exceeded" in w for w in first["warnings"])
        assert second["sceneNumber"] == 2
        assert breakdown["totalScenes"] == 2
        assert breakdown["totalBudgetImpact"] == 260
        assert breakdown["episodeTitle"] == "The Signal"

    def test_shot_list_totals_and_defaults(self, make_request):
        """Test shots get defaults, scenes take titles from the breakdown, totals are counted."""
        request = make_request(breakdownData={"scenes": [{"sceneNumber": 1, "sceneTitle": "Booth", "location": "Studio"}]})

        shot_list = normalise_shot_list({"scenes": [
            {"sceneNumber": 1, "shots": [{"priority": "Nice-To-Have"}, {"shotNumber": 7}]},
            {"sceneNumber": 2, "shots": []},
        ]}, request)

        first = shot_list["scenes"][0]
        assert first["sceneTitle"] == "Booth"
        assert first["location"] == "Studio"
        assert [s["shotNumber"] for s in first["shots"]] == ["1", "7"]
        assert first["shots"][0]["priority"] == "nice-to-have"
        assert first["shots"][1]["durationEstimate"] == 5
        assert shot_list["totalShots"] == 2
        assert shot_list["scenes"][1]["location"] == "Location TBD"

    @pytest.mark.asyncio
    async def test_unparseable_breakdown_uses_script_scenes(self, make_request, fake_client_class, sample_episode):
        client = fake_client_class({"script_breakdown": "Sorry, I can't format that."})

        result = await run_stage(make_request(stage="script_breakdown", episodeData=sample_episode), client)

        assert result.success
        assert result.fallback_used
        assert result.payload["totalScenes"] == 2
