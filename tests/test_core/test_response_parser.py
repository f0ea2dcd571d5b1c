"""
Tests for the tolerant response parser

Tests for showrunner/core/response_parser.py
"""

import pytest

from showrunner.core.response_parser import (
    parse_response,
    parse_direct,
    parse_fenced,
    parse_brace_matched,
    find_balanced_objects,
    clean_json_response,
    FALLBACK_BUILDERS,
)


class TestStrategies:
    """Tests for the individual extraction strategies."""

    def test_direct_parse(self):
        """Test a bare JSON object is parsed directly."""
        result = parse_response('{"title": "Pilot", "scenes": []}')

        assert result.data == {"title": "Pilot", "scenes": []}
        assert result.strategy == "direct"
        assert not result.fallback_used

    def test_fenced_block_with_chatter(self):
        """Test a fenced block wrapped in chatter."""
        result = parse_response('Sure! ```json\n{"a":1}\n```')

        assert result.data == {"a": 1}
        assert result.strategy == "fenced"
        assert result.fallback_used is False

    def test_fenced_block_without_language(self):
        """Test a fence without a language tag."""
        assert parse_fenced('```\n{"b": [1, 2]}\n```') == {"b": [1, 2]}

    def test_embedded_object(self):
        """Test an object embedded in prose is found by brace matching."""
        text = 'Here is the plan: {"days": [{"day": 1, "note": "brace } in string"}]} Hope it helps!'

        result = parse_response(text)

        assert result.strategy == "brace_matched"
        assert result.data["days"][0]["note"] == "brace } in string"

    def test_direct_rejects_arrays(self):
        """Test a top-level array is not accepted as an object."""
        assert parse_direct("[1, 2, 3]") is None

    def test_trailing_comma_is_tolerated(self):
        """Test a trailing comma before a closing brace is repaired."""
        result = parse_response('{"items": [1, 2,],}')

        assert result.data == {"items": [1, 2]}
        assert not result.fallback_used

    def test_balanced_objects_in_order(self):
        """Test every top-level object is found in order."""
        candidates = find_balanced_objects('x {"a": 1} y {"b": {"c": 2}} z')

        assert candidates == ['{"a": 1}', '{"b": {"c": 2}}']

    def test_brace_matched_skips_invalid_candidates(self):
        """Test an invalid first object does not hide a later valid one."""
        assert parse_brace_matched('{not json} then {"ok": true}') == {"ok": True}

    def test_nested_object_never_replaces_unparseable_outer(self):
        """Test a fragment inside an invalid outer object is not returned as the payload."""
        text = ("Here you go: {\"episodeNumber\": 3, \"scenes\": "
                "[{\"sceneNumber\": 1, \"title\": \"Cold Open\"}], 'note': 'x'}")

        result = parse_response(text, stage="episode", context={"episode_number": 3})

        assert result.fallback_used
        assert result.strategy == "fallback"
        assert "sceneNumber" not in result.data
        assert result.data["episodeNumber"] == 3

    def test_unclosed_object_stops_the_scan(self):
        """Test an unclosed brace ends the search without yielding candidates."""
        assert find_balanced_objects('{"a": 1} {"b": ' + '{' * 200) == ['{"a": 1}']

    def test_clean_json_response_strips_fences(self):
        """Test markdown fences are stripped."""
        assert clean_json_response('```json\n{"a": 1}\n```') == '{"a": 1}'


class TestFallbacks:
    """Tests for the final fallback strategy."""

    @pytest.mark.parametrize("text", [None, "", "   ", "I cannot help with that.", "{broken"])
    def test_never_raises_and_returns_object(self, text):
        """Test non-JSON, empty and broken input still produce an object."""
        result = parse_response(text, stage="casting")

        assert isinstance(result.data, dict)
        assert result.fallback_used
        assert result.strategy == "fallback"

    def test_episode_fallback_shape(self):
        """Test the episode fallback has one scene and exactly one canonical option."""
        context = {"episode_number": 4, "beat_sheet": "BEAT 1: Opening\nBEAT 2: Twist"}

        result = parse_response("The model rambled without any JSON.", stage="episode", context=context)

        episode = result.data
        assert result.fallback_used
        assert episode["episodeNumber"] == 4
        assert len(episode["scenes"]) == 1
        assert "BEAT 2: Twist" in episode["scenes"][0]["content"]
        assert len(episode["branchingOptions"]) == 3
        assert sum(1 for o in episode["branchingOptions"] if o["isCanonical"]) == 1

    def test_fallback_copies_are_independent(self):
        """Test mutating one fallback payload does not leak into the next."""
        first = parse_response("nope", stage="episode").data
        first["branchingOptions"][0]["isCanonical"] = False

        second = parse_response("nope", stage="episode").data

        assert second["branchingOptions"][0]["isCanonical"] is True

    def test_every_stage_has_a_fallback(self):
        """Test every generation stage except the prose beat sheet has a fallback."""
        for stage in ["episode", "storyboard", "questionnaire", "casting", "locations", "props_wardrobe",
                      "equipment", "permits", "marketing", "schedule", "budget", "story_bible",
                      "script_breakdown", "shot_list"]:
            assert stage in FALLBACK_BUILDERS

    def test_unknown_stage_uses_generic_fallback(self):
        """Test an unnamed stage still yields an object."""
        result = parse_response("plain text", stage=None)

        assert isinstance(result.data, dict)
        assert result.fallback_used

    def test_breakdown_fallback_reads_scene_headings(self):
        """Test the breakdown fallback has one entry per script scene, location and time from the slug."""
        context = {"episode_data": {"scenes": [
            "INT. RADIO BOOTH - NIGHT\nMaya keys the mic.",
            {"sceneNumber": 2, "title": "EXT. ROOFTOP - SUNSET", "content": "Jonah climbs."},
        ]}}

        result = parse_response("no json here", stage="script_breakdown", context=context)

        scenes = result.data["scenes"]
        assert [s["sceneNumber"] for s in scenes] == [1, 2]
        assert scenes[0]["location"] == "RADIO BOOTH"
        assert scenes[0]["timeOfDay"] == "NIGHT"
        assert scenes[0]["logistics"]["nightShoot"] is True
        assert scenes[1]["timeOfDay"] == "SUNSET"

    def test_shot_list_fallback_follows_breakdown(self):
        """Test the shot list fallback gives one establishing shot per breakdown scene."""
        context = {"breakdown": {"scenes": [{"sceneNumber": 1, "location": "Booth"}, {"sceneNumber": 2}]}}

        result = parse_response("", stage="shot_list", context=context)

        assert [len(s["shots"]) for s in result.data["scenes"]] == [1, 1]
        assert result.data["scenes"][0]["location"] == "Booth"
