"""
Pytest Configuration and Fixtures

Shared fixtures and scripted fakes for all tests.
"""

import asyncio
import json
import time
from typing import Any, Dict, List, Optional

import pytest

from showrunner.core.config import ShowrunnerConfig
from showrunner.core.errors import GenerationError, ProviderError
from showrunner.core.llm import GenerationOutput
from showrunner.core.state import GenerationRequest


SAMPLE_EPISODE = {
    "episodeNumber": 1,
    "title": "The Signal",
    "synopsis": "Maya hears a broadcast that should not exist.",
    "scenes": [
        {"sceneNumber": 1, "title": "Night Shift", "content": "Maya sits alone at the radio desk. " * 40},
        {"sceneNumber": 2, "title": "The Roof", "content": "Jonah climbs to the antenna. " * 40},
    ],
    "branchingOptions": [
        {"id": 1, "text": "Answer the broadcast", "isCanonical": True},
        {"id": 2, "text": "Report it", "isCanonical": False},
        {"id": 3, "text": "Destroy the tape", "isCanonical": False},
    ],
}


@pytest.fixture
def story_bible() -> Dict[str, Any]:
    """Sample story bible as the client sends it."""
    return {
        "seriesTitle": "Dead Air",
        "genre": "Mystery",
        "tone": "Tense",
        "premise": "A night-shift radio host receives calls from listeners who died years ago.",
        "mainCharacters": [
            {"name": "Maya", "archetype": "Reluctant hero", "description": "Radio host, 30s"},
            {"name": "Jonah", "archetype": "Skeptic", "description": "Sound engineer"},
        ],
        "narrativeArcs": [
            {
                "title": "Static",
                "summary": "The calls begin.",
                "episodes": [
                    {"number": 1, "title": "The Signal", "summary": "The first call."},
                    {"number": 2, "title": "Feedback", "summary": "Jonah finds the tape."},
                ],
            }
        ],
    }


@pytest.fixture
def sample_episode() -> Dict[str, Any]:
    return json.loads(json.dumps(SAMPLE_EPISODE))


@pytest.fixture
def make_request(story_bible):
    """Build a GenerationRequest from camelCase fields."""
    def _make(**fields) -> GenerationRequest:
        body = {"storyBible": story_bible, "episodeNumber": 1}
        body.update(fields)
        return GenerationRequest.model_validate(body)
    return _make


@pytest.fixture
def config() -> ShowrunnerConfig:
    """Config with test-sized timeouts and two-model chains."""
    return ShowrunnerConfig(
        max_attempts=3,
        retry_delay=1.0,
        model_fallbacks={
            "prose": ["gemini:primary", "azure:secondary"],
            "structured": ["azure:primary", "gemini:secondary"],
        },
    )


class RecordingSleep:
    """Stands in for asyncio.sleep; records requested delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


class ScriptedLLM:
    """Provider double: plays back a script of texts or exceptions and records calls."""

    def __init__(self, name: str, script: List[Any]):
        self.name = name
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []

    async def ainvoke(self, prompt: str, **kwargs):
        self.calls.append({"prompt": prompt, "time": time.monotonic(), **kwargs})
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        return step


@pytest.fixture
def scripted_llms():
    """Factory registry: scripted_llms.add("gemini:primary", [...]) then pass .factory to the client."""
    class Registry:
        def __init__(self):
            self.llms: Dict[str, ScriptedLLM] = {}
            self.built: List[str] = []

        def add(self, entry: str, script: List[Any]) -> ScriptedLLM:
            self.llms[entry] = ScriptedLLM(entry, script)
            return self.llms[entry]

        def factory(self, provider: str, model: str):
            entry = f"{provider}:{model}"
            self.built.append(entry)
            if entry not in self.llms:
                raise ProviderError("not scripted", provider=provider, model=model, transient=False)
            return self.llms[entry]

    return Registry()


class FakeGenerationClient:
    """Client double for agents and the API: returns canned text per stage."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None, default: Any = "{}",
                 delays: Optional[Dict[str, float]] = None):
        self.responses = responses or {}
        self.default = default
        self.delays = delays or {}
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt, system_prompt="", options=None):
        stage = options.response_schema if options and options.response_schema else None
        stage = stage or self._stage_from_prompt(system_prompt)
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt, "options": options, "stage": stage})
        if stage in self.delays:
            await asyncio.sleep(self.delays[stage])
        response = self.responses.get(stage, self.default)
        if isinstance(response, Exception):
            raise response
        if not isinstance(response, str):
            response = json.dumps(response)
        return GenerationOutput(text=response, model="fake-model", provider="fake", attempts=1)

    @staticmethod
    def _stage_from_prompt(system_prompt: str) -> Optional[str]:
        from showrunner.prompts.registry import STAGE_REGISTRY
        for stage, entry in STAGE_REGISTRY.items():
            if entry["system_prompt"] == system_prompt:
                return stage
        return None

    async def aclose(self):
        pass


@pytest.fixture
def fake_client_class():
    return FakeGenerationClient


@pytest.fixture
def generation_error():
    def _make(message: str = "All models failed for this request") -> GenerationError:
        return GenerationError(message, attempts=[
            ProviderError("Forbidden", status=403, provider="fake", model="fake-model")
        ])
    return _make
