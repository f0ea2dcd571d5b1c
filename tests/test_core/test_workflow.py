"""
Tests for the stage pipeline

Tests for showrunner/core/workflow.py
"""

import asyncio
import time

import pytest

from showrunner.core.state import GenerationResult, SUCCEEDED, FAILED, PENDING
from showrunner.core.workflow import (
    CANCELLED_MESSAGE,
    CancellationToken,
    StagePipeline,
    plan_waves,
    section_scope,
)

EPSILON = 0.05


class ScriptedRunner:
    """Stage runner double: per-stage delay and outcome, records timing and inputs."""

    def __init__(self, delays=None, failures=None, raises=None):
        self.delays = delays or {}
        self.failures = set(failures or [])
        self.raises = raises or {}
        self.started = {}
        self.finished = {}
        self.requests = {}

    async def __call__(self, request, client):
        stage = request.stage
        self.started[stage] = time.monotonic()
        self.requests[stage] = request
        await asyncio.sleep(self.delays.get(stage, 0.01))
        self.finished[stage] = time.monotonic()
        if stage in self.raises:
            raise self.raises[stage]
        if stage in self.failures:
            return GenerationResult(stage=stage, success=False, error=f"{stage} exploded")
        return GenerationResult(stage=stage, success=True, payload={"stage": stage}, model="fake:model")


class FakeStore:
    def __init__(self, result=True):
        self.result = result
        self.saved = []

    async def save_run(self, user_id, story_bible_id, scope, run):
        self.saved.append((user_id, story_bible_id, scope, run.payloads()))
        return {stage: self.result for stage in run.payloads()}


class TestPlanWaves:
    """Tests for wave planning."""

    def test_full_plan(self):
        """Test independent stages share the first wave and the chain follows."""
        waves = plan_waves(["budget", "schedule", "locations", "casting", "marketing"])

        assert waves == [["casting", "locations", "marketing"], ["schedule"], ["budget"]]

    def test_unrequested_prerequisite_does_not_delay(self):
        """Test budget alone runs in the first wave."""
        assert plan_waves(["budget", "casting"]) == [["casting", "budget"]]

    def test_unknown_stage_rejected(self):
        """Test unknown stages raise ValueError."""
        with pytest.raises(ValueError):
            plan_waves(["casting", "catering"])


class TestPipelineOrdering:
    """Tests for ordering and concurrency."""

    @pytest.mark.asyncio
    async def test_chain_runs_in_order(self, config, make_request):
        """Test locations -> schedule -> budget all succeed in dependency order."""
        runner = ScriptedRunner(delays={"locations": 0.05, "schedule": 0.05})
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)

        run = await pipeline.run(make_request(), stages=["locations", "schedule", "budget"])

        assert all(r.status == SUCCEEDED for r in run.results.values())
        assert runner.started["schedule"] >= runner.finished["locations"]
        assert runner.started["budget"] >= runner.finished["schedule"]
        assert run.progress == 100
        assert run.success

    @pytest.mark.asyncio
    async def test_independent_stages_start_together(self, config, make_request):
        """Test casting and locations start concurrently."""
        runner = ScriptedRunner(delays={"casting": 0.2, "locations": 0.2})
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)

        started = time.monotonic()
        await pipeline.run(make_request(), stages=["casting", "locations"])
        elapsed = time.monotonic() - started

        assert abs(runner.started["casting"] - runner.started["locations"]) < EPSILON
        assert elapsed < 0.35

    @pytest.mark.asyncio
    async def test_stages_get_independent_requests(self, config, make_request):
        """Test concurrent stages do not share request objects."""
        runner = ScriptedRunner()
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)

        await pipeline.run(make_request(), stages=["casting", "locations"])

        assert runner.requests["casting"] is not runner.requests["locations"]
        assert runner.requests["casting"].stage == "casting"


class TestPipelineFailures:
    """Tests for failure isolation and degraded prerequisites."""

    @pytest.mark.asyncio
    async def test_failed_prerequisite_is_passed_as_none(self, config, make_request):
        """Test schedule still runs with a None locations prerequisite."""
        runner = ScriptedRunner(failures={"locations"})
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)

        run = await pipeline.run(make_request(), stages=["casting", "locations", "schedule", "budget"])

        assert "schedule" in runner.requests
        assert runner.requests["schedule"].prerequisites["locations"] is None
        assert runner.requests["schedule"].prerequisites["casting"] == {"stage": "casting"}
        assert runner.requests["budget"].prerequisites["schedule"] == {"stage": "schedule"}
        assert run.results["locations"].status == FAILED
        assert run.errors == {"locations": "locations exploded"}
        assert run.results["schedule"].success
        assert run.success

    @pytest.mark.asyncio
    async def test_stage_timeout_fails_only_that_stage(self, config, make_request):
        """Test a stage over its budget fails while siblings succeed."""
        config.stage_timeouts["locations"] = 0.05
        runner = ScriptedRunner(delays={"locations": 1.0})
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)

        run = await pipeline.run(make_request(), stages=["casting", "locations", "schedule"])

        assert run.results["locations"].status == FAILED
        assert "timed out" in run.errors["locations"]
        assert run.results["casting"].success
        assert run.results["schedule"].success

    @pytest.mark.asyncio
    async def test_agent_exception_is_contained(self, config, make_request):
        """Test an unexpected exception in one stage becomes its error."""
        runner = ScriptedRunner(raises={"permits": RuntimeError("boom")})
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)

        run = await pipeline.run(make_request(), stages=["permits", "marketing"])

        assert run.errors == {"permits": "boom"}
        assert run.results["marketing"].success

    @pytest.mark.asyncio
    async def test_casting_data_seeds_soft_input(self, config, make_request):
        """Test castingData on the request reaches stages when casting is not rerun."""
        runner = ScriptedRunner()
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)

        await pipeline.run(make_request(castingData={"roles": ["Maya"]}), stages=["marketing"])

        assert runner.requests["marketing"].prerequisites["casting"] == {"roles": ["Maya"]}


class TestCancellationAndProgress:
    """Tests for cancellation and progress events."""

    @pytest.mark.asyncio
    async def test_cancel_mid_run(self, config, make_request):
        """Test cancelling stops running stages and leaves later waves pending."""
        runner = ScriptedRunner(delays={"locations": 5.0})
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)
        token = CancellationToken()

        async def cancel_soon():
            await asyncio.sleep(0.05)
            token.cancel()

        asyncio.create_task(cancel_soon())
        run = await asyncio.wait_for(
            pipeline.run(make_request(), stages=["casting", "locations", "schedule"], cancel_token=token),
            timeout=2.0,
        )

        assert run.cancelled
        assert run.results["casting"].success
        assert run.errors["locations"] == CANCELLED_MESSAGE
        assert run.results["schedule"].status == PENDING
        assert "schedule" not in runner.requests

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, config, make_request):
        """Test a pre-cancelled token runs nothing."""
        runner = ScriptedRunner()
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)
        token = CancellationToken()
        token.cancel()

        run = await pipeline.run(make_request(), stages=["casting"], cancel_token=token)

        assert run.cancelled
        assert runner.requests == {}

    @pytest.mark.asyncio
    async def test_progress_events(self, config, make_request):
        """Test running and finished events are emitted per stage, sync or async callbacks."""
        runner = ScriptedRunner(failures={"budget"})
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)
        sync_events, async_events = [], []

        async def on_progress_async(update):
            async_events.append(update)

        await pipeline.run(make_request(), stages=["schedule", "budget"], on_progress=sync_events.append)
        await pipeline.run(make_request(), stages=["schedule", "budget"], on_progress=on_progress_async)

        for events in (sync_events, async_events):
            assert [(e.stage, e.status) for e in events] == [
                ("schedule", "running"), ("schedule", "succeeded"),
                ("budget", "running"), ("budget", "failed"),
            ]
            assert events[-1].progress == 100
            assert events[1].progress == 50
            assert events[-1].completed == 2

    @pytest.mark.asyncio
    async def test_failing_progress_callback_does_not_break_run(self, config, make_request):
        """Test callback errors are logged, not raised."""
        runner = ScriptedRunner()
        pipeline = StagePipeline(client=None, config=config, stage_runner=runner)

        def broken(update):
            raise RuntimeError("socket gone")

        run = await pipeline.run(make_request(), stages=["casting"], on_progress=broken)

        assert run.results["casting"].success


class TestPersistence:
    """Tests for the persistence hand-off."""

    @pytest.mark.asyncio
    async def test_saves_succeeded_sections(self, config, make_request):
        """Test succeeded payloads are handed to the store under the arc scope."""
        store = FakeStore()
        pipeline = StagePipeline(client=None, config=config, store=store,
                                 stage_runner=ScriptedRunner(failures={"permits"}))

        run = await pipeline.run(make_request(userId="u1", storyBibleId="sb1", arcIndex=0),
                                 stages=["casting", "permits"])

        assert store.saved == [("u1", "sb1", "arc0", {"casting": {"stage": "casting"}})]
        assert run.persistence_errors == {}

    @pytest.mark.asyncio
    async def test_store_failures_are_reported(self, config, make_request):
        """Test a failed save shows up in persistence_errors."""
        store = FakeStore(result=False)
        pipeline = StagePipeline(client=None, config=config, store=store, stage_runner=ScriptedRunner())

        run = await pipeline.run(make_request(userId="u1", storyBibleId="sb1"), stages=["casting"])

        assert run.persistence_errors == {"casting": "Failed to persist section"}
        assert run.to_wire()["persistenceErrors"] == {"casting": "Failed to persist section"}

    @pytest.mark.asyncio
    async def test_no_ids_skips_persistence(self, config, make_request):
        store = FakeStore()
        pipeline = StagePipeline(client=None, config=config, store=store, stage_runner=ScriptedRunner())

        await pipeline.run(make_request(), stages=["casting"])

        assert store.saved == []

    def test_section_scope(self, make_request):
        assert section_scope(make_request(arcIndex=2)) == "arc2"
        assert section_scope(make_request(episodeNumber=3)) == "episode3"
        assert section_scope(make_request(episodeNumber=None)) == "series"
