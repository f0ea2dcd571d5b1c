"""Dependency-ordered stage pipeline for "regenerate all" runs"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from .config import ShowrunnerConfig, PREPRODUCTION_STAGES, STAGE_DISPLAY_NAMES
from .state import (
    GenerationRequest,
    GenerationResult,
    PipelineRun,
    ProgressUpdate,
    PENDING,
    RUNNING,
    SUCCEEDED,
    FAILED,
)

logger = logging.getLogger(__name__)

# (stage, hard prerequisites); a stage waits for its prerequisites to settle
STAGE_DEPENDENCIES: List[Tuple[str, List[str]]] = [
    ("casting", []),
    ("locations", []),
    ("props_wardrobe", []),
    ("equipment", []),
    ("permits", []),
    ("marketing", []),
    ("schedule", ["locations"]),
    ("budget", ["schedule"]),
]

# Inputs a stage uses when available but never waits for
SOFT_INPUTS: Dict[str, List[str]] = {
    "marketing": ["casting"],
    "budget": ["casting", "locations", "equipment"],
    "schedule": ["casting"],
    "props_wardrobe": ["casting"],
    "locations": ["casting"],
}

STAGE_ORDER = [stage for stage, _ in STAGE_DEPENDENCIES]

CANCELLED_MESSAGE = "cancelled"

ProgressCallback = Callable[[ProgressUpdate], Union[None, Awaitable[None]]]
StageRunner = Callable[[GenerationRequest, Any], Awaitable[GenerationResult]]


class StageCancelled(Exception):
    """Raised inside the pipeline when a stage is aborted by its cancellation token"""


def plan_waves(stages: List[str]) -> List[List[str]]:
    """Group the requested stages into waves that can run concurrently

    Only requested stages take part in ordering; a prerequisite that was not
    requested does not delay its dependent.
    """
    dependencies = dict(STAGE_DEPENDENCIES)
    unknown = [s for s in stages if s not in dependencies]
    if unknown:
        raise ValueError(f"Unknown stages: {', '.join(unknown)}")

    remaining = [s for s in STAGE_ORDER if s in set(stages)]
    placed = set()
    waves = []
    while remaining:
        wave = [
            s for s in remaining
            if all(dep in placed or dep not in remaining for dep in dependencies[s])
        ]
        # The graph is static and acyclic, so every pass places at least one stage
        waves.append(wave)
        placed.update(wave)
        remaining = [s for s in remaining if s not in placed]
    return waves


class CancellationToken:
    """Caller-held handle that stops a running pipeline"""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        await self._event.wait()


class StagePipeline:
    """Runs stages wave by wave, concurrently inside a wave

    Stage failures are isolated: a dependent stage still runs and receives None
    for a failed prerequisite. Each stage is bounded by its configured timeout.
    There are no retries at this level.
    """

    def __init__(self, client, config: ShowrunnerConfig, store=None,
                 stage_runner: Optional[StageRunner] = None):
        self.client = client
        self.config = config
        self.store = store
        if stage_runner is None:
            from ..agents import run_stage
            stage_runner = run_stage
        self._run_stage = stage_runner

    async def run(self, request: GenerationRequest, stages: Optional[List[str]] = None,
                  on_progress: Optional[ProgressCallback] = None,
                  cancel_token: Optional[CancellationToken] = None) -> PipelineRun:
        stages = list(stages) if stages else list(PREPRODUCTION_STAGES)
        waves = plan_waves(stages)
        ordered = [stage for wave in waves for stage in wave]

        run = PipelineRun(requested=ordered)
        for stage in ordered:
            run.results[stage] = GenerationResult(stage=stage, status=PENDING)

        payloads: Dict[str, Optional[Dict[str, Any]]] = {}
        if request.casting_data and "casting" not in ordered:
            payloads["casting"] = request.casting_data

        pipeline_start = time.time()
        logger.info(f"[Pipeline] Starting run: {len(ordered)} stages in {len(waves)} waves {waves}")

        for index, wave in enumerate(waves, start=1):
            if cancel_token is not None and cancel_token.cancelled:
                logger.info(f"[Pipeline] Cancelled before wave {index}, {len(ordered) - run.completed} stages left pending")
                run.cancelled = True
                break

            logger.info(f"[Pipeline] Wave {index}/{len(waves)}: {wave}")
            await asyncio.gather(*[
                self._execute_stage(stage, request, payloads, run, on_progress, cancel_token)
                for stage in wave
            ])
            for stage in wave:
                result = run.results[stage]
                payloads[stage] = result.payload if result.success else None

            if cancel_token is not None and cancel_token.cancelled:
                run.cancelled = True
                break

        run.current_stage = None
        logger.info(f"[Pipeline] Run finished in {time.time() - pipeline_start:.1f}s: "
                    f"{sum(1 for r in run.results.values() if r.success)}/{len(ordered)} succeeded"
                    f"{' (cancelled)' if run.cancelled else ''}")

        if self.store is not None:
            await self._persist(request, run)
        return run

    def _prerequisites_for(self, stage: str, payloads: Dict[str, Optional[Dict[str, Any]]]) -> Dict[str, Optional[Dict[str, Any]]]:
        prerequisites = {}
        for dep in dict(STAGE_DEPENDENCIES)[stage]:
            # A failed or unrequested prerequisite is passed as None
            prerequisites[dep] = payloads.get(dep)
        for soft in SOFT_INPUTS.get(stage, []):
            if payloads.get(soft) is not None:
                prerequisites[soft] = payloads[soft]
        return prerequisites

    async def _execute_stage(self, stage: str, request: GenerationRequest,
                             payloads: Dict[str, Optional[Dict[str, Any]]], run: PipelineRun,
                             on_progress: Optional[ProgressCallback],
                             cancel_token: Optional[CancellationToken]):
        stage_request = request.for_stage(stage, self._prerequisites_for(stage, payloads))
        result = run.results[stage]
        result.status = RUNNING
        result.started_at = time.monotonic()
        run.current_stage = stage
        await self._notify(on_progress, run, stage, RUNNING,
                           f"Generating {STAGE_DISPLAY_NAMES.get(stage, stage)}...")

        timeout = self.config.timeout_for(stage)
        try:
            outcome = await self._run_with_cancel(
                asyncio.wait_for(self._run_stage(stage_request, self.client), timeout=timeout),
                cancel_token
            )
        except asyncio.TimeoutError:
            logger.error(f"[Pipeline] {stage} timed out after {timeout}s")
            outcome = GenerationResult(stage=stage, success=False,
                                       error=f"Stage timed out after {timeout}s")
        except StageCancelled:
            logger.info(f"[Pipeline] {stage} cancelled")
            outcome = GenerationResult(stage=stage, success=False, error=CANCELLED_MESSAGE)
        except Exception as e:
            # Agents report their own failures; this only catches agent bugs
            logger.error(f"[Pipeline] {stage} raised {type(e).__name__}: {e}")
            outcome = GenerationResult(stage=stage, success=False, error=str(e))

        result.success = outcome.success
        result.payload = outcome.payload
        result.error = outcome.error
        result.fallback_used = outcome.fallback_used
        result.model = outcome.model
        result.finished_at = time.monotonic()
        result.status = SUCCEEDED if outcome.success else FAILED
        if not outcome.success:
            run.errors[stage] = outcome.error or "Unknown error"

        run.progress = round(run.completed / len(run.requested) * 100) if run.requested else 100
        if result.success:
            message = f"{STAGE_DISPLAY_NAMES.get(stage, stage)} complete"
        else:
            message = f"{STAGE_DISPLAY_NAMES.get(stage, stage)} failed: {result.error}"
        await self._notify(on_progress, run, stage, result.status, message)

    async def _run_with_cancel(self, coro, cancel_token: Optional[CancellationToken]):
        """Await coro, aborting it as soon as the token is cancelled"""
        if cancel_token is None:
            return await coro
        if cancel_token.cancelled:
            coro.close()
            raise StageCancelled()

        task = asyncio.ensure_future(coro)
        waiter = asyncio.ensure_future(cancel_token.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
            if task in done:
                return task.result()
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            raise StageCancelled()
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

    async def _notify(self, on_progress: Optional[ProgressCallback], run: PipelineRun,
                      stage: str, status: str, message: str):
        if on_progress is None:
            return
        update = ProgressUpdate(
            stage=stage,
            display_name=STAGE_DISPLAY_NAMES.get(stage, stage),
            status=status,
            message=message,
            progress=run.progress,
            completed=run.completed,
            total=len(run.requested),
        )
        try:
            outcome = on_progress(update)
            if inspect.isawaitable(outcome):
                await outcome
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"[Pipeline] Progress callback failed: {e}")

    async def _persist(self, request: GenerationRequest, run: PipelineRun):
        if not request.user_id or not request.story_bible_id:
            logger.info("[Pipeline] No userId/storyBibleId on request, skipping persistence")
            return
        scope = section_scope(request)
        saved = await self.store.save_run(request.user_id, request.story_bible_id, scope, run)
        for section, ok in saved.items():
            if not ok:
                run.persistence_errors[section] = "Failed to persist section"


def section_scope(request: GenerationRequest) -> str:
    """Persistence scope for a request: arc when given, else episode"""
    if request.arc_index is not None:
        return f"arc{request.arc_index}"
    if request.episode_number is not None:
        return f"episode{request.episode_number}"
    return "series"
