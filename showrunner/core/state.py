"""Records passed between prompt builders, agents and the stage pipeline"""

import copy
from typing import List, Dict, Any, Optional, Union
from pydantic import BaseModel, Field, ConfigDict


class WireModel(BaseModel):
    """Base for records that travel as camelCase JSON"""

    model_config = ConfigDict(populate_by_name=True, extra="allow", protected_namespaces=())

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Character(WireModel):
    name: Optional[str] = None
    archetype: Optional[str] = None
    description: Optional[Union[str, Dict[str, Any]]] = None
    background: Optional[Union[str, Dict[str, Any]]] = None
    motivation: Optional[str] = None
    voice: Optional[str] = None
    arc: Optional[Union[str, Dict[str, Any]]] = None


class EpisodeOutline(WireModel):
    """Episode entry inside a narrative arc of the story bible"""
    number: Optional[int] = None
    title: Optional[str] = None
    summary: Optional[str] = None


class NarrativeArc(WireModel):
    title: Optional[str] = None
    summary: Optional[Union[str, Dict[str, Any]]] = None
    episodes: List[EpisodeOutline] = Field(default_factory=list)


class StoryBible(WireModel):
    """Series-level creative brief; read-only input to every stage"""
    series_title: Optional[str] = Field(default=None, alias="seriesTitle")
    genre: Optional[str] = None
    tone: Optional[str] = None
    premise: Optional[Union[str, Dict[str, Any]]] = None
    target_audience: Optional[Union[str, Dict[str, Any]]] = Field(default=None, alias="targetAudience")
    main_characters: List[Character] = Field(default_factory=list, alias="mainCharacters")
    world_building: Optional[Union[str, Dict[str, Any]]] = Field(default=None, alias="worldBuilding")
    narrative_arcs: List[NarrativeArc] = Field(default_factory=list, alias="narrativeArcs")
    themes: Optional[List[str]] = None


class Scene(WireModel):
    scene_number: Optional[int] = Field(default=None, alias="sceneNumber")
    title: Optional[str] = None
    content: Optional[str] = None


class BranchingOption(WireModel):
    id: Union[int, str]
    text: str
    is_canonical: bool = Field(default=False, alias="isCanonical")


class Episode(WireModel):
    episode_number: Optional[int] = Field(default=None, alias="episodeNumber")
    title: Optional[str] = None
    synopsis: Optional[str] = None
    scenes: List[Scene] = Field(default_factory=list)
    branching_options: List[BranchingOption] = Field(default_factory=list, alias="branchingOptions")
    episode_rundown: Optional[str] = Field(default=None, alias="episodeRundown")


class VibeSettings(WireModel):
    """Three independent 0-100 sliders interpreted into prompt direction"""
    tone: int = Field(default=50, ge=0, le=100)
    pacing: int = Field(default=50, ge=0, le=100)
    dialogue_style: int = Field(default=50, ge=0, le=100, alias="dialogueStyle")


class GenerationRequest(WireModel):
    """Input bundle for one stage invocation"""
    stage: Optional[str] = None
    story_bible: StoryBible = Field(default_factory=StoryBible, alias="storyBible")
    episode_number: Optional[int] = Field(default=None, alias="episodeNumber")
    arc_index: Optional[int] = Field(default=None, alias="arcIndex")
    episode_numbers: List[int] = Field(default_factory=list, alias="episodeNumbers")
    vibe_settings: Optional[VibeSettings] = Field(default=None, alias="vibeSettings")
    notes: Optional[str] = Field(default=None, alias="directorsNotes")
    beat_sheet: Optional[str] = Field(default=None, alias="beatSheet")
    episode_goal: Optional[str] = Field(default=None, alias="episodeGoal")
    previous_choice: Optional[str] = Field(default=None, alias="previousChoice")
    previous_episode: Optional[Dict[str, Any]] = Field(default=None, alias="previousEpisode")
    all_previous_episodes: List[Dict[str, Any]] = Field(default_factory=list, alias="allPreviousEpisodes")
    episode_data: Optional[Dict[str, Any]] = Field(default=None, alias="episodeData")
    # Scripts of every episode in scope for pre-production stages
    episodes: List[Dict[str, Any]] = Field(default_factory=list)
    casting_data: Optional[Dict[str, Any]] = Field(default=None, alias="castingData")
    questionnaire_type: Optional[str] = Field(default=None, alias="questionnaireType")
    # Series concept, the input of story bible generation
    logline: Optional[str] = None
    protagonist: Optional[str] = None
    stakes: Optional[str] = None
    vibe: Optional[str] = None
    setting: Optional[str] = None
    theme: Optional[str] = None
    synopsis: Optional[str] = None
    additional_info: Optional[str] = Field(default=None, alias="additionalInfo")
    # "--" separated text or one entry per character
    character_info: Optional[Union[str, List[str]]] = Field(default=None, alias="characterInfo")
    advanced_settings: Optional[Dict[str, Any]] = Field(default=None, alias="advancedSettings")
    # Shot list inputs
    breakdown_data: Optional[Dict[str, Any]] = Field(default=None, alias="breakdownData")
    storyboard_data: Optional[Dict[str, Any]] = Field(default=None, alias="storyboardData")
    # upstream stage name -> payload, None when the upstream stage failed
    prerequisites: Dict[str, Optional[Dict[str, Any]]] = Field(default_factory=dict)

    # Persistence keys
    user_id: Optional[str] = Field(default=None, alias="userId")
    story_bible_id: Optional[str] = Field(default=None, alias="storyBibleId")

    def for_stage(self, stage: str, prerequisites: Dict[str, Optional[Dict[str, Any]]]) -> "GenerationRequest":
        """Independent copy for one stage, so concurrent stages share nothing mutable"""
        clone = self.model_copy(deep=True)
        clone.stage = stage
        clone.prerequisites = copy.deepcopy(prerequisites)
        return clone


# Stage states
PENDING = "pending"
RUNNING = "running"
SUCCEEDED = "succeeded"
FAILED = "failed"


class GenerationResult(BaseModel):
    """Outcome of one stage"""
    model_config = ConfigDict(protected_namespaces=())

    stage: str
    success: bool = False
    payload: Optional[Any] = None
    error: Optional[str] = None
    fallback_used: bool = False
    status: str = PENDING
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    model: Optional[str] = None

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def to_wire(self) -> Dict[str, Any]:
        data = {
            "stage": self.stage,
            "success": self.success,
            "status": self.status,
            "fallbackUsed": self.fallback_used,
        }
        if self.payload is not None:
            data["payload"] = self.payload
        if self.error:
            data["error"] = self.error
        if self.model:
            data["model"] = self.model
        if self.started_at is not None:
            data["startedAt"] = self.started_at
        if self.finished_at is not None:
            data["finishedAt"] = self.finished_at
        if self.duration is not None:
            data["durationSeconds"] = round(self.duration, 3)
        return data


class ProgressUpdate(BaseModel):
    stage: str
    display_name: str
    status: str
    message: str
    progress: int
    completed: int
    total: int

    def to_wire(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "displayName": self.display_name,
            "status": self.status,
            "message": self.message,
            "progress": self.progress,
            "completed": self.completed,
            "total": self.total,
        }


class PipelineRun(BaseModel):
    """All stage results of one "regenerate all" invocation"""
    requested: List[str] = Field(default_factory=list)
    results: Dict[str, GenerationResult] = Field(default_factory=dict)
    progress: int = 0
    current_stage: Optional[str] = None
    errors: Dict[str, str] = Field(default_factory=dict)
    persistence_errors: Dict[str, str] = Field(default_factory=dict)
    cancelled: bool = False

    @property
    def completed(self) -> int:
        return sum(1 for r in self.results.values() if r.status in (SUCCEEDED, FAILED))

    @property
    def success(self) -> bool:
        # Partial completion still counts as a successful run
        return not self.errors or any(r.success for r in self.results.values())

    def payloads(self) -> Dict[str, Any]:
        return {stage: r.payload for stage, r in self.results.items() if r.success}

    def to_wire(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "requested": self.requested,
            "progress": self.progress,
            "currentStage": self.current_stage,
            "cancelled": self.cancelled,
            "results": {stage: r.to_wire() for stage, r in self.results.items()},
            "data": self.payloads(),
            "errors": self.errors or None,
            "persistenceErrors": self.persistence_errors or None,
        }
