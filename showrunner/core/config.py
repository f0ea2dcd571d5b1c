"""Configuration and setup for the showrunner generation service"""

import os
import json
import logging
import sys
from typing import Dict, List, Optional, Any
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()

# Retry Configuration
DEFAULT_MAX_RETRIES = 3  # total attempts per model, initial call included
RETRY_DELAY_SECONDS = 1.0

# Azure OpenAI
AZURE_OPENAI_API_VERSION = "2024-12-01-preview"
AZURE_REQUEST_TIMEOUT = 180.0  # seconds

# Pre-production stages in display order
PREPRODUCTION_STAGES = [
    "casting",
    "locations",
    "props_wardrobe",
    "equipment",
    "permits",
    "marketing",
    "schedule",
    "budget",
]

# Stages that are not part of "regenerate all" but have their own endpoint
STORY_STAGES = [
    "story_bible",
    "beat_sheet",
    "episode",
    "storyboard",
    "questionnaire",
    "script_breakdown",
    "shot_list",
]

ALL_STAGES = STORY_STAGES + PREPRODUCTION_STAGES

# Stage display names
STAGE_DISPLAY_NAMES = {
    "story_bible": "Story Bible",
    "beat_sheet": "Beat Sheet",
    "episode": "Episode Script",
    "storyboard": "Storyboard",
    "questionnaire": "Questionnaire",
    "script_breakdown": "Script Breakdown",
    "shot_list": "Shot List",
    "casting": "Casting",
    "locations": "Locations",
    "props_wardrobe": "Props & Wardrobe",
    "equipment": "Equipment",
    "permits": "Permits",
    "marketing": "Marketing",
    "schedule": "Shooting Schedule",
    "budget": "Budget",
}

# Per-stage wall-clock budget in seconds; exceeding it fails the stage only
STAGE_TIMEOUTS = {
    "story_bible": 600,
    "beat_sheet": 180,
    "episode": 600,
    "storyboard": 300,
    "questionnaire": 120,
    "script_breakdown": 300,
    "shot_list": 300,
    "casting": 300,
    "locations": 300,
    "props_wardrobe": 300,
    "equipment": 180,
    "permits": 120,
    "marketing": 180,
    "schedule": 600,
    "budget": 300,
}

# Logical model roles
PROSE_MODEL = "prose"
STRUCTURED_MODEL = "structured"

# Stage -> model role
STAGE_MODELS = {
    "story_bible": PROSE_MODEL,
    "beat_sheet": PROSE_MODEL,
    "episode": PROSE_MODEL,
    "storyboard": STRUCTURED_MODEL,
    "questionnaire": STRUCTURED_MODEL,
    "script_breakdown": STRUCTURED_MODEL,
    "shot_list": PROSE_MODEL,
    "casting": STRUCTURED_MODEL,
    "locations": STRUCTURED_MODEL,
    "props_wardrobe": STRUCTURED_MODEL,
    "equipment": STRUCTURED_MODEL,
    "permits": STRUCTURED_MODEL,
    "marketing": PROSE_MODEL,
    "schedule": STRUCTURED_MODEL,
    "budget": STRUCTURED_MODEL,
}

# Model role -> ordered chain of "provider:model" entries, tried left to right
MODEL_FALLBACKS = {
    PROSE_MODEL: [
        "gemini:gemini-3-pro-preview",
        "gemini:gemini-2.5-pro",
        "azure:gpt-4.1",
    ],
    STRUCTURED_MODEL: [
        "azure:gpt-4.1",
        "gemini:gemini-2.5-pro",
        "gemini:gemini-2.5-flash",
    ],
}

# Sampling settings per stage
DEFAULT_GENERATION_CONFIGS = {
    "story_bible": {"temperature": 0.9, "max_tokens": 8000},
    "beat_sheet": {"temperature": 0.85, "max_tokens": 2000},
    "episode": {"temperature": 0.9, "max_tokens": 8000},
    "storyboard": {"temperature": 0.7, "max_tokens": 6000},
    "questionnaire": {"temperature": 0.6, "max_tokens": 3000},
    "script_breakdown": {"temperature": 0.6, "max_tokens": 8000},
    "shot_list": {"temperature": 0.7, "max_tokens": 12000},
    "casting": {"temperature": 0.7, "max_tokens": 8000},
    "locations": {"temperature": 0.7, "max_tokens": 6000},
    "props_wardrobe": {"temperature": 0.6, "max_tokens": 6000},
    "equipment": {"temperature": 0.5, "max_tokens": 4000},
    "permits": {"temperature": 0.4, "max_tokens": 3000},
    "marketing": {"temperature": 0.85, "max_tokens": 4000},
    "schedule": {"temperature": 0.4, "max_tokens": 8000},
    "budget": {"temperature": 0.3, "max_tokens": 6000},
}

# Google Veo Configuration
GOOGLE_VEO_CONFIG = {
    "default_model": "veo-3.1-generate-preview",
    "max_wait_time": 600,
    "check_interval": 10,  # 10s polling per official examples
    "aspect_ratios": {
        "vertical": "9:16",
        "horizontal": "16:9"
    },
    "durations": [4, 6, 8],
}


class ShowrunnerConfig(BaseModel):
    """Process-wide settings, built once at startup and passed by reference"""

    gemini_api_key: Optional[str] = None
    gcp_project_id: Optional[str] = None
    gcp_location: str = "us-central1"
    use_vertex: bool = False
    credentials: Optional[Any] = Field(default=None, exclude=True)

    azure_endpoint: Optional[str] = None
    azure_api_key: Optional[str] = Field(default=None, repr=False)
    azure_api_version: str = AZURE_OPENAI_API_VERSION
    # model name -> deployment id
    azure_deployments: Dict[str, str] = Field(default_factory=dict)

    redis_url: Optional[str] = None
    section_ttl_seconds: Optional[int] = None

    max_attempts: int = DEFAULT_MAX_RETRIES
    retry_delay: float = RETRY_DELAY_SECONDS
    model_fallbacks: Dict[str, List[str]] = Field(default_factory=lambda: {k: list(v) for k, v in MODEL_FALLBACKS.items()})
    stage_timeouts: Dict[str, float] = Field(default_factory=lambda: dict(STAGE_TIMEOUTS))

    log_level: str = "INFO"
    deployment_env: str = "DEV"

    model_config = {"arbitrary_types_allowed": True, "protected_namespaces": ()}

    @classmethod
    def from_env(cls) -> "ShowrunnerConfig":
        """Read settings from the environment (and .env)"""
        deployments = {
            "gpt-4.1": os.getenv("GPT_4_1_DEPLOYMENT", "gpt-4.1"),
            "gpt-4o": os.getenv("GPT_4O_DEPLOYMENT", "gpt-4o-2024-11-20"),
            "gpt-5-mini": os.getenv("GPT_5_MINI_DEPLOYMENT", "gpt-5-mini"),
        }
        use_vertex = os.getenv("GOOGLE_GENAI_USE_VERTEXAI", "").lower() in ("1", "true", "yes")
        ttl = os.getenv("SECTION_TTL_SECONDS")
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
            gcp_project_id=os.getenv("GCP_PROJECT_ID"),
            gcp_location=os.getenv("GOOGLE_CLOUD_REGION", "us-central1"),
            use_vertex=use_vertex,
            credentials=load_service_account_credentials() if use_vertex else None,
            azure_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT"),
            azure_api_key=os.getenv("AZURE_OPENAI_API_KEY"),
            azure_api_version=os.getenv("AZURE_OPENAI_API_VERSION", AZURE_OPENAI_API_VERSION),
            azure_deployments=deployments,
            redis_url=os.getenv("REDIS_URL"),
            section_ttl_seconds=int(ttl) if ttl else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            deployment_env=os.getenv("DEPLOYMENT_ENV", "DEV"),
        )

    def timeout_for(self, stage: str) -> float:
        return self.stage_timeouts.get(stage, 300)

    def fallback_chain(self, model: str) -> List[str]:
        """Resolve a model role or a concrete "provider:model" into an ordered chain"""
        if model in self.model_fallbacks:
            return list(self.model_fallbacks[model])
        if ":" in model:
            return [model]
        # Bare model id: infer the provider from its name
        provider = "gemini" if model.startswith("gemini") else "azure"
        return [f"{provider}:{model}"]


def load_service_account_credentials():
    """Build Vertex AI credentials from the JSON in the credentials_dict variable"""
    credentials_json = os.getenv('credentials_dict')
    if not credentials_json:
        return None
    from google.oauth2 import service_account
    credentials_info = json.loads(credentials_json)
    return service_account.Credentials.from_service_account_info(
        credentials_info,
        scopes=['https://www.googleapis.com/auth/cloud-platform']
    )


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
