"""
Schema registry for structured output.
Auto-selects Gemini or GPT schemas based on model type.
"""

import importlib
from typing import Dict, Any

# Stages with a structured output schema
AVAILABLE_SCHEMAS = [
    "episode",
    "storyboard",
]


def get_schema(stage: str, model_type: str) -> Dict[str, Any]:
    """
    Load the appropriate schema for a stage based on model type.

    Args:
        stage: Name of the stage (e.g., "episode", "storyboard")
        model_type: Model type ("gemini" or "gpt")

    Returns:
        Schema dictionary compatible with the specified model

    Raises:
        ValueError: If stage or model_type is invalid
    """
    if model_type not in ["gemini", "gpt"]:
        raise ValueError(f"Invalid model_type: {model_type}. Must be 'gemini' or 'gpt'.")

    if stage not in AVAILABLE_SCHEMAS:
        raise ValueError(f"Invalid stage: {stage}. Must be one of {AVAILABLE_SCHEMAS}")

    module = importlib.import_module(f"{__name__}.{stage}")
    if model_type == "gemini":
        return module.GEMINI_SCHEMA
    return module.GPT_SCHEMA


def has_schema(stage: str) -> bool:
    return stage in AVAILABLE_SCHEMAS
