"""Core system components"""

from .config import ShowrunnerConfig, setup_logging
from .errors import ShowrunnerError, ProviderError, GenerationError, RequestValidationFailed
from .state import GenerationRequest, GenerationResult, PipelineRun, ProgressUpdate
# Don't import workflow here to avoid circular imports with agents

__all__ = [
    'ShowrunnerConfig',
    'setup_logging',
    'ShowrunnerError',
    'ProviderError',
    'GenerationError',
    'RequestValidationFailed',
    'GenerationRequest',
    'GenerationResult',
    'PipelineRun',
    'ProgressUpdate',
]
