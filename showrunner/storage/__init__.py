"""Persistence for generated sections"""

from .redis_store import RedisSectionStore, section_key

__all__ = [
    'RedisSectionStore',
    'section_key',
]
