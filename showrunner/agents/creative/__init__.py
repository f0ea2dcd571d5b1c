"""Story stage agents and the video preview client"""

from .agent_story_bible import story_bible_agent
from .agent_beat_sheet import beat_sheet_agent
from .agent_episode import episode_agent
from .agent_storyboard import storyboard_agent
from .client_veo_google import GoogleVeoGenerator

__all__ = [
    'story_bible_agent',
    'beat_sheet_agent',
    'episode_agent',
    'storyboard_agent',
    'GoogleVeoGenerator',
]
