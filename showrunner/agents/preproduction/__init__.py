"""Pre-production stage agents"""

from .agent_questionnaire import questionnaire_agent
from .agent_casting import casting_agent
from .agent_locations import locations_agent
from .agent_logistics import props_wardrobe_agent, equipment_agent, permits_agent
from .agent_scheduling import schedule_agent, budget_agent
from .agent_marketing import marketing_agent
from .agent_breakdown import script_breakdown_agent, shot_list_agent

__all__ = [
    'questionnaire_agent',
    'casting_agent',
    'locations_agent',
    'props_wardrobe_agent',
    'equipment_agent',
    'permits_agent',
    'schedule_agent',
    'budget_agent',
    'marketing_agent',
    'script_breakdown_agent',
    'shot_list_agent',
]
