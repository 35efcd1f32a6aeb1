"""
Agents package initializer.
One agent per LLM-facing refinement stage, plus the deterministic validator.
"""

from .layout_agent import LayoutAgent
from .audit_agent import AuditAgent
from .improvement_agent import ImprovementAgent
from .regeneration_agent import RegenerationAgent, critical_scene_indexes
from .validator import ValidatorAgent

__all__ = [
    "LayoutAgent",
    "AuditAgent",
    "ImprovementAgent",
    "RegenerationAgent",
    "critical_scene_indexes",
    "ValidatorAgent",
]
