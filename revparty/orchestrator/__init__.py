"""
Orchestrator package initializer.
Exposes the refinement pipeline and its stage helpers.
"""

from .pipeline import RefinementPipeline, STAGE_NAMES, apply_improvements, refine_or_fallback, set_by_path

__all__ = ["RefinementPipeline", "STAGE_NAMES", "apply_improvements", "refine_or_fallback", "set_by_path"]
