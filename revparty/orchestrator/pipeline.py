# revparty/orchestrator/pipeline.py

"""
6-stage refinement pipeline for generated portfolios.

Responsibilities:
- Stage 1: initial layout generation (injected generator)
- Stage 2: LLM self-audit
- Stage 3: LLM improvement proposals
- Stage 4: auto-apply of safe improvements
- Stage 5: regeneration of critical scenes only
- Stage 6: deterministic confidence score
- Record per-stage and total timings

Any stage raising aborts the run; the original exception reaches the caller.
"""

import copy
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..agents.audit_agent import AuditAgent
from ..agents.improvement_agent import ImprovementAgent
from ..agents.layout_agent import LayoutAgent
from ..agents.regeneration_agent import RegenerationAgent
from ..agents.validator import ValidatorAgent
from ..utils.config import DEFAULTS
from ..utils.llm import LLMClient
from ..utils.schema_validator import validate_scenes
from ..utils.schemas import AuditIssue, Improvement, RefinementResult

STAGE_NAMES = {
    1: "Stage 1: Initial Generation",
    2: "Stage 2: Self-Audit",
    3: "Stage 3: Generate Improvements",
    4: "Stage 4: Auto-Apply Fixes",
    5: "Stage 5: Final Regeneration",
    6: "Stage 6: Final Validation",
}

LayoutGenerator = Callable[[Dict[str, Any], Dict[str, Any]], Any]


def _step(target: Any, key: str) -> Any:
    if isinstance(target, list):
        return target[int(key)]
    return target[key]


def set_by_path(obj: Any, path: str, value: Any) -> None:
    """
    Overwrite the leaf at a dot path ("director.entryDuration", "items.0.src").
    Intermediate containers must already exist (KeyError/IndexError otherwise).
    """
    parts = path.split(".")
    target = obj
    for key in parts[:-1]:
        target = _step(target, key)

    leaf = parts[-1]
    if isinstance(target, list):
        target[int(leaf)] = value
    elif isinstance(target, dict):
        target[leaf] = value
    else:
        raise TypeError(f"Cannot set {leaf!r} on {type(target).__name__}")


def apply_improvements(scenes: List[Dict[str, Any]], improvements: List[Improvement],
                       logger=None) -> Tuple[List[Dict[str, Any]], int]:
    """Deep-copies `scenes` and applies every auto-applyable improvement. Returns (scenes, applied)."""
    updated = copy.deepcopy(scenes)
    applied = 0

    for imp in improvements:
        if not imp.auto_applyable:
            continue
        if not 0 <= imp.scene_index < len(updated):
            if logger:
                logger.warning(f"Skipping {imp.field}: scene {imp.scene_index} does not exist")
            continue
        try:
            set_by_path(updated[imp.scene_index], imp.field, imp.new_value)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            if logger:
                logger.warning(f"Skipping {imp.field} on scene {imp.scene_index}: {e!r}")
            continue

        applied += 1
        if logger:
            logger.info(f"  Applied: scene {imp.scene_index} {imp.field} = {imp.new_value}")

    return updated, applied


class RefinementPipeline:
    def __init__(
        self,
        llm_client: LLMClient,
        config: Optional[Dict[str, Any]] = None,
        layout_generator: Optional[LayoutGenerator] = None,
        logger=None,
    ):
        self.config = config or DEFAULTS
        self.llm = llm_client
        self.logger = logger or getattr(llm_client, "logger", None)

        prompts = self.config.get("prompts", DEFAULTS["prompts"])
        retries = self.config.get("llm", {}).get("retries", 2)
        refinement = self.config.get("refinement", {})

        self.audit_agent = AuditAgent(llm_client, prompt_path=prompts.get("audit", DEFAULTS["prompts"]["audit"]),
                                      retries=retries)
        self.improvement_agent = ImprovementAgent(
            llm_client,
            prompt_path=prompts.get("improvements", DEFAULTS["prompts"]["improvements"]),
            retries=retries,
            max_improvements=refinement.get("max_improvements", 10),
        )
        self.regeneration_agent = RegenerationAgent(
            llm_client, prompt_path=prompts.get("regenerate", DEFAULTS["prompts"]["regenerate"]), retries=retries
        )
        self.validator = ValidatorAgent(self.config)
        self.validator.logger = self.logger

        if layout_generator is None:
            layout_agent = LayoutAgent(llm_client, prompt_path=prompts.get("layout", DEFAULTS["prompts"]["layout"]),
                                       retries=retries)
            layout_generator = layout_agent.generate
        self.layout_generator = layout_generator

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------
    def stage1_initial_generation(self, brand: Dict[str, Any], draft: Dict[str, Any]) -> List[Dict[str, Any]]:
        layout = self.layout_generator(brand, draft)
        return validate_scenes(layout, logger=self.logger)

    def stage2_self_audit(self, scenes: List[Dict[str, Any]]) -> List[AuditIssue]:
        return self.audit_agent.audit(scenes)

    def stage3_generate_improvements(self, scenes: List[Dict[str, Any]],
                                     issues: List[AuditIssue]) -> List[Improvement]:
        return self.improvement_agent.improve(issues)

    def stage4_auto_apply_fixes(self, scenes: List[Dict[str, Any]],
                                improvements: List[Improvement]) -> List[Dict[str, Any]]:
        updated, applied = apply_improvements(scenes, improvements, logger=self.logger)
        if self.logger:
            self.logger.info(f"Applied {applied}/{len(improvements)} fixes")
        return updated

    def stage5_final_regeneration(self, scenes: List[Dict[str, Any]],
                                  issues: List[AuditIssue]) -> List[Dict[str, Any]]:
        return self.regeneration_agent.regenerate(scenes, issues)

    def stage6_final_validation(self, scenes: List[Dict[str, Any]]):
        return self.validator.validate(scenes)

    # -------------------------------------------------------------------------
    # Runner
    # -------------------------------------------------------------------------
    def _run_stage(self, number: int, timings: Dict[str, float], fn, *args):
        name = STAGE_NAMES[number]
        if self.logger:
            self.logger.info(f"[{number}/6] {name.split(': ', 1)[1]}...")

        start = time.perf_counter()
        try:
            out = fn(*args)
        except Exception:
            if self.logger:
                self.logger.exception(f"{name} failed; aborting refinement")
            raise

        timings[name] = time.perf_counter() - start
        if self.logger:
            self.logger.info(f"[{number}/6] complete in {timings[name]:.3f}s")
        return out

    def _refine(self, scenes: List[Dict[str, Any]], timings: Dict[str, float], started: float) -> RefinementResult:
        issues = self._run_stage(2, timings, self.stage2_self_audit, scenes)
        improvements = self._run_stage(3, timings, self.stage3_generate_improvements, scenes, issues)
        fixed = self._run_stage(4, timings, self.stage4_auto_apply_fixes, scenes, improvements)
        regenerated = self._run_stage(5, timings, self.stage5_final_regeneration, fixed, issues)
        score, factors = self._run_stage(6, timings, self.stage6_final_validation, regenerated)

        total = time.perf_counter() - started
        if self.logger:
            self.logger.info(f"Refinement complete in {total:.3f}s, confidence {score}%")

        return RefinementResult(
            scenes=regenerated,
            confidence_score=score,
            confidence_factors=factors,
            stage_timings=timings,
            total_time=total,
        )

    def execute(self, brand: Dict[str, Any], draft: Dict[str, Any]) -> RefinementResult:
        """All six stages from scratch."""
        started = time.perf_counter()
        timings: Dict[str, float] = {}

        if self.logger:
            self.logger.info("=== Starting 6-stage refinement ===")

        scenes = self._run_stage(1, timings, self.stage1_initial_generation, brand, draft)
        return self._refine(scenes, timings, started)

    def refine_v1_to_v2(self, initial_scenes: List[Dict[str, Any]]) -> RefinementResult:
        """Stages 2-6 over an already generated draft."""
        started = time.perf_counter()
        timings: Dict[str, float] = {}

        if self.logger:
            self.logger.info("=== Starting background refinement (stages 2-6) ===")

        scenes = validate_scenes(initial_scenes, logger=self.logger)
        return self._refine(scenes, timings, started)


def refine_or_fallback(pipeline: RefinementPipeline,
                       scenes: List[Dict[str, Any]]) -> Tuple[Optional[RefinementResult], List[Dict[str, Any]]]:
    """
    Background refinement with an explicit fallback: on any pipeline failure
    the unrefined draft is returned alongside None.
    """
    try:
        result = pipeline.refine_v1_to_v2(scenes)
    except Exception as e:
        if pipeline.logger:
            pipeline.logger.error(f"Refinement failed, keeping unrefined draft: {e}")
        return None, scenes
    return result, result.scenes
