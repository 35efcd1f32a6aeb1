# revparty/agents/validator.py

from numbers import Real
from typing import Any, Dict, List, Tuple

from ..utils.schemas import ConfidenceFactor

# -------------------------
# DEFAULTS
# -------------------------

DEFAULTS = {
    "director_min_keys": 35,
    "hero_min_entry_duration": 2.5,   # seconds
    "director_penalty": 10,
    "conflict_penalty": 5,
    "duration_penalty": 3,
}


def _number(value: Any):
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    return value


class ValidatorAgent:
    """
    Stage 6: deterministic confidence score for a scene list.

    Starts at 100 and deducts per finding:
    - incomplete director config (per scene)
    - parallax combined with scale-on-scroll (per scene)
    - hero entry duration below the minimum (first scene only)
    """

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}
        thresh = self.config.get("refinement", {})

        self.logger = None  # attached by the pipeline

        self.director_min_keys = thresh.get("director_min_keys", DEFAULTS["director_min_keys"])
        self.hero_min_entry_duration = thresh.get("hero_min_entry_duration", DEFAULTS["hero_min_entry_duration"])
        self.director_penalty = thresh.get("director_penalty", DEFAULTS["director_penalty"])
        self.conflict_penalty = thresh.get("conflict_penalty", DEFAULTS["conflict_penalty"])
        self.duration_penalty = thresh.get("duration_penalty", DEFAULTS["duration_penalty"])

    # --------------------------------------------------------
    def _director(self, scene: Any) -> Dict[str, Any]:
        director = scene.get("director") if isinstance(scene, dict) else None
        return director if isinstance(director, dict) else {}

    def validate(self, scenes: List[Dict[str, Any]]) -> Tuple[int, List[ConfidenceFactor]]:
        factors: List[ConfidenceFactor] = []
        total = 100

        # 1. director completeness
        for i, scene in enumerate(scenes):
            if len(self._director(scene)) < self.director_min_keys:
                factors.append(ConfidenceFactor(
                    category="Director Config Completeness",
                    score=70,
                    severity="CRITICAL",
                    issues=[f"Scene {i} missing director fields"],
                ))
                total -= self.director_penalty

        # 2. animation conflicts
        for i, scene in enumerate(scenes):
            d = self._director(scene)
            parallax = _number(d.get("parallaxIntensity"))
            if parallax is not None and parallax > 0 and d.get("scaleOnScroll"):
                factors.append(ConfidenceFactor(
                    category="Animation Conflicts",
                    score=80,
                    severity="WARNING",
                    issues=[f"Scene {i} has parallax + scaleOnScroll conflict"],
                ))
                total -= self.conflict_penalty

        # 3. hero entry duration
        if scenes:
            entry = _number(self._director(scenes[0]).get("entryDuration"))
            if entry is not None and entry < self.hero_min_entry_duration:
                factors.append(ConfidenceFactor(
                    category="Duration Thresholds",
                    score=85,
                    severity="INFO",
                    issues=[f"Hero scene entry duration < {self.hero_min_entry_duration}s"],
                ))
                total -= self.duration_penalty

        score = max(0, min(100, total))

        if self.logger:
            self.logger.info(f"ValidatorAgent: confidence {score}% from {len(factors)} findings")

        return score, factors
