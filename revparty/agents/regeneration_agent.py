# revparty/agents/regeneration_agent.py

import copy
import json
from typing import Any, Dict, List

from ..utils.config import read_prompt
from ..utils.llm import LLMClient
from ..utils.parse_utils import extract_json_from_text
from ..utils.schemas import AuditIssue


def critical_scene_indexes(issues: List[AuditIssue], scene_count: int) -> List[int]:
    """Distinct in-range scene indexes named by CRITICAL issues, in first-seen order."""
    seen: List[int] = []
    for issue in issues:
        if issue.severity == "CRITICAL" and 0 <= issue.scene_index < scene_count and issue.scene_index not in seen:
            seen.append(issue.scene_index)
    return seen


class RegenerationAgent:
    """Stage 5: regenerates only the scenes flagged CRITICAL by the audit."""

    def __init__(self, llm_client: LLMClient,
                 prompt_path: str = "prompts/regenerate.md",
                 retries: int = 2):
        self.llm = llm_client
        self.logger = getattr(llm_client, "logger", None)
        self.retries = retries
        self.template = read_prompt(prompt_path)

    def _build_prompt(self, scene: Dict[str, Any], issues: List[AuditIssue]) -> str:
        prompt = self.template
        prompt += "\n\nSCENE:\n" + json.dumps(scene, indent=2, default=str)
        prompt += "\n\nISSUES:\n" + json.dumps([i.model_dump(by_alias=True) for i in issues], indent=2)
        return prompt

    def regenerate(self, scenes: List[Dict[str, Any]], issues: List[AuditIssue]) -> List[Dict[str, Any]]:
        targets = critical_scene_indexes(issues, len(scenes))
        if not targets:
            if self.logger:
                self.logger.info("RegenerationAgent: no critical issues, scenes unchanged.")
            return scenes

        if self.logger:
            self.logger.info(f"RegenerationAgent: regenerating scenes {targets}")

        updated = copy.deepcopy(scenes)
        for index in targets:
            scene_issues = [i for i in issues if i.scene_index == index and i.severity == "CRITICAL"]
            resp = self.llm.safe_generate(
                self._build_prompt(updated[index], scene_issues),
                retries=self.retries,
                response_mime_type="application/json",
            )
            parsed, err = extract_json_from_text(resp.get("text", ""))
            if isinstance(parsed, dict):
                updated[index] = parsed
            elif self.logger:
                self.logger.warning(f"RegenerationAgent: scene {index} kept, response unusable ({err or 'not an object'})")

        return updated
