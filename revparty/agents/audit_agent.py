# revparty/agents/audit_agent.py

import json
from typing import Any, Dict, List

from ..utils.config import read_prompt
from ..utils.llm import LLMClient
from ..utils.schema_validator import validate_llm_array
from ..utils.schemas import AuditIssue


class AuditAgent:
    """
    Stage 2: asks the LLM to audit every scene and returns the issues it found.
    A response that is not a JSON array counts as no issues.
    """

    def __init__(self, llm_client: LLMClient,
                 prompt_path: str = "prompts/audit.md",
                 retries: int = 2):
        self.llm = llm_client
        self.logger = getattr(llm_client, "logger", None)
        self.retries = retries
        self.template = read_prompt(prompt_path)

    def _build_prompt(self, scenes: List[Dict[str, Any]]) -> str:
        prompt = f"Analyze these {len(scenes)} portfolio scenes for inconsistencies:\n\n"
        prompt += json.dumps(scenes, indent=2, default=str)
        prompt += "\n\n" + self.template
        return prompt

    def audit(self, scenes: List[Dict[str, Any]]) -> List[AuditIssue]:
        resp = self.llm.safe_generate(
            self._build_prompt(scenes),
            retries=self.retries,
            response_mime_type="application/json",
        )
        issues = validate_llm_array(resp.get("text", ""), AuditIssue, logger=self.logger)

        if self.logger:
            critical = sum(1 for i in issues if i.severity == "CRITICAL")
            self.logger.info(f"AuditAgent: {len(issues)} issues ({critical} critical).")

        return issues
