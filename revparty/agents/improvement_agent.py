# revparty/agents/improvement_agent.py

import json
from typing import List

from ..utils.config import read_prompt
from ..utils.llm import LLMClient
from ..utils.schema_validator import validate_llm_array
from ..utils.schemas import AuditIssue, Improvement


class ImprovementAgent:
    def __init__(self, llm_client: LLMClient,
                 prompt_path: str = "prompts/improvements.md",
                 retries: int = 2,
                 max_improvements: int = 10):
        self.llm = llm_client
        self.logger = getattr(llm_client, "logger", None)
        self.retries = retries
        self.max_improvements = max_improvements
        self.template = read_prompt(prompt_path)

    def _build_prompt(self, issues: List[AuditIssue]) -> str:
        payload = [i.model_dump(by_alias=True) for i in issues]
        prompt = "Given these issues:\n" + json.dumps(payload, indent=2)
        prompt += f"\n\nGenerate {self.max_improvements} specific improvements to fix them.\n\n"
        prompt += self.template
        return prompt

    def improve(self, issues: List[AuditIssue]) -> List[Improvement]:
        """Stage 3: LLM-proposed field changes for the audited issues."""
        resp = self.llm.safe_generate(
            self._build_prompt(issues),
            retries=self.retries,
            response_mime_type="application/json",
        )
        improvements = validate_llm_array(resp.get("text", ""), Improvement, logger=self.logger)

        if self.logger:
            auto = sum(1 for i in improvements if i.auto_applyable)
            self.logger.info(f"ImprovementAgent: {len(improvements)} improvements ({auto} auto-applyable).")

        return improvements
