# revparty/agents/layout_agent.py

import json
from typing import Any, Dict

from ..utils.config import read_prompt
from ..utils.llm import LLMClient
from ..utils.parse_utils import extract_json_from_text


class LayoutAgent:
    """Stage 1 default: brand + draft -> {"sections": [scene, ...]}."""

    def __init__(self, llm_client: LLMClient,
                 prompt_path: str = "prompts/layout.md",
                 retries: int = 2):
        self.llm = llm_client
        self.logger = getattr(llm_client, "logger", None)
        self.retries = retries
        self.template = read_prompt(prompt_path)

    def _build_prompt(self, brand: Dict[str, Any], draft: Dict[str, Any]) -> str:
        prompt = self.template
        prompt += "\n\nBRAND:\n" + json.dumps(brand, indent=2, default=str)
        prompt += "\n\nDRAFT:\n" + json.dumps(draft, indent=2, default=str)
        prompt += "\n\nReturn JSON only."
        return prompt

    def generate(self, brand: Dict[str, Any], draft: Dict[str, Any]) -> Dict[str, Any]:
        if self.logger:
            self.logger.info("LayoutAgent: generating initial layout.")

        resp = self.llm.safe_generate(
            self._build_prompt(brand, draft),
            retries=self.retries,
            response_mime_type="application/json",
        )
        parsed, err = extract_json_from_text(resp.get("text", ""))

        if isinstance(parsed, list):
            return {"sections": parsed}
        if not isinstance(parsed, dict):
            if self.logger:
                self.logger.warning(f"LayoutAgent: no layout in LLM output ({err}).")
            return {"sections": []}
        return parsed
