# revparty/utils/llm.py

import os
import time
from typing import Dict, Any, Optional

import google.generativeai as genai


class LLMClient:
    """
    Gemini wrapper used by the refinement agents.
    - Handles API config
    - Per-request timeout and JSON response mode
    - Retry with linear backoff
    - Logs prompts/responses if logger is attached
    """

    def __init__(
        self,
        provider: str = "gemini",
        model: str = "gemini-2.0-flash",
        api_key: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 8192,
        timeout: float = 60.0,
    ):
        self.provider = provider
        self.model_name = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.logger = None  # caller attaches logger

        api_key = (
            api_key
            or os.environ.get("GEMINI_API_KEY")
            or os.environ.get("GENAI_API_KEY")
        )

        if not api_key:
            raise RuntimeError("Gemini API key missing. Set GEMINI_API_KEY environment variable.")

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(self.model_name)

    @classmethod
    def from_config(cls, llm_cfg: Dict[str, Any]) -> "LLMClient":
        return cls(
            provider=llm_cfg.get("provider", "gemini"),
            model=llm_cfg.get("model", "gemini-2.0-flash"),
            temperature=llm_cfg.get("temperature", 0.2),
            max_tokens=llm_cfg.get("max_tokens", 8192),
            timeout=llm_cfg.get("timeout_seconds", 60.0),
        )

    # -----------------------------------------------------------
    # Core LLM call (Gemini generate_content)
    # -----------------------------------------------------------
    def generate_text(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_mime_type: Optional[str] = None,
    ) -> Dict[str, Any]:

        generation_config: Dict[str, Any] = {
            "temperature": self.temperature if temperature is None else temperature,
            "max_output_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }
        if response_mime_type:
            generation_config["response_mime_type"] = response_mime_type

        if self.logger:
            self.logger.debug(f"[LLM] Prompt:\n{prompt[:1500]}")

        try:
            response = self.model.generate_content(
                contents=[{"role": "user", "parts": [prompt]}],
                generation_config=generation_config,
                request_options={"timeout": self.timeout},
            )
        except Exception as e:
            if self.logger:
                self.logger.error(f"[LLM] ERROR during generate_content: {e}")
            raise

        text = response.text if hasattr(response, "text") else ""

        if self.logger:
            snippet = text[:1000].replace("\n", " ")
            self.logger.debug(f"[LLM] Response:\n{snippet}")

        usage = {}
        try:
            usage = {
                "input_tokens": response.usage_metadata.prompt_token_count,
                "output_tokens": response.usage_metadata.candidates_token_count,
                "total_tokens": response.usage_metadata.total_token_count,
            }
            if self.logger:
                self.logger.info(f"[LLM] Token usage: {usage}")
        except AttributeError:
            if self.logger:
                self.logger.warning("[LLM] Could not extract token usage metadata")

        return {
            "text": text,
            "raw": response,
            "usage": usage,
        }

    # -----------------------------------------------------------
    # Safe wrapper (Retries + backoff)
    # -----------------------------------------------------------
    def safe_generate(
        self,
        prompt: str,
        retries: int = 2,
        backoff: float = 1.0,
        **kwargs,
    ) -> Dict[str, Any]:

        last_exc = None

        for attempt in range(retries + 1):
            try:
                if self.logger:
                    self.logger.info(f"[LLM] Attempt {attempt+1}/{retries+1}")

                return self.generate_text(prompt, **kwargs)

            except Exception as e:
                last_exc = e
                if self.logger:
                    self.logger.error(f"[LLM] Attempt {attempt+1} failed: {e}")

                if attempt < retries:
                    time.sleep(backoff * (1 + attempt))

        if self.logger:
            self.logger.critical(f"[LLM] FAILED after {retries+1} attempts: {last_exc}")

        raise last_exc
