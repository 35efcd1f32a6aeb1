# revparty/utils/config.py

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_TENANT_ID = "tnt_revenueparty_default"

# -------------------------
# DEFAULTS
# -------------------------

DEFAULTS: Dict[str, Any] = {
    "paths": {
        "logs_dir": "logs",
        "out_dir": "reports",
    },
    "prompts": {
        "layout": "prompts/layout.md",
        "audit": "prompts/audit.md",
        "improvements": "prompts/improvements.md",
        "regenerate": "prompts/regenerate.md",
    },
    "campaigns": {
        "base_url": "http://localhost:5000",
        "endpoint": "/api/public/campaigns",
        "stale_seconds": 300,
        "retain_seconds": 600,
        "timeout_seconds": 10.0,
        "tenant": {
            "strategy": "static",
            "default_tenant_id": DEFAULT_TENANT_ID,
            "subdomains": {},
        },
    },
    "assessments": {
        "base_url": "http://localhost:5000",
        "result_route": "/resources",
        "timeout_seconds": 10.0,
    },
    "llm": {
        "provider": "gemini",
        "model": "gemini-2.0-flash",
        "temperature": 0.2,
        "max_tokens": 8192,
        "timeout_seconds": 60.0,
        "retries": 2,
    },
    "refinement": {
        "director_min_keys": 35,
        "hero_min_entry_duration": 2.5,
        "director_penalty": 10,
        "conflict_penalty": 5,
        "duration_penalty": 3,
        "max_improvements": 10,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(config_path: Optional[str] = "config/config.yaml") -> Dict[str, Any]:
    """Load the YAML config and layer it over DEFAULTS. A missing file yields the defaults."""
    if not config_path or not Path(config_path).exists():
        return copy.deepcopy(DEFAULTS)

    with open(config_path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    return _merge(DEFAULTS, loaded)


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def read_prompt(prompt_path: str) -> str:
    """Read a prompt template; relative paths fall back to the project root."""
    path = Path(prompt_path)
    if not path.is_absolute() and not path.exists():
        path = PROJECT_ROOT / path
    with open(path, "r", encoding="utf-8") as f:
        return f.read()
