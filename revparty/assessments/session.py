# revparty/assessments/session.py

import uuid
from typing import Optional

from ..utils.browser import KeyValueStore

SESSION_KEY_PREFIX = "assessment_session_"


def session_key(config_slug: str) -> str:
    return f"{SESSION_KEY_PREFIX}{config_slug}"


def get_session_id(store: KeyValueStore, config_slug: str) -> Optional[str]:
    return store.get(session_key(config_slug))


def get_or_create_session_id(store: KeyValueStore, config_slug: str) -> str:
    session_id = store.get(session_key(config_slug))
    if not session_id:
        session_id = str(uuid.uuid4())
        store.set(session_key(config_slug), session_id)
    return session_id


def clear_session_id(store: KeyValueStore, config_slug: str) -> None:
    store.remove(session_key(config_slug))
