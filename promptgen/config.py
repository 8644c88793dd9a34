import os
from dataclasses import dataclass
from typing import Optional

try:
    import tomllib  # Python 3.11+
except Exception:  # pragma: no cover
    import tomli as tomllib  # type: ignore


DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_STORE_KEY = "saved-prompts"


@dataclass
class PromptgenConfig:
    api_key: Optional[str]
    model: str = DEFAULT_MODEL
    timeout: int = 60
    store_backend: Optional[str] = None
    store_path: str = "saved_prompts.json"
    store_key: str = DEFAULT_STORE_KEY


def load_config(path: str = "config.toml") -> PromptgenConfig:
    data = {}
    if os.path.exists(path):
        with open(path, "rb") as f:
            data = tomllib.load(f)

    gemini = data.get("gemini", {})
    store = data.get("store", {})

    # Prefer config value; fallback to env GEMINI_API_KEY
    api_key = gemini.get("api_key") or os.environ.get("GEMINI_API_KEY")
    model = gemini.get("model") or DEFAULT_MODEL
    timeout = int(gemini.get("timeout", 60))

    return PromptgenConfig(
        api_key=api_key,
        model=model,
        timeout=timeout,
        store_backend=store.get("backend"),
        store_path=store.get("path", "saved_prompts.json"),
        store_key=store.get("key", DEFAULT_STORE_KEY),
    )
