import os
from dataclasses import dataclass

from promptgen.config import load_config


_file = load_config(os.getenv("PROMPTGEN_CONFIG", "config.toml"))


@dataclass
class Settings:
    # Runtime
    app_name: str = "prompt-generator-api"
    env: str = os.getenv("ENV", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "info")

    # Supabase
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    # Gemini API
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY") or _file.api_key
    gemini_model: str = os.getenv("GEMINI_MODEL") or _file.model
    gemini_timeout: int = int(os.getenv("GEMINI_TIMEOUT") or _file.timeout)

    # Saved prompt list
    store_backend: str | None = os.getenv("STORE_BACKEND") or _file.store_backend
    store_path: str = os.getenv("STORE_PATH") or _file.store_path
    store_key: str = _file.store_key

    def resolved_store_backend(self) -> str:
        if self.store_backend:
            return self.store_backend.lower()
        return "supabase" if self.supabase_url and self.supabase_service_role_key else "file"


settings = Settings()
