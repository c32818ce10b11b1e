"""
Application-wide settings using pydantic-settings.
All runtime env access in clinscribe/ should go through this module.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_PATH = PROJECT_ROOT / ".env"

_GROQ_COMPAT_DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
_OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    LOG_DIR: str = "./logs"
    LOG_FILE_NAME: str = "clinscribe.debug.log"
    LOG_FILE_WHEN: str = "midnight"
    LOG_FILE_INTERVAL: int = 1
    LOG_FILE_BACKUP_COUNT: int = 7
    LOG_FILE_ENCODING: str = "utf-8"
    LOG_FILE_LEVEL: str = "DEBUG"

    # Hosted text generation
    GROQ_API_KEY: str = ""
    GROQ_BASE_URL: str = _GROQ_COMPAT_DEFAULT_BASE_URL
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = ""
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    TEXT_MODEL: str = "llama-3.3-70b-versatile"
    TEXT_TOP_P: float = 1.0

    # Runtime
    AGENT_LOG_TRUNCATE: int = 600

    # Risk prompt bounds
    RISK_TRANSCRIPTION_LIMIT: int = 1000
    RISK_NOTE_SECTION_LIMIT: int = 500
    RISK_HISTORY_LIMIT: int = 3

    # Patient chat bounds
    PATIENT_CHAT_VISIT_LIMIT: int = 10
    PATIENT_CHAT_TRANSCRIPTION_LIMIT: int = 3000
    PATIENT_CHAT_HISTORY_MESSAGES: int = 10

    # Database
    DB_PATH: str = "./data/clinscribe.db"

    # Pipeline-specific overrides
    CHAT_PROVIDER: str = ""
    CHAT_MODEL: str = ""

    RISK_PROVIDER: str = ""
    RISK_MODEL: str = ""

    EXTRACTOR_PROVIDER: str = ""
    EXTRACTOR_MODEL: str = ""

    NOTES_PROVIDER: str = ""
    NOTES_MODEL: str = ""

    model_config = SettingsConfigDict(
        env_file=ENV_PATH,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def _agent_value(self, agent_key: str, suffix: str) -> str:
        key = (agent_key or "").strip().upper()
        if not key:
            return ""
        return str(getattr(self, f"{key}_{suffix}", "") or "").strip()

    def get_agent_model(self, agent_key: str, default_model: str = "") -> str:
        return self._agent_value(agent_key, "MODEL") or default_model or self.TEXT_MODEL

    def get_agent_provider(self, agent_key: str) -> str:
        return self._agent_value(agent_key, "PROVIDER")

    def get_agent_api_key(self, agent_key: str) -> str:
        _ = agent_key
        return self.GROQ_API_KEY or self.OPENAI_API_KEY

    def get_agent_base_url(self, agent_key: str, provider_hint: str = "") -> str:
        """Endpoint that belongs to the key ``get_agent_api_key`` returns."""
        _ = agent_key
        hint = (provider_hint or "").strip().lower()
        if hint == "ollama":
            return self.OLLAMA_BASE_URL
        if not self.GROQ_API_KEY and self.OPENAI_API_KEY:
            return self.OPENAI_BASE_URL or _OPENAI_DEFAULT_BASE_URL
        return self.GROQ_BASE_URL or _GROQ_COMPAT_DEFAULT_BASE_URL

    def has_openai_like_creds(self, agent_key: str) -> bool:
        return bool(self.get_agent_api_key(agent_key))


settings = Settings()
