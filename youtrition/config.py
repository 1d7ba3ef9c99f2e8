"""
Runtime settings read from the environment.

Values come from environment variables, with a ``.env`` file loaded first
when present. Client connection details are never hardcoded.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MODEL = "claude-sonnet-4-20250514"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Application settings."""
    db_path: str = "data/youtrition.db"
    anthropic_api_key: Optional[str] = None
    use_null_llm: bool = False
    model: str = DEFAULT_MODEL
    llm_debug_dir: Optional[str] = None
    secret_key: str = "dev-secret-key-change-in-production"
    debug: bool = False
    log_dir: str = "logs"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            db_path=os.environ.get("YOUTRITION_DB_PATH", cls.db_path),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY") or None,
            use_null_llm=_env_flag("USE_NULL_LLM"),
            model=os.environ.get("YOUTRITION_MODEL", DEFAULT_MODEL),
            llm_debug_dir=os.environ.get("LLM_DEBUG_DIR") or None,
            secret_key=os.environ.get("FLASK_SECRET_KEY", cls.secret_key),
            debug=_env_flag("DEBUG"),
            log_dir=os.environ.get("LOG_DIR", cls.log_dir),
        )
