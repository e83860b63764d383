"""
Configuration settings for the server.
Environment variables (and a local .env file) override defaults.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    """Server configuration"""

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # empty: stdout only

    # CORS
    CORS_ORIGINS: List[str] = field(default_factory=lambda: ["*"])

    # Page assets
    PUBLIC_DIR: str = str(Path(__file__).resolve().parent / "public")

    # Where the page's API client sends prompts; empty means this app, in-process
    API_BASE_URL: str = ""

    # Remote completion service
    OPENAI_API_KEY: str = ""
    COMPLETION_URL: str = "https://api.openai.com/v1/completions"
    COMPLETION_MODEL: str = "text-davinci-003"
    COMPLETION_MAX_TOKENS: int = 1000
    COMPLETION_TEMPERATURE: float = 0.0
    COMPLETION_TIMEOUT: float = 60.0  # seconds

    # Page sessions
    SESSION_MAX_AGE: int = 60 * 15  # seconds

    def __post_init__(self):
        """Load from environment variables"""
        for key in self.__dataclass_fields__:
            env_value = os.getenv(key)
            if env_value is not None:
                field_type = self.__dataclass_fields__[key].type
                if field_type == bool:
                    setattr(self, key, env_value.lower() in ("true", "1", "yes"))
                elif field_type == int:
                    setattr(self, key, int(env_value))
                elif field_type == float:
                    setattr(self, key, float(env_value))
                elif field_type == List[str]:
                    setattr(self, key, env_value.split(","))
                else:
                    setattr(self, key, env_value)


# Global settings instance
settings = Settings()
