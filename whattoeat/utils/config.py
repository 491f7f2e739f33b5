"""Configuration management for What To Eat.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # TheMealDB base URL (public test key "1" is part of the path)
        self.MEALDB_BASE_URL: str = os.getenv(
            "MEALDB_BASE_URL", "https://www.themealdb.com/api/json/v1/1"
        ).rstrip("/")
        # Total timeout (seconds) for a single outbound request to TheMealDB
        self.REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
        # Number of recipes returned when the caller does not ask for a count
        self.DEFAULT_LIMIT: int = int(os.getenv("DEFAULT_LIMIT", "5"))
        # Largest number of recipes a single request may ask for
        self.MAX_LIMIT: int = int(os.getenv("MAX_LIMIT", "10"))
        # Random fallback: unique recipes to aim for, and how many random.php calls to spend on it
        self.RANDOM_TARGET: int = int(os.getenv("RANDOM_TARGET", "10"))
        self.RANDOM_MAX_ATTEMPTS: int = int(os.getenv("RANDOM_MAX_ATTEMPTS", "20"))

        # Gemini API key: optional. Without it keyword expansion and translation are passthrough.
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Chat agent model
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # Model used for keyword expansion and translation (cheap, short prompts)
        self.LLM_MODEL: str = os.getenv("LLM_MODEL", "gemini-2.5-flash-lite")
        # Upper bound (seconds) for a single expansion/translation completion
        self.LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "20"))
        # Temperature for expansion/translation completions
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.3"))

        # Keyword expansion: widen recall with related terms for non-Latin queries
        self.ENABLE_KEYWORD_EXPANSION: bool = _env_bool("ENABLE_KEYWORD_EXPANSION", "true")
        self.MAX_KEYWORD_ALTERNATIVES: int = int(os.getenv("MAX_KEYWORD_ALTERNATIVES", "3"))
        # Translation of recipe text into the caller's language
        self.ENABLE_TRANSLATION: bool = _env_bool("ENABLE_TRANSLATION", "true")
        # Recipes translated at the same time
        self.TRANSLATION_CONCURRENCY: int = int(os.getenv("TRANSLATION_CONCURRENCY", "3"))
        # Entries kept per memo cache (expansion, translation)
        self.CACHE_MAX_ENTRIES: int = int(os.getenv("CACHE_MAX_ENTRIES", "1024"))

        # Language used for HTTP responses when the request does not specify one
        self.DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "zh-CN")
        # Server Port
        self.PORT: int = int(os.getenv("PORT", "7777"))
        # Comma-separated allowed CORS origins ("*" for any)
        self.CORS_ORIGINS: list[str] = [
            origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
        ]
        # Maximum recipe tool calls the chat agent may make per request
        self.TOOL_CALL_LIMIT: int = int(os.getenv("TOOL_CALL_LIMIT", "3"))

    @property
    def llm_enabled(self) -> bool:
        """Whether a Gemini key is configured for the optional LLM services."""
        return bool(self.GEMINI_API_KEY)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a value is outside its accepted range.
        """
        if not self.MEALDB_BASE_URL.startswith(("http://", "https://")):
            raise ValueError(f"MEALDB_BASE_URL must be an http(s) URL, got: {self.MEALDB_BASE_URL}")
        if self.REQUEST_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"REQUEST_TIMEOUT_SECONDS must be positive, got: {self.REQUEST_TIMEOUT_SECONDS}"
            )
        if not (1 <= self.MAX_LIMIT <= 10):
            raise ValueError(f"MAX_LIMIT must be between 1 and 10, got: {self.MAX_LIMIT}")
        if not (1 <= self.DEFAULT_LIMIT <= self.MAX_LIMIT):
            raise ValueError(
                f"DEFAULT_LIMIT must be between 1 and MAX_LIMIT ({self.MAX_LIMIT}), got: {self.DEFAULT_LIMIT}"
            )
        if self.RANDOM_TARGET < 1:
            raise ValueError(f"RANDOM_TARGET must be at least 1, got: {self.RANDOM_TARGET}")
        if self.RANDOM_MAX_ATTEMPTS < self.RANDOM_TARGET:
            raise ValueError(
                f"RANDOM_MAX_ATTEMPTS must be at least RANDOM_TARGET ({self.RANDOM_TARGET}), "
                f"got: {self.RANDOM_MAX_ATTEMPTS}"
            )
        if not (0 <= self.MAX_KEYWORD_ALTERNATIVES <= 3):
            raise ValueError(
                f"MAX_KEYWORD_ALTERNATIVES must be between 0 and 3, got: {self.MAX_KEYWORD_ALTERNATIVES}"
            )
        if self.TRANSLATION_CONCURRENCY < 1:
            raise ValueError(
                f"TRANSLATION_CONCURRENCY must be at least 1, got: {self.TRANSLATION_CONCURRENCY}"
            )
        if self.CACHE_MAX_ENTRIES < 0:
            raise ValueError(f"CACHE_MAX_ENTRIES must not be negative, got: {self.CACHE_MAX_ENTRIES}")
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}")
        if self.DEFAULT_LANGUAGE not in ("zh-CN", "en-US"):
            raise ValueError(
                f"DEFAULT_LANGUAGE must be 'zh-CN' or 'en-US', got: {self.DEFAULT_LANGUAGE}"
            )
        if self.TOOL_CALL_LIMIT < 1:
            raise ValueError(f"TOOL_CALL_LIMIT must be at least 1, got: {self.TOOL_CALL_LIMIT}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
