"""
Application configuration.
All settings are loaded from environment variables (or a local .env file).
Every value has a default so the core can run without any configuration;
the Gemini adapter reports itself unavailable until GEMINI_API_KEY is set.
"""
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"

    # ===========================================
    # IMAGE GENERATION - PROVIDER SELECTION
    # ===========================================
    image_provider: str = "gemini"

    # ===========================================
    # GOOGLE GEMINI (Provider: gemini)
    # ===========================================
    gemini_api_key: str = ""  # Get from https://aistudio.google.com/apikey
    gemini_api_endpoint: str = "https://generativelanguage.googleapis.com"
    gemini_image_model: str = "gemini-2.5-flash-image-preview"
    gemini_timeout: float = 120.0
    # SafetySettings for generateContent (JSON array of {category, threshold}, or empty)
    gemini_safety_settings: str = ""

    # ===========================================
    # REQUEST VALIDATION
    # ===========================================
    prompt_min_length: int = 1
    prompt_max_length: int = 1000
    allow_dms: bool = True
    max_image_bytes: int = 25 * 1024 * 1024

    # ===========================================
    # REGENERATION (retry policy)
    # ===========================================
    regenerate_max_retries: int = 3
    regenerate_enable_auto_retry: bool = True
    # Comma-separated markers matched case-insensitively against failure messages
    regenerate_auto_retry_error_types: str = (
        "timeout,network,rate_limit,rate limit,service_unavailable,internal_error"
    )
    regenerate_retry_delay_ms: int = 1000

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("regenerate_auto_retry_error_types")
    @classmethod
    def normalize_error_types(cls, v: str) -> str:
        """Store as comma-separated string, parse when needed."""
        return ",".join(part.strip() for part in v.split(",") if part.strip())

    @field_validator("regenerate_max_retries", "regenerate_retry_delay_ms", "max_image_bytes")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.strip().upper() or "INFO"

    @model_validator(mode="after")
    def check_prompt_bounds(self) -> "Settings":
        if self.prompt_min_length < 0:
            raise ValueError("prompt_min_length must be >= 0")
        if self.prompt_min_length > self.prompt_max_length:
            raise ValueError("prompt_min_length cannot exceed prompt_max_length")
        return self

    @property
    def auto_retry_error_types_list(self) -> list[str]:
        """Get retry markers as a list."""
        return [t for t in self.regenerate_auto_retry_error_types.split(",") if t]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
