"""
Application configuration settings.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=[".env"], case_sensitive=False, extra="ignore"
    )

    # Application
    app_name: str = Field("SlideReel API", alias="APP_NAME")
    environment: str = Field("development", alias="ENVIRONMENT")
    debug: bool = Field(False, alias="DEBUG")
    disable_auth: bool = Field(False, alias="DISABLE_AUTH")

    # Database
    database_url: str = Field(
        "sqlite+aiosqlite:///./slidereel.db", alias="DATABASE_URL"
    )
    debug_sql: bool = Field(False, alias="DATABASE_ECHO")

    # Redis (render progress pub/sub)
    redis_url: str = Field("redis://localhost:6379", alias="REDIS_URL")

    # JWT Authentication (tokens are issued by the identity provider)
    jwt_secret_key: str = Field(
        "dev-secret-key-change-in-production", alias="JWT_SECRET_KEY"
    )
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    # Supabase access tokens carry aud="authenticated"; empty disables the check.
    jwt_audience: str = Field("authenticated", alias="JWT_AUDIENCE")

    # OpenAI/LLM
    openai_api_key: str = Field("dummy-key-for-test", alias="OPENAI_API_KEY")
    planning_model: str = Field("gpt-5", alias="OPENAI_PLANNING_MODEL")
    generation_model: str = Field("gpt-5", alias="OPENAI_GENERATION_MODEL")
    llm_temperature: float = Field(0.7, alias="OPENAI_TEMPERATURE")
    llm_max_tokens: int = Field(4000, alias="OPENAI_MAX_TOKENS")

    # Generation protocol
    generation_max_tool_rounds: int = Field(6, alias="GENERATION_MAX_TOOL_ROUNDS")
    generation_max_retries: int = Field(2, alias="GENERATION_MAX_RETRIES")
    generation_max_slides: int = Field(20, alias="GENERATION_MAX_SLIDES")
    generation_default_slides: int = Field(3, alias="GENERATION_DEFAULT_SLIDES")

    # Canvas geometry
    canvas_width: int = Field(300, alias="CANVAS_WIDTH")
    canvas_safe_margin: int = Field(40, alias="CANVAS_SAFE_MARGIN")
    render_target_width: int = Field(1080, alias="RENDER_TARGET_WIDTH")

    # Supabase storage
    supabase_url: str = Field("", alias="SUPABASE_URL")
    supabase_key: str = Field("", alias="SUPABASE_SERVICE_KEY")
    user_images_bucket: str = Field("user-images", alias="USER_IMAGES_BUCKET")
    public_images_bucket: str = Field("public-images", alias="PUBLIC_IMAGES_BUCKET")
    rendered_slides_bucket: str = Field(
        "rendered-slides", alias="RENDERED_SLIDES_BUCKET"
    )

    # CORS
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    # Observability
    prometheus_metrics_enabled: bool = Field(True, alias="PROMETHEUS_METRICS_ENABLED")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_format: str = Field("json", alias="LOG_FORMAT")

    def get_cors_origins(self) -> list[str]:
        """Parse CORS origins from string."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get settings instance (useful for dependency injection)."""
    return Settings()
