from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "extra": "ignore",
        "env_prefix": "",
        "case_sensitive": False,
    }

    # Temporal
    temporal_address: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_api_key: str | None = None
    temporal_task_queue: str = "markcraft-tasks"

    # Cloudflare R2
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket_name: str = "markcraft-logos"
    presigned_url_expiry_seconds: int = 3600

    # AI APIs
    anthropic_api_key: str = ""
    google_ai_api_key: str = ""
    image_model: str = "gemini-2.5-flash-image"
    vision_model: str = "claude-sonnet-4-5-20250929"
    refinement_model: str = "claude-haiku-4-5-20251001"

    # Logo pipeline
    logo_concurrency: int = 2
    logo_text_review: bool = False
    enable_ai_critic: bool = False

    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_file: str = ""
    use_mock_activities: bool = False


settings = Settings()
