from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    wa_verify_token: str = Field(
        default="",
        validation_alias=AliasChoices("WA_VERIFY_TOKEN", "WHATSAPP_VERIFY_TOKEN", "wa_verify_token"),
    )
    whatsapp_phone_number_id: str = ""
    whatsapp_access_token: str = ""
    whatsapp_api_base: str = "https://graph.facebook.com/v20.0"

    # Next.js host serving /api/mealplans/* and the account endpoints
    app_base_url: str = "http://localhost:3000"
    # Chat-completion proxy
    backend_url: str = "http://127.0.0.1:8000"

    redis_url: str = "redis://localhost:6379/0"
    session_ttl_seconds: int = 30 * 60
    dedup_ttl_seconds: int = 300

    calories_target: int = 2100
    http_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


settings = Settings()
