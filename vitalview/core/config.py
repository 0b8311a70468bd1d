from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    PROJECT_NAME: str = "VitalView"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = ""  # local, dev, prod (from .env)

    # MongoDB (from .env)
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "vitalview"

    # CORS (from .env, comma-separated)
    BACKEND_CORS_ORIGINS: List[str] = []

    # Logging & Sentry
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str | None = None

    # Primary recognition provider (hosted vision-language model)
    HF_API_KEY: str | None = None
    HF_INFERENCE_URL: str = "https://api-inference.huggingface.co/models"
    PRIMARY_VLM_MODEL: str = "meta-llama/Llama-3.2-11B-Vision-Instruct"
    PRIMARY_VLM_MAX_NEW_TOKENS: int = 500
    PRIMARY_VLM_TEMPERATURE: float = 0.1

    # Secondary provider B (local vision model served by Ollama)
    OLLAMA_HOST: str = "http://localhost:11434"
    SECONDARY_VLM_MODEL: str = "minicpm-v"

    # Secondary provider A (Tesseract OCR over region crops)
    TESSERACT_CMD: str | None = None
    ROI_WINDOW_WIDTH: float = 0.2
    ROI_WINDOW_HEIGHT: float = 0.12

    PROVIDER_TIMEOUT_SECONDS: float = 60.0

    # Alerts
    ALERT_RULES_PATH: str | None = None
    ALERT_ON_RECOVERY: bool = False
    ALERT_STATE_CAPACITY: int = 10_000
    ALERT_RECIPIENTS: List[str] = ["nurse"]
    NOTIFY_WEBHOOK_URL: str | None = None
    NOTIFY_TIMEOUT_SECONDS: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


settings = Settings()
