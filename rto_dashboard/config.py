from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Compliance API
    compliance_api_url: str = "http://localhost:3000"
    compliance_api_token: str = ""
    compliance_api_email: str = ""
    compliance_api_password: str = ""

    # AI sentiment analysis
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    ai_monthly_limit_usd: float = Field(default=10.0, ge=0)

    # Langfuse
    langfuse_secret_key: str = ""
    langfuse_public_key: str = ""
    langfuse_host: str = "https://us.cloud.langfuse.com"

    # Monitoring
    metrics_max_samples: int = Field(default=10_000, ge=1)
    error_status_threshold: int = Field(default=500, ge=100, le=599)
    slow_request_ms: int = Field(default=2000, ge=0)
    alert_error_rate_percent: float = 5.0
    alert_p95_ms: float = 2000.0
    alert_memory_percent: float = 90.0
    alert_job_failure_percent: float = 10.0

    # Background jobs
    scheduler_enabled: bool = False
    scheduler_timezone: str = "Australia/Sydney"
    feedback_analysis_cron: str = "0 1 * * *"

    # Service
    log_level: str = "INFO"
    dashboard_api_key: str = ""  # If empty, falls back to compliance_api_token


settings = Settings()
