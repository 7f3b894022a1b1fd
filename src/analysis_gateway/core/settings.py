from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite:///./analysis_gateway.db"

    # Security
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24

    # Assistants backend
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    ANALYSIS_ASSISTANTS: dict[str, str] = {
        "anamnese": "asst_QoRRQsecxfFS1gqXi3sXvY0W",
        "diagnosis": "asst_Ij3sCQ2oFQmUSiKYiHQLesVL",
        "treatment": "asst_fOJd3utMyRemVKNBZC4XDntK",
    }
    POLL_INTERVAL_SECONDS: float = 1.0
    JOB_DEADLINE_SECONDS: float = 300.0
    JOB_MAX_POLLS: int | None = None
    UPSTREAM_TIMEOUT_SECONDS: float = 30.0

    # Identity provider
    IDENTITY_API_URL: str = "https://mediswiss.ai/wp-json/custom/v1"
    IDENTITY_RANDOM_PARAM: str = ""

    # Plans
    SUBSCRIPTION_API_KEY: str = ""
    PLAN_PERIOD_DAYS: int = 30

    # HTTP
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    @property
    def analysis_types(self) -> frozenset[str]:
        return frozenset(k.lower() for k in self.ANALYSIS_ASSISTANTS)


settings = Settings()
