from pydantic_settings import BaseSettings, SettingsConfigDict

INSECURE_ADMIN_TOKEN = "changeme-admin-token"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://ruya:ruya@db:5432/ruya"
    APP_ENV: str = "development"

    # Single shared secret guarding every admin endpoint.
    # The fallback value is public; deployments must override it.
    ADMIN_TOKEN: str = INSECURE_ADMIN_TOKEN
    DEFAULT_INTERPRETER: str = "Kareem Fuad"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Upper bound for acquiring a connection and running a statement.
    STORE_TIMEOUT_SECONDS: float = 5.0

    RATE_LIMIT_WINDOW_SECONDS: float = 60.0
    RATE_LIMIT_MAX_SUBMISSIONS: int = 10
    RATE_LIMIT_MAX_KEYS: int = 500

    # X-Forwarded-For / X-Real-IP are client-settable. Keep this on only when
    # a reverse proxy in front of the app overwrites them.
    TRUST_PROXY_HEADERS: bool = True

    # Comma-separated, matched as lowercase substrings of the dream text.
    BLOCKED_TERMS: str = "spam,test,fake"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def blocked_terms_list(self) -> list[str]:
        return [t.strip().lower() for t in self.BLOCKED_TERMS.split(",") if t.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() == "development"

    @property
    def admin_token_is_insecure(self) -> bool:
        return self.ADMIN_TOKEN == INSECURE_ADMIN_TOKEN


settings = Settings()
