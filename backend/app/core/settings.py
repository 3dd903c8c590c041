import os


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    def __init__(self):
        self.app_name = os.getenv("APP_NAME", "Ledgerly")
        self.api_version = "1.0.0"
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./ledgerly.db")
        self.cors_origins = _env_list("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")

        # "jwt" verifies session credentials locally; "supabase" asks Supabase Auth.
        self.auth_backend = os.getenv("AUTH_BACKEND", "jwt")
        self.session_jwt_secret = os.getenv("SESSION_JWT_SECRET", "CHANGE_ME")
        self.session_jwt_algorithm = os.getenv("SESSION_JWT_ALGORITHM", "HS256")
        self.session_jwt_audience = os.getenv("SESSION_JWT_AUDIENCE", "authenticated")
        self.session_token_expire_minutes = int(os.getenv("SESSION_TOKEN_EXPIRE_MINUTES", "60"))

        self.supabase_url = os.getenv("SUPABASE_URL", "")
        self.supabase_anon_key = os.getenv("SUPABASE_ANON_KEY", "")
        self.supabase_service_role_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
        self.storage_bucket = os.getenv("STORAGE_BUCKET", "facturas")

        self.invoice_number_prefix = os.getenv("INVOICE_NUMBER_PREFIX", "000")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached Settings so the next call re-reads the environment."""
    global _settings_instance
    _settings_instance = None
