from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///./blooddb.db"
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 3000

    allowed_origins: str = "http://localhost:3000"

    session_backend: str = "memory"
    session_ttl_hours: int = 24
    session_cookie_name: str = "blooddb.sid"
    # Client and API served from different origins: SameSite=None and Secure.
    cookie_cross_site: bool = False
    cookie_secure: bool = False

    password_hash_rounds: int = 29000


settings = Settings()
