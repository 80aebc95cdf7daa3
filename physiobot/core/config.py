from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Physiobot Assessment API"
    env: str = "dev"
    api_prefix: str = ""
    log_level: str = "info"

    database_url: str = "sqlite:///./physiobot.db"

    jwt_secret: str = "CHANGE_ME"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 30

    frontend_origin: str = "http://localhost:3000"

    # AI conversation backend (chat, video, questionnaire, dashboard analysis)
    ai_base_url: str = "http://localhost:8080"
    ai_api_key: str = ""
    ai_timeout_seconds: float = 60.0
    ai_connect_timeout_seconds: float = 8.0


settings = Settings()
