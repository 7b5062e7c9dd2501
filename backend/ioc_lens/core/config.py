from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    project_name: str = "ioc-lens"
    database_url: str = "sqlite:///./ioc_lens.db"
    log_level: str = "INFO"

    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.io"

    # applies to scraping and the reasoning call
    http_timeout_seconds: float = 30.0

    session_secret: str = "change-me"
    google_client_id: str = ""
    google_client_secret: str = ""

    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


settings = Settings()
