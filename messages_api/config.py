import os


def _parse_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    host = os.getenv("DB_HOST")
    if host:
        # same variables the original deployment used for postgres
        port = os.getenv("DB_PORT", "5432")
        user = os.getenv("DB_USERNAME", "postgres")
        password = os.getenv("DB_PASSWORD", "")
        name = os.getenv("DB_NAME", "messages")
        return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{name}"
    return "sqlite:///./messages.db"


class Settings:
    def __init__(self) -> None:
        self.DATABASE_URL: str = _database_url()
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.SQL_ECHO: bool = _parse_bool(os.getenv("SQL_ECHO"))


settings = Settings()
