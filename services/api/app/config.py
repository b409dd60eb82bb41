"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── TiDB (MySQL-protocol compatible) ───────────────────────────────────
    tidb_host: str = "tidb"
    tidb_port: int = 4000
    tidb_user: str = "root"
    tidb_password: str = ""
    tidb_database: str = "photo_stream"

    # Full SQLAlchemy URL; when set it wins over the TiDB fields.
    # e.g. sqlite+aiosqlite:///./photostream.db for a single-node setup
    database_url: Optional[str] = None
    db_echo: bool = False

    @property
    def tidb_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.tidb_user}:{self.tidb_password}"
            f"@{self.tidb_host}:{self.tidb_port}/{self.tidb_database}"
        )

    @property
    def sqlalchemy_url(self) -> str:
        return self.database_url or self.tidb_url

    # ── Identifiers ────────────────────────────────────────────────────────
    id_length: int = 10
    id_max_attempts: int = 8             # fresh-id retries before giving up

    # ── Uploads ────────────────────────────────────────────────────────────
    max_image_bytes: int = 10 * 1024 * 1024

    # ── Observability ──────────────────────────────────────────────────────
    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "photo-stream-api"
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
