from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    mysql_user: str = Field(default="", alias="MYSQL_USER")
    mysql_pass: str = Field(default="", alias="MYSQL_PASS")
    mysql_schema: str = Field(default="", alias="MYSQL_SCHEMA")
    mysql_endpoint: str = Field(default="localhost:3306", alias="MYSQL_ENDPOINT")
    # Full SQLAlchemy URL; takes precedence over the MYSQL_* parts when set.
    database_url_override: str = Field(default="", alias="DATABASE_URL")
    store_timeout_seconds: int = Field(default=30, alias="STORE_TIMEOUT_SECONDS")

    # Unset means every interface on port 80.
    listen_endpoint: str = Field(default="", alias="GOAPI_ENDPOINT")

    telemetry_app_name: str = Field(default="", alias="NR_APP_NAME")
    telemetry_license_key: str = Field(default="", alias="NR_LICENSE_KEY")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        host, sep, port = self.mysql_endpoint.rpartition(":")
        if not sep:
            host, port = port, ""
        url = URL.create(
            "mysql+pymysql",
            username=self.mysql_user or None,
            password=self.mysql_pass or None,
            host=host or None,
            port=int(port) if port else None,
            database=self.mysql_schema or None,
        )
        return url.render_as_string(hide_password=False)

    @property
    def listen_host(self) -> str:
        host, _, _ = self.listen_endpoint.rpartition(":")
        return host or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        _, _, port = self.listen_endpoint.rpartition(":")
        return int(port) if port else 80


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
