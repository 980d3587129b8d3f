from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="PBGEN_", extra="ignore")

    app_name: str = "pbgen"
    log_level: str = "INFO"

    schema_path: str = "./pb_schema.json"
    output_path: str = "./models_gen.py"
    unknown_dialect_policy: Literal["latest", "fail"] = "latest"

    base_url: str = "http://127.0.0.1:8090"
    auth_token: str | None = None
    request_timeout: float = 30.0
    max_page_size: int = 1000

settings = Settings()
