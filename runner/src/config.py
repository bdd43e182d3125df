from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # Pipeline file; empty means search the working directory
    pipeline_file: str = ""
    working_dir: str = "."

    # Stage settings
    stage_timeout: int = 600  # 10 minutes default
    log_tail_lines: int = 1000

    # Run history is recorded only when a database is configured
    database_url: str = ""

    log_level: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
