"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_anon_key: str = ""

    # Blob storage roots
    upload_dir: str = "./uploads"
    processed_dir: str = "./processed"

    # Track records
    track_store: str = "memory"  # "memory" or "supabase"

    # Upload intake / streaming
    max_upload_bytes: int = 200 * 1024 * 1024
    stream_chunk_bytes: int = 64 * 1024

    # Server
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
