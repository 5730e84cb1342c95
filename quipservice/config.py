from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    quip_api_url: str = "https://platform.quip.com/1"
    quip_access_token: str = ""
    request_timeout: float = 30.0
    rate_limit_max_attempts: int = 100
    rate_limit_base_delay_ms: int = 1000
    rate_limit_backoff_factor: float = 0.1
    rate_limit_jitter_ms: int = 100

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
