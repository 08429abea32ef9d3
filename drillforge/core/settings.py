from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"
    random_seed: int | None = None

    default_session_count: int = 10
    assessment_default_count: int = 20
    review_default_count: int = 15
    review_max_count: int = 20

    review_weak_accuracy_threshold: float = 80.0
    adaptive_weak_accuracy_threshold: float = 70.0
    progressive_ramp_threshold: float = 0.7

    dedup_cache_capacity: int = 1000
    signature_prompt_chars: int = 80
    max_generation_attempts: int = 50
    exhaustion_policy: str = "fail"  # fail | accept_duplicate | truncate
    session_history_capacity: int = 10

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
