from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LLM provider
    llm_provider: str = "openrouter"  # openrouter | anthropic
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "anthropic/claude-sonnet-4.5"
    openrouter_model: str = ""  # optional override of default_model
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    llm_max_tokens: int = 8192

    # Firecrawl (search + scrape)
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev"
    firecrawl_timeout_seconds: float = 60.0

    # Sourcing phase
    sourcing_max_sources: int = 3
    sourcing_max_steps: int = 1
    sourcing_temperature: float = 0.1
    sourcing_search_limit: int = 10
    sourcing_excluded_hosts: str = "youtube.com,youtu.be"

    # Analysis phase
    analysis_max_steps: int = 15

    # Per-request deadline shared by both phases
    request_timeout_seconds: float = 180.0

    # App
    cors_origins: str = "http://localhost:3000,http://localhost:8000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_file_enabled: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def excluded_host_list(self) -> list[str]:
        return [h.strip().lower() for h in self.sourcing_excluded_hosts.split(",") if h.strip()]


settings = Settings()
