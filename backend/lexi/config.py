from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Lexi Sync"
    environment: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./lexi.db"

    # Insert the sample word when the store is empty
    seed_sample_words: bool = True

    # Remote snapshot location; sync is disabled until owner and repo are set
    github_owner: str | None = None
    github_repo: str | None = None
    github_branch: str = "main"
    github_snapshot_path: str = "dictionary.json"
    github_token: str | None = None
    github_push_mode: str = "contents"  # contents | dispatch | issue
    github_timeout_sec: float = 10.0

    sync_pull_interval_sec: int = 120
    sync_push_interval_sec: int = 300
    sync_push_on_change: bool = True
    sync_on_startup: bool = True

    dictionary_api_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en"
    lookup_timeout_sec: float = 10.0

    llm_provider: str = "dummy"  # dummy | openai
    llm_api_base: str = "https://api.openai.com/v1"
    llm_api_key: str | None = None
    llm_model: str = "gpt-3.5-turbo"

    # Window used by the "recent" filter and stats
    recent_days: int = 7

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
