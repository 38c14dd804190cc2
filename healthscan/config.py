from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        extra="ignore",
    )

    # Empty means unconfigured; requests fail until it is set.
    api_key: str = ""
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    temperature: float = 0.3

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())


class AnalysisConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HEALTHSCAN_",
        env_file=".env",
        extra="ignore",
    )

    max_text_chars: int = 10_000
    log_level: str = "INFO"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    gemini: GeminiConfig = GeminiConfig()
    analysis: AnalysisConfig = AnalysisConfig()


settings = Settings()
