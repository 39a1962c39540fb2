from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# xAI (Grok) chat completions; feedback is "not configured" without a key
	xai_api_key: str | None = Field(default=None, validation_alias="XAI_API_KEY")
	xai_model: str = Field(default="grok-3", validation_alias="XAI_MODEL")
	# Lighter model for the tutor-line proxy
	xai_line_model: str = Field(default="grok-3-mini", validation_alias="XAI_LINE_MODEL")
	xai_base_url: str = Field(default="https://api.x.ai/v1/chat/completions", validation_alias="XAI_BASE_URL")
	xai_timeout_seconds: float = Field(default=30.0, validation_alias="XAI_TIMEOUT_SECONDS")
	xai_line_timeout_seconds: float = Field(default=12.0, validation_alias="XAI_LINE_TIMEOUT_SECONDS")
	xai_max_tokens: int = Field(default=500, validation_alias="XAI_MAX_TOKENS")
	xai_temperature: float = Field(default=0.3, validation_alias="XAI_TEMPERATURE")

	# Upper bound on any raw model text echoed back for diagnostics
	error_excerpt_chars: int = Field(default=200, validation_alias="ERROR_EXCERPT_CHARS")
	# Alignment runs in a worker thread above this many characters
	offload_threshold_chars: int = Field(default=2000, validation_alias="OFFLOAD_THRESHOLD_CHARS")

	rate_limit_per_minute: int = Field(default=60, validation_alias="RATE_LIMIT_PER_MINUTE")
	# Honour X-Forwarded-For for the client IP (only behind a trusted proxy)
	trust_proxy: bool = Field(default=False, validation_alias="TRUST_PROXY")

	# Database (sentence catalog)
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	app_env: str = Field(default="development", validation_alias="APP_ENV")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def llm_configured(self) -> bool:
		return bool(self.xai_api_key)

settings = Settings()
