from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# OpenAI-compatible provider used for chat, transcription and speech
	openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
	openai_base_url: str = Field(default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL")
	openai_chat_model: str = Field(default="gpt-4.1-mini", validation_alias="OPENAI_CHAT_MODEL")
	openai_chat_temperature: float = Field(default=0.7, validation_alias="OPENAI_CHAT_TEMPERATURE")
	openai_transcribe_model: str = Field(default="whisper-1", validation_alias="OPENAI_TRANSCRIBE_MODEL")
	openai_tts_model: str = Field(default="tts-1", validation_alias="OPENAI_TTS_MODEL")
	openai_tts_voice: str = Field(default="nova", validation_alias="OPENAI_TTS_VOICE")
	# Single attempt per call; no retries
	openai_timeout_seconds: float = Field(default=60.0, validation_alias="OPENAI_TIMEOUT_SECONDS")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	# 7 days
	access_token_expire_minutes: int = Field(default=7 * 24 * 60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Temp files
	uploads_dir: str = Field(default="./uploads", validation_alias="UPLOADS_DIR")
	audio_output_dir: str = Field(default="./audio_output", validation_alias="AUDIO_OUTPUT_DIR")
	max_upload_mb: int = Field(default=25, validation_alias="MAX_UPLOAD_MB")
	temp_file_max_age_hours: int = Field(default=24, validation_alias="TEMP_FILE_MAX_AGE_HOURS")

	# Web
	cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
	seed_on_startup: bool = Field(default=False, validation_alias="SEED_ON_STARTUP")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def cors_origin_list(self) -> list[str]:
		return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
