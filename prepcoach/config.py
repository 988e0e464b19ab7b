from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List
from dotenv import load_dotenv


# Ensure .env is loaded eagerly
load_dotenv(dotenv_path=".env")


class Settings(BaseSettings):
	# Server
	host: str = "0.0.0.0"
	port: int = 8000
	cors_allow_origins: List[str] = [
		"http://localhost:3000",
		"http://localhost:5173",
		"http://127.0.0.1:3000",
		"http://127.0.0.1:5173",
	]

	# Auth
	api_key: str | None = None  # simple bearer key if provided

	# Storage
	database_url: str = "sqlite:///./prepcoach.db"
	database_echo: bool = False
	seed_curriculum: bool = True

	# LLM Provider Selection
	llm_provider: str = "groq"

	# Groq
	groq_api_key: str | None = None
	groq_model: str = "openai/gpt-oss-120b"
	chat_temperature: float = 0.7
	evaluation_temperature: float = 0.2
	question_temperature: float = 0.7
	chat_max_tokens: int = 500
	evaluation_max_tokens: int = 1000
	question_max_tokens: int = 1200
	history_turns: int = 10  # prior messages sent with each chat turn

	# Code runner (opaque sandbox reached over HTTP)
	code_runner_url: str | None = None
	code_runner_timeout: float = 15.0

	# Logging
	log_level: str = "INFO"
	analytics_path: str | None = None  # e.g., logs/events.jsonl

	@field_validator("chat_temperature", "evaluation_temperature", "question_temperature")
	@classmethod
	def clamp_temperature(cls, v: float) -> float:
		return max(0.0, min(1.0, v))

	@field_validator("cors_allow_origins", mode="before")
	@classmethod
	def parse_cors_origins(cls, v):
		# Allow environment variable override
		if isinstance(v, str):
			return [origin.strip() for origin in v.split(",") if origin.strip()]
		return v

	class Config:
		env_file = ".env"
		env_file_encoding = "utf-8"
		env_prefix = "PREPCOACH_"


settings = Settings()
