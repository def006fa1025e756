from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	APP_NAME: str = Field(default="Mayramao API")
	DEBUG: bool = Field(default=False)
	API_PREFIX: str = Field(default="/api/v1")
	# Comma separated; "*" allows any origin
	CORS_ORIGINS: str = Field(default="*")

	# Database
	DATABASE_URL: str = Field(default="")

	# Auth / JWT
	JWT_SECRET: str = Field(default="dev-change-me")
	JWT_REFRESH_SECRET: str = Field(default="dev-refresh-change-me")
	JWT_ALGORITHM: str = Field(default="HS256")
	ACCESS_TOKEN_EXPIRES_MINUTES: int = Field(default=15)
	REFRESH_TOKEN_EXPIRES_DAYS: int = Field(default=7)

	# One-time passwords
	OTP_LENGTH: int = Field(default=6)
	OTP_EXPIRES_MINUTES: int = Field(default=10)
	OTP_RETENTION_MINUTES: int = Field(default=60)

	# Outbound email (SMTP over STARTTLS)
	SMTP_HOST: str = Field(default="smtp.gmail.com")
	SMTP_PORT: int = Field(default=587)
	SMTP_USER: str = Field(default="")
	SMTP_PASSWORD: str = Field(default="")
	SMTP_TIMEOUT_SECONDS: int = Field(default=10)
	MAIL_FROM: str = Field(default="")
	MAIL_FROM_NAME: str = Field(default="Mayramao App")

	# Stripe
	STRIPE_SECRET_KEY: str = Field(default="")
	STRIPE_WEBHOOK_SECRET: str = Field(default="")
	STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = Field(default=300)

	# Google sign-in
	GOOGLE_CLIENT_ID: str = Field(default="")

	# Azure Monitor / Application Insights
	AZURE_MONITOR_CONN_STR: str = Field(default="")
	ENABLE_APP_INSIGHTS: bool = Field(default=True)
	SAMPLING_RATIO: float = Field(default=1.0)

	# Seed administrators
	ADMIN_EMAIL: str = Field(default="admin@mayramao.com")
	ADMIN_PASSWORD: str = Field(default="Admin@123456")
	ADMIN_EMAIL_2: str = Field(default="")
	ADMIN_PASSWORD_2: str = Field(default="")

	@property
	def cors_origins(self) -> list[str]:
		return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
