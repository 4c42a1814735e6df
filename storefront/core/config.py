from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- Required Fields ---
    PROJECT_NAME: str = "Akusho_Storefront"
    DATABASE_URL: str

    # --- Optional / Default Fields ---
    LOG_LEVEL: str = "INFO"
    REDIS_URL: str | None = None  # None -> in-memory state only
    SITE_URL: str = "https://akusho.com"

    DB_CONNECT_RETRIES: int = 10
    DB_CONNECT_WAIT_SECONDS: int = 3

    # --- Shiprocket (courier aggregator) ---
    SHIPROCKET_BASE_URL: str = "https://apiv2.shiprocket.in/v1/external"
    SHIPROCKET_EMAIL: str | None = None
    SHIPROCKET_PASSWORD: str | None = None
    SHIPROCKET_PICKUP_LOCATION: str = "Primary"
    SHIPROCKET_TIMEOUT_SECONDS: float = 15.0
    SHIPROCKET_WEBHOOK_TOKEN: str | None = None
    PACKAGE_LENGTH_CM: float = 20
    PACKAGE_BREADTH_CM: float = 15
    PACKAGE_HEIGHT_CM: float = 10
    PACKAGE_WEIGHT_KG: float = 0.5
    DISPATCH_LOCK_SECONDS: int = 120

    # --- Resend (customer email) ---
    RESEND_API_KEY: str | None = None
    RESEND_BASE_URL: str = "https://api.resend.com"
    RESEND_FROM_EMAIL: str = "AKUSHO <orders@akusho.com>"
    RESEND_TIMEOUT_SECONDS: float = 10.0

    # --- Twilio (admin WhatsApp alerts) ---
    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    TWILIO_FROM_NUMBER: str | None = None
    ADMIN_PHONE_NUMBER: str | None = None

    # --- Configuration ---
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"  # unknown variables in .env are ignored instead of crashing
    )

settings = Settings()
