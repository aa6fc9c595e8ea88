from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    BUSINESS_NAME: str = "BarberAI Barbershop"
    BUSINESS_TIMEZONE: str = "Asia/Riyadh"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    OPEN_HOUR: int = 10
    CLOSE_HOUR: int = 21
    SLOT_MINUTES: int = 60
    CLOSED_WEEKDAYS: list[int] = [4]

    REMINDER_LEAD_HOURS: int = 3
    REMINDERS_ENABLED: bool = True

    STORE_PROVIDER: str = "json"
    DATA_DIR: str = "./data"


settings = Settings()
