from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Project
    PROJECT_NAME: str = "Balance Ledger"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Customer balance ledger and payment cascade engine"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

    # Customers
    WALK_IN_CUSTOMER_NAME: str = "Walk-in Customer"

    # Display
    CURRENCY_SYMBOL: str = "₹"

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
