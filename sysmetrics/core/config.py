import os


class Settings:
    # API Settings
    PROJECT_NAME: str = "System Metrics API"
    VERSION: str = "0.1.0"
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8005))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Logging Settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: str = os.getenv("LOG_FILE", "")  # empty disables the rotating file handler

    # System Metrics Settings
    ENABLE_SYSTEM_METRICS: bool = os.getenv("SYSMETRICS_ENABLE_SYSTEM_METRICS", "true").lower() == "true"
    IO_WAIT_INTERVAL: float = float(os.getenv("SYSMETRICS_IO_WAIT_INTERVAL", "5"))
    NIC_INTERVAL: float = float(os.getenv("SYSMETRICS_NIC_INTERVAL", "10"))


settings = Settings()
