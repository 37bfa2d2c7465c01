from atams import AtamsBaseSettings


class Settings(AtamsBaseSettings):
    """
    Application Settings

    Inherits from AtamsBaseSettings which includes:
    - DATABASE_URL (required)
    - ATLAS_SSO_URL, ATLAS_APP_CODE, ATLAS_ENCRYPTION_KEY, ATLAS_ENCRYPTION_IV
    - ENCRYPTION_ENABLED, ENCRYPTION_KEY, ENCRYPTION_IV (response encryption)
    - LOGGING_ENABLED, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
    - CORS_ORIGINS, CORS_ALLOW_CREDENTIALS, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS
    - DEBUG

    All settings can be overridden via .env file or by redefining them here.
    """
    APP_NAME: str = "ScanIn Attendance"
    APP_VERSION: str = "1.0.0"

    # Device identity
    DEVICE_COOKIE_NAME: str = "scanin_device_token"
    DEVICE_COOKIE_MAX_AGE_DAYS: int = 365
    DEVICE_COOKIE_SECURE: bool = True
    DEVICE_COOKIE_SAMESITE: str = "lax"
    DEVICE_TOKEN_HEADER: str = "X-Device-Token"
    DEVICE_TOKEN_SECRET: str = "change-me-device-secret"
    DEVICE_TOKEN_ALG: str = "HS256"
    FINGERPRINT_HASH_ALGORITHM: str = "sha256"

    # Check-in cooldown for session links
    RESUBMIT_COOLDOWN_HOURS: int = 24

    # Cascading deletion
    DELETION_BATCH_SIZE: int = 500
    DELETION_CHUNK_DELAY_SECONDS: float = 0.2

    # Role level that may manage sessions it does not own
    ADMIN_ROLE_LEVEL: int = 50


settings = Settings()
