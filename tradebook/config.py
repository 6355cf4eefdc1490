from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./tradebook.db"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # Auth
    JWT_SECRET: str = ""  # REQUIRED in production — fail loudly if missing at auth time
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_EXPIRE_DAYS: int = 30

    # Documents
    LOGO_PATH: str = "static/logo.png"

    class Config:
        env_file = ".env"


settings = Settings()
