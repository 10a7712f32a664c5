from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET: str
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_THRESHOLD_MS: int = 1000  # 1 segundo

    # Credenciales estáticas de la consola (demo: admin / admin)
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Circulación
    LOAN_PERIOD_DAYS: int = 14

    # Reportes
    REPORT_TOP_N: int = 10
    REPORT_FETCH_TIMEOUT_SECONDS: float = 10.0

    # Buscador de registros (picker)
    SEARCH_MIN_CHARS: int = 2
    SEARCH_RESULT_LIMIT: int = 20

    class Config:
        env_file = ".env"


settings = Settings()
