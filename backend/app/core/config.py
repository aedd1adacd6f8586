import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    COSMOS_DB_ENDPOINT: str = ""
    COSMOS_DB_KEY: str = ""
    COSMOS_DB_DATABASE: str = "frontdesk-db"
    COSMOS_DB_EMPLOYEES_CONTAINER: str = "employees"

    SYNC_API_TOKEN: str = ""

    DTR_API_BASE_URL: str = ""
    DTR_API_TOKEN: str = ""
    DTR_API_TIMEOUT: int = 10

    SEARCH_DEFAULT_LIMIT: int = 3
    SEARCH_MAX_LIMIT: int = 50

    AZURE_AD_TENANT_ID: str = ""
    AZURE_AD_CLIENT_ID: str = ""

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
