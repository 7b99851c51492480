import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Configuration du service, lue depuis l'environnement (.env supporte)."""

    service_name: str = "products-service"
    host: str = "0.0.0.0"
    port: int = 3000
    api_key: str = "your-secret-api-key"
    api_key_header: str = "x-api-key"
    log_file: str = "logs.json"
    log_level: str = "INFO"
    seed_products: bool = True

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls) -> "Settings":
        # Chargement des variables d'environnement
        load_dotenv()
        return cls(
            service_name=os.getenv("SERVICE_NAME", "products-service"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 3000)),
            api_key=os.getenv("API_KEY", "your-secret-api-key"),
            api_key_header=os.getenv("API_KEY_HEADER", "x-api-key"),
            log_file=os.getenv("LOG_FILE", "logs.json"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            seed_products=_env_bool("SEED_PRODUCTS", True),
        )
