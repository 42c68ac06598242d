from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from pathlib import Path
import os


load_dotenv()


class Settings(BaseSettings):
    app_name: str = "Supply Chain Provenance API"
    debug: bool = False
    database_url: str = "sqlite:///./provenance.db"
    host: str = "127.0.0.1"
    port: int = 8000
    secret_key: str = ""
    access_token_expire_minutes: int = 60 * 24
    allowed_hosts: str = ""
    static_dir: Path = Path(__file__).parent.parent.parent / "static"
    public_url: str = "http://localhost:8000"

    # The principal that deploys the registry and becomes its sole admin.
    admin_principal: str = ""
    # Mix the registry's product count into handle derivation so two
    # registrations of the same code by the same caller in the same second
    # still get distinct handles. Disable for the legacy derivation.
    handle_include_nonce: bool = True

    log_level: str = "INFO"
    log_file: str = "logs/application.log"


settings = Settings()

if not settings.secret_key:
    raise RuntimeError("Secret key not configured.")

if not settings.admin_principal:
    raise RuntimeError("Admin principal not configured.")


os.makedirs(settings.static_dir, exist_ok=True)
