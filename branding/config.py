import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    BASE_DIR = Path(__file__).resolve().parent.parent
    PUBLIC_DIR = Path(os.getenv("BRANDING_PUBLIC_DIR", BASE_DIR / "public"))
    UPLOADS_DIR = Path(os.getenv("BRANDING_UPLOADS_DIR", BASE_DIR / "uploads"))
    SETTINGS_PATH = Path(os.getenv("BRANDING_SETTINGS_PATH", BASE_DIR / "settings.json"))

    PORT = int(os.getenv("PORT", "3000"))

    # "product": setup fee reference lives on the product entry
    # "category": setup fee reference lives on categories[<category>]
    FEE_SCHEME = os.getenv("BRANDING_FEE_SCHEME", "product")
    # "form-events", "network" or "both"
    INTERCEPTION = os.getenv("BRANDING_INTERCEPTION", "form-events")
    MONEY_FORMAT = os.getenv("BRANDING_MONEY_FORMAT", "R{{amount}}")
    SKIP_CART_REDIRECT = _env_flag("BRANDING_SKIP_CART_REDIRECT")

    ALLOWED_EXTS = {".jpg", ".jpeg", ".png", ".pdf", ".eps", ".ai", ".svg"}
    RASTER_EXTS = {".jpg", ".jpeg", ".png"}
    MAX_CONTENT_LENGTH = int(os.getenv("BRANDING_MAX_UPLOAD_MB", "20")) * 1024 * 1024


class DevConfig(Config):
    DEBUG = True


class ProdConfig(Config):
    DEBUG = False


class TestConfig(Config):
    TESTING = True
