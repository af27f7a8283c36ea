# branding/extensions.py
from flask_cors import CORS

from .config import Config
from .storage.settings_store import SettingsStore
from .storage.upload_store import UploadStore

# CORS lets the storefront (another origin) call the API
cors = CORS()

settings_store = SettingsStore(Config.SETTINGS_PATH, fee_scheme=Config.FEE_SCHEME)

upload_store = UploadStore(
    Config.UPLOADS_DIR,
    allowed_exts=Config.ALLOWED_EXTS,
    raster_exts=Config.RASTER_EXTS,
)
