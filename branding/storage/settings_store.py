from pathlib import Path
import json
import logging
import threading
from typing import Any, Dict

from ..models import BrandingConfig

logger = logging.getLogger(__name__)

FEE_SCHEMES = ("product", "category")


def _empty() -> Dict[str, Any]:
    return {"products": {}, "categories": {}}


class SettingsStore:
    """Branding settings kept in one JSON file, reloaded when the file changes.

    Layout::

        {
          "setupFeeVariantId": "...",            # optional global setup fee
          "categories": {"<type>": {"setupFeeVariantId": "...", "options": [...]}},
          "products":   {"<id>": {"category": "<type>", "feeProductVariantId": "...",
                                  "options": [{"label", "value", "price", "feeVariantId"}]}}
        }
    """

    def __init__(self, path: Path, fee_scheme: str = "product"):
        if fee_scheme not in FEE_SCHEMES:
            raise ValueError(f"fee_scheme must be one of {FEE_SCHEMES}")
        self.path = Path(path)
        self.fee_scheme = fee_scheme
        self._mtime = None
        self._data: Dict[str, Any] = _empty()
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        with self._lock:
            return self._reload()

    def _reload(self) -> Dict[str, Any]:
        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            if self._mtime != -1:
                logger.warning("No settings file found at %s. Using empty settings.", self.path)
            self._data = _empty()
            self._mtime = -1
            return self._data

        if mtime == self._mtime:
            return self._data

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("settings root must be an object")
        except (OSError, ValueError) as e:
            logger.warning("Invalid settings file %s (%s). Using empty settings.", self.path, e)
            data = _empty()

        data.setdefault("products", {})
        data.setdefault("categories", {})
        self._data = data
        self._mtime = mtime
        return self._data

    def _setup_fee_for(self, data: Dict[str, Any], entry: Dict[str, Any], category: str | None):
        if self.fee_scheme == "category":
            cat_entry = (data.get("categories") or {}).get(category or "") or {}
            fee = cat_entry.get("setupFeeVariantId")
        else:
            fee = entry.get("feeProductVariantId") or entry.get("setupFeeVariantId")
        return fee or data.get("setupFeeVariantId")

    def resolve(self, product_id: str, category: str | None = None) -> BrandingConfig | None:
        """Return the branding configuration for a product, or None when it has none.

        A product entry wins; otherwise the entry of the given category is used.
        """
        data = self._load()
        pid = str(product_id)
        entry = (data.get("products") or {}).get(pid)
        if entry is None and category:
            entry = (data.get("categories") or {}).get(category)
        if not isinstance(entry, dict):
            return None

        cat = entry.get("category") or category
        merged = dict(entry)
        merged["category"] = cat
        merged["feeScheme"] = self.fee_scheme
        merged.pop("feeProductVariantId", None)
        merged.pop("setupFeeVariantId", None)
        config = BrandingConfig.from_dict(pid, merged, setup_fee_variant_id=self._setup_fee_for(data, entry, cat))
        if not any(option.is_branded for option in config.options):
            # fee-only entries do not turn branding on
            return None
        return config
