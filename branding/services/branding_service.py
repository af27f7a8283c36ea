import logging

import httpx

from ..models import ArtworkFile, BrandingConfig, UploadResult
from ..storefront.dispatcher import OutboundDispatcher

logger = logging.getLogger(__name__)


class BrandingServiceClient:
    """Client for the config/upload service that serves this app's options."""

    def __init__(self, service_url: str, dispatcher: OutboundDispatcher):
        self.base = service_url.rstrip("/")
        self.dispatcher = dispatcher

    def fetch_options(self, product_id: str, category: str | None = None) -> BrandingConfig | None:
        """Return the product's branding configuration, or None when branding is off for it.

        Lookup failures are not errors for the page: they just disable the feature.
        """
        params = {"productId": str(product_id)}
        if category:
            params["category"] = category
        try:
            r = self.dispatcher.get(f"{self.base}/api/options", params=params, self_originated=True)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError):
            logger.warning("Branding options lookup failed for product %s", product_id, exc_info=True)
            return None

        if not isinstance(data, dict) or not data.get("success"):
            return None
        options = data.get("options")
        if not isinstance(options, dict):
            return None
        return BrandingConfig.from_dict(product_id, options)

    def upload_artwork(self, artwork: ArtworkFile) -> UploadResult | None:
        files = {"file": (artwork.filename, artwork.content, artwork.content_type)}
        try:
            r = self.dispatcher.post(f"{self.base}/api/upload", files=files, self_originated=True)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("Artwork upload failed for %s", artwork.filename)
            return None

        url = data.get("url") if isinstance(data, dict) else None
        if not url:
            return None
        # The service returns a path relative to itself
        if url.startswith("/"):
            url = f"{self.base}{url}"
        return UploadResult(url=url)
