import logging
from dataclasses import dataclass
from typing import Callable

import httpx

logger = logging.getLogger(__name__)

ORIGIN_HEADER = "X-Branding-Origin"
ORIGIN_VALUE = "branding-app"


@dataclass(frozen=True)
class DispatchedCall:
    request: httpx.Request
    response: httpx.Response


Observer = Callable[[DispatchedCall], None]


class OutboundDispatcher:
    """Every outbound HTTP call of a product page goes through here.

    Calls made with ``self_originated=True`` carry the origin header and are
    never shown to observers, so an observer can issue its own calls without
    seeing them again.
    """

    def __init__(self, base_url: str = "", client: httpx.Client | None = None, timeout: float = 30):
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._observers: list[Observer] = []

    def add_observer(self, observer: Observer):
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: Observer):
        if observer in self._observers:
            self._observers.remove(observer)

    def request(self, method: str, url: str, *, self_originated: bool = False, **kwargs) -> httpx.Response:
        headers = httpx.Headers(kwargs.pop("headers", None))
        if headers.get(ORIGIN_HEADER) == ORIGIN_VALUE:
            self_originated = True
        if self_originated:
            headers[ORIGIN_HEADER] = ORIGIN_VALUE

        response = self.client.request(method, url, headers=headers, **kwargs)
        if not self_originated:
            self._notify(DispatchedCall(request=response.request, response=response))
        return response

    def get(self, url: str, **kwargs) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def _notify(self, call: DispatchedCall):
        for observer in list(self._observers):
            try:
                observer(call)
            except Exception:
                # The page's own call already succeeded; an observer must not undo that
                logger.exception("Outbound call observer failed for %s %s", call.request.method, call.request.url)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
