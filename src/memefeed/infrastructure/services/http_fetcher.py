import logging
from typing import Optional

import httpx
from PIL import Image

from ...errors import FetchErrorKind, ResourceFetchError
from ...utils.image_loader import decode_image

LOGGER = logging.getLogger(__name__)


class HttpResourceFetcher:
    """
    Downloads images over HTTP(S) with httpx and decodes them with Pillow.

    Requests follow redirects and carry no timeout: a batch waits for every
    download to either finish or fail on its own.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True, timeout=None)

    async def fetch(self, url: str) -> Image.Image:
        try:
            response = await self._client.get(url)
        except httpx.TransportError as e:
            raise ResourceFetchError(url, FetchErrorKind.CONNECTION, str(e) or type(e).__name__) from e

        if response.is_error:
            raise ResourceFetchError(url, FetchErrorKind.PROTOCOL, f"HTTP {response.status_code}")

        content = response.content
        if not content:
            raise ResourceFetchError(url, FetchErrorKind.EMPTY_PAYLOAD, "empty response body")

        image = decode_image(content)
        if image is None:
            content_type = response.headers.get("content-type", "unknown")
            raise ResourceFetchError(
                url,
                FetchErrorKind.EMPTY_PAYLOAD,
                f"undecodable payload ({content_type}, {len(content)} bytes)",
            )
        LOGGER.debug("Decoded %s as %dx%d %s", url, image.width, image.height, image.mode)
        return image

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpResourceFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
