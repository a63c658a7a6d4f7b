# =============================================================================
# lib/pixelcut_client.py - PixelCut Image API Client
# =============================================================================
# httpx wrapper for the PixelCut developer API:
# - upscale: enlarge a product photo 2x or 4x
# - remove-background: cut the product out on a transparent PNG
#
# Images go in as a public URL or a data: URL. PixelCut answers with one
# of several shapes (result_url, image_url, url, nested under data, or a
# base64 image); extract_result_url normalises them to one URL.
#
# Usage:
#   from lib.pixelcut_client import PixelcutClient
#   result_url = PixelcutClient().upscale("data:image/jpeg;base64,...", scale=2)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

VALID_SCALES = (2, 4)


class PixelcutError(ApplicationError):
    """Raised when a PixelCut call fails."""

    def __init__(self, message: str, status_code: int | None = None, code: str = "PIXELCUT_ERROR", **kwargs):
        super().__init__(message, code=code, **kwargs)
        self.status_code = status_code


def extract_result_url(payload: dict[str, Any]) -> str:
    """
    Find the processed image in a PixelCut response.

    Raises:
        PixelcutError: If no known field holds the image
    """
    if not isinstance(payload, dict):
        raise PixelcutError(
            "Unrecognised PixelCut response format",
            code="PIXELCUT_BAD_RESPONSE",
            details={"type": type(payload).__name__},
        )

    candidates = [payload]
    if isinstance(payload.get("data"), dict):
        candidates.append(payload["data"])

    for body in candidates:
        for key in ("result_url", "image_url", "url"):
            if body.get(key):
                return body[key]

    for body in candidates:
        image = body.get("image")
        if image:
            return image if image.startswith("data:") else f"data:image/png;base64,{image}"

    raise PixelcutError(
        "Unrecognised PixelCut response format",
        code="PIXELCUT_BAD_RESPONSE",
        details={"keys": sorted(payload)},
    )


class PixelcutClient:
    """
    Args:
        api_key: PixelCut key (default: settings.PIXELCUT_API_KEY)
        http_client: Optional preconfigured httpx.Client
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.PIXELCUT_API_KEY
        self.base_url = (base_url or settings.PIXELCUT_BASE_URL).rstrip("/")
        self._http = http_client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def upscale(self, image: str, scale: int = 2) -> str:
        """
        Upscale an image.

        Args:
            image: http(s) URL or data: URL
            scale: 2 or 4

        Returns:
            URL (or data: URL) of the upscaled image

        Raises:
            PixelcutError: Invalid scale or API failure
        """
        if scale not in VALID_SCALES:
            raise PixelcutError(f"Invalid scale {scale}", code="INVALID_SCALE", details={"scale": scale})
        return self._post("upscale", {**self._image_field(image), "scale": scale})

    def remove_background(self, image: str) -> str:
        """Remove the background, returning a transparent PNG."""
        return self._post("remove-background", {**self._image_field(image), "format": "png"})

    @staticmethod
    def _image_field(image: str) -> dict[str, str]:
        if image.startswith(("http://", "https://")):
            return {"image_url": image}
        return {"image": image}

    def _post(self, path: str, body: dict[str, Any]) -> str:
        if not self.api_key:
            raise PixelcutError(
                "PixelCut API key is not configured",
                code="PIXELCUT_NOT_CONFIGURED",
                suggestion="Set PIXELCUT_API_KEY in the environment",
            )

        try:
            response = self._http.post(
                f"{self.base_url}/{path}",
                json=body,
                headers={"X-API-KEY": self.api_key, "Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise PixelcutError(f"Request to {path} failed: {e}")

        if response.status_code >= 400:
            try:
                error = response.json()
            except ValueError:
                error = {"error": response.text[:200]}
            if not isinstance(error, dict):
                error = {"error": str(error)[:200]}

            logger.error(f"PixelCut {path} returned {response.status_code}: {error}")

            if error.get("error_code") == "insufficient_api_credits":
                raise PixelcutError(
                    "PixelCut API credits are exhausted",
                    status_code=response.status_code,
                    code="PIXELCUT_NO_CREDITS",
                    suggestion="Ask an administrator to top up the PixelCut account",
                )
            if error.get("error_code") == "invalid_parameter":
                raise PixelcutError(
                    f"PixelCut rejected the image: {error.get('error', 'invalid parameter')}",
                    status_code=response.status_code,
                    code="PIXELCUT_INVALID_IMAGE",
                    suggestion="Try a high quality JPG or PNG image",
                )
            raise PixelcutError(
                f"PixelCut {path} failed: {error.get('error', 'unknown error')}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError:
            logger.error(f"PixelCut {path} returned a non-JSON body: {response.text[:200]}")
            raise PixelcutError(
                f"PixelCut {path} returned an unreadable response",
                code="PIXELCUT_BAD_RESPONSE",
            )
        result = extract_result_url(payload)
        logger.info(f"PixelCut {path} succeeded")
        return result
