"""QR code encoding and the URLs encoded into each code"""

import base64
import logging
from io import BytesIO
from typing import Optional
from urllib.parse import quote

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from starlette.concurrency import run_in_threadpool

try:
    from assettrack.errors import EncodingFailure
except ModuleNotFoundError:
    from errors import EncodingFailure

logger = logging.getLogger(__name__)


def asset_path(name: str) -> str:
    return f"/asset/{quote(name, safe='')}"


def asset_scan_url(base_url: str, name: str) -> str:
    """URL a printed code resolves to: the detail page with the scan-origin flag."""
    return f"{base_url.rstrip('/')}{asset_path(name)}?scan=true"


def resolve_base_url(configured: Optional[str], request_base_url: str) -> str:
    return (configured or str(request_base_url)).rstrip("/")


class QRCodeEncoder:
    """
    encode(text) -> PNG bytes, run off the event loop.

    Any failure inside the qrcode/Pillow stack surfaces as EncodingFailure.
    """

    def __init__(self, box_size: int = 10, border: int = 2):
        self.box_size = box_size
        self.border = border

    def _render(self, text: str) -> bytes:
        qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, box_size=self.box_size, border=self.border)
        qr.add_data(text)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")
        buffer = BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    async def encode_png(self, text: str) -> bytes:
        try:
            png = await run_in_threadpool(self._render, text)
        except Exception as e:
            logger.error(f"[QR] Generation failed for {text}: {e}")
            raise EncodingFailure(f"Could not generate QR code: {e}") from e
        logger.debug(f"[QR] Generated {len(png)} byte PNG for {text}")
        return png

    async def encode_data_uri(self, text: str) -> str:
        png = await self.encode_png(text)
        return f"data:image/png;base64,{base64.b64encode(png).decode()}"
