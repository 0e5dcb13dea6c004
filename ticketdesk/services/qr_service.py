from __future__ import annotations

import base64
import io
from urllib.parse import urlencode

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.image.pil import PilImage

from ticketdesk.core.config import settings


def build_validation_url(ticket_id: str) -> str:
    base = (settings.CLIENT_BASE_URL or "").rstrip("/")
    return f"{base}/?{urlencode({'validate': ticket_id})}"


def render_qr_png(data: str) -> bytes:
    """PNG bytes of a QR code for `data`. Box size and border only affect looks."""
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=settings.QR_BOX_SIZE,
        border=settings.QR_BORDER,
        image_factory=PilImage,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_data_url(data: str) -> str:
    return "data:image/png;base64," + base64.b64encode(render_qr_png(data)).decode("ascii")
