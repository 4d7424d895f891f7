"""
Scannable code rendering for tickets.
"""

from io import BytesIO

import qrcode


def render_scannable(payload: str) -> bytes:
    """Render ``payload`` as a PNG QR code. Same payload, same bytes."""
    image = qrcode.make(payload)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
