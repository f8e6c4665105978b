"""Render session tokens as scannable QR images."""

import base64
import io

import qrcode


def render_data_uri(token: str) -> str:
    """PNG QR code for token as a data: URI."""
    image = qrcode.make(token)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"
