"""QR Code generation utilities."""
import base64
import io

import qrcode
import structlog
from qrcode.constants import ERROR_CORRECT_M

logger = structlog.get_logger(__name__)


def generate_qr_code_base64(
    data: str,
    box_size: int = 10,
    border: int = 2,
    fill_color: str = "#000000",
    back_color: str = "#FFFFFF",
) -> str:
    """Generate a QR code and return it as a base64 data URL.

    Args:
        data: The data to encode in the QR code
        box_size: Size of each box in the QR code
        border: Border size around the QR code
        fill_color: Color of the QR code pattern
        back_color: Background color

    Returns:
        Base64 data URL string (data:image/png;base64,...)
    """
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    # Badge payloads outgrow version 1, let the library pick the size
    qr.make(fit=True)

    img = qr.make_image(fill_color=fill_color, back_color=back_color)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
    logger.debug("qr_code_generated", size=len(encoded), version=qr.version)
    return f"data:image/png;base64,{encoded}"


def generate_badge_qr_code(payload: str) -> str:
    """QR code for a printed trainee badge, in the card's dark gray."""
    return generate_qr_code_base64(
        data=payload,
        box_size=8,
        border=2,
        fill_color="#1f2937",
        back_color="#FFFFFF",
    )
