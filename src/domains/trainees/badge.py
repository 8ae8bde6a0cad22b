"""Trainee badge QR payloads and scanner input parsing."""
import json

from src.core.qrcode import generate_badge_qr_code
from src.domains.trainees.exceptions import RecordValidationError
from src.domains.trainees.models import Trainee

INVALID_SCAN = {"serial_number": "Invalid QR code format"}


def badge_payload(trainee: Trainee) -> str:
    """JSON text encoded in the badge QR code."""
    return json.dumps(
        {
            "serialNumber": trainee.serial_number,
            "name": trainee.name,
            "id": str(trainee.id),
        }
    )


def badge_qr_code(trainee: Trainee) -> str:
    return generate_badge_qr_code(badge_payload(trainee))


def parse_scan(data: str) -> str:
    """Extract the serial number from scanned text.

    Badge codes carry a JSON object; anything that is not JSON is taken as a
    typed or barcode-scanned serial.
    """
    text = (data or "").strip()
    if not text:
        raise RecordValidationError(INVALID_SCAN)

    try:
        decoded = json.loads(text)
    except ValueError:
        return text

    if isinstance(decoded, dict):
        serial = decoded.get("serialNumber")
        if isinstance(serial, str) and serial.strip():
            return serial.strip()
        raise RecordValidationError(INVALID_SCAN)
    # Bare JSON scalars such as a numeric serial
    return text
