"""
FILE: nexuschain/products/qr.py
QR code generation — PNG data URL encoding a product's verification payload
"""

import base64
import io
import json
from datetime import datetime
from typing import Any, Dict, Optional

import qrcode


def build_qr_payload(product_id: str, name: str, manufacturer: Optional[str], created_at: datetime) -> Dict[str, Any]:
    return {
        "productId": product_id,
        "name": name,
        "manufacturer": manufacturer,
        "timestamp": created_at.isoformat(),
    }


def generate_qr_data_url(payload: Dict[str, Any]) -> str:
    """Render payload as JSON inside a QR code and return it as a base64 PNG data URL."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(json.dumps(payload))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")

