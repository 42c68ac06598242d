import os
import qrcode
from app.core.config import settings


QR_CODE_DIR = settings.static_dir / "qrcodes"
STATIC_URL_PREFIX = "/static/qrcodes"


def provenance_url(handle: str) -> str:
    """Public page where anyone can inspect a product's journey."""
    return f"{settings.public_url}/api/v1/products/{handle}"


def generate_and_save_qr(data: str, filename: str) -> str:
    """
    Generates a QR code for the given data, saves it to the filesystem,
    and returns the web-accessible URL.
    """
    os.makedirs(QR_CODE_DIR, exist_ok=True)

    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    file_path = QR_CODE_DIR / f"{filename}.png"
    img.save(file_path)

    return f"{settings.public_url}{STATIC_URL_PREFIX}/{filename}.png"
