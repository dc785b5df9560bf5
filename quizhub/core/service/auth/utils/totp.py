"""
TOTP helpers for the admin second factor (RFC 6238, 30 second step, 6 digits)
"""

import base64
from io import BytesIO

import pyotp
import qrcode

from quizhub.infra.config.settings import get_settings

settings = get_settings()


def generate_secret() -> str:
    return pyotp.random_base32()


def provisioning_uri(secret: str, account_name: str) -> str:
    return pyotp.TOTP(secret).provisioning_uri(name=account_name, issuer_name=settings.TFA_ISSUER)


def qr_data_url(uri: str) -> str:
    """Render a provisioning URI as a PNG data URL for authenticator apps"""
    image = qrcode.make(uri)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def verify_code(secret: str, code: str) -> bool:
    """Accepts the current step and TFA_VALID_WINDOW steps either side"""
    if not secret or not code:
        return False
    return pyotp.TOTP(secret).verify(code.strip(), valid_window=settings.TFA_VALID_WINDOW)
