"""
Device Token Service - Issues device tokens and signs the device cookie
"""
import jwt
import secrets
import time
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings

TOKEN_ISSUER = "scanin-attendance"
TOKEN_PREFIX = "dt_"


class DeviceTokenService:
    def __init__(self) -> None:
        self.secret = settings.DEVICE_TOKEN_SECRET
        self.algorithm = settings.DEVICE_TOKEN_ALG

    def generate_device_token(self) -> str:
        """New opaque device identifier, e.g. dt_1718000000000_k3j9x2a1b"""
        return f"{TOKEN_PREFIX}{int(time.time() * 1000)}_{secrets.token_hex(8)}"

    def encode_cookie(self, device_token: str) -> str:
        """Wrap the token in a signed JWT so the cookie cannot be forged"""
        payload = {
            "iss": TOKEN_ISSUER,
            "sub": device_token,
            "iat": int(datetime.now(timezone.utc).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_cookie(self, cookie_value: str) -> Optional[str]:
        """
        Extract the device token from a cookie value

        Returns:
            The token, or None when the cookie is tampered, foreign or malformed
        """
        try:
            payload = jwt.decode(
                cookie_value,
                self.secret,
                algorithms=[self.algorithm],
                issuer=TOKEN_ISSUER,
                options={"require": ["sub", "iss"]}
            )
        except jwt.InvalidTokenError:
            return None

        token = payload.get("sub")
        if not isinstance(token, str) or not token.startswith(TOKEN_PREFIX):
            return None
        return token
