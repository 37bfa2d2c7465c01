"""
Device Identity Service - Resolves a stable device token for anonymous participants

Identity is looked up through a ranked list of strategies, first hit wins:
signed cookie, local-storage token, fingerprint soft-match, then a freshly
generated token.
"""
import hashlib
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from sqlalchemy.orm import Session

from atams.logging import get_logger
from app.core.config import settings
from app.core.enums import IdentitySource
from app.repositories.device_binding_repository import DeviceBindingRepository
from app.schemas.attendance import DeviceSignals
from app.services.device_token_service import DeviceTokenService, TOKEN_PREFIX

logger = get_logger(__name__)

DEGRADED_PREFIX = "weak_"


@dataclass
class DeviceContext:
    """What the request tells us about the device"""
    cookie_value: Optional[str] = None
    local_token: Optional[str] = None
    user_agent: str = ""
    signals: Optional[DeviceSignals] = None
    fingerprint: Optional[str] = field(default=None, init=False)

    def signal_parts(self) -> List[str]:
        signals = self.signals or DeviceSignals()
        parts = [
            self.user_agent,
            signals.platform,
            signals.language,
            signals.screen,
            signals.timezone,
            signals.canvas,
            str(signals.hardware_concurrency) if signals.hardware_concurrency is not None else None,
        ]
        return [p or "" for p in parts]


@dataclass(frozen=True)
class ResolvedDevice:
    device_id: str
    source: IdentitySource
    fingerprint: Optional[str] = None

    @property
    def is_new(self) -> bool:
        return self.source is IdentitySource.GENERATED


def rolling_hash(data: str) -> str:
    """32-bit shift-and-subtract string hash, rendered as hex of its magnitude"""
    value = 0
    for char in data:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return format(abs(value), "x")


class DeviceFingerprinter:
    def __init__(self, algorithm: Optional[str] = None) -> None:
        self.algorithm = algorithm or settings.FINGERPRINT_HASH_ALGORITHM

    def fingerprint(self, context: DeviceContext) -> Optional[str]:
        """
        Hash the client signals into a soft-match candidate

        Returns:
            Hex digest, a degraded "weak_" value when the hash algorithm is
            unavailable, or None when the request carries no signals at all
        """
        parts = context.signal_parts()
        if not any(parts):
            return None

        try:
            digest = hashlib.new(self.algorithm)
        except ValueError:
            logger.warning(
                "Fingerprint hash unavailable, using degraded rolling hash",
                extra={'extra_data': {'algorithm': self.algorithm}}
            )
            # Seeded with the clock, so it never matches a stored fingerprint
            return DEGRADED_PREFIX + rolling_hash(f"{context.user_agent}{time.time_ns()}")

        digest.update("|".join(parts).encode("utf-8"))
        return digest.hexdigest()


class IdentityStrategy(Protocol):
    source: IdentitySource

    def try_resolve(self, db: Session, context: DeviceContext) -> Optional[str]:
        ...


class CookieStrategy:
    source = IdentitySource.COOKIE

    def __init__(self, token_service: DeviceTokenService, binding_repo: DeviceBindingRepository) -> None:
        self.token_service = token_service
        self.binding_repo = binding_repo

    def try_resolve(self, db: Session, context: DeviceContext) -> Optional[str]:
        if not context.cookie_value:
            return None
        token = self.token_service.decode_cookie(context.cookie_value)
        if token is None:
            return None
        # The cookie only counts while its binding still exists
        if self.binding_repo.get_active(db, token) is None:
            return None
        return token


class LocalStoreStrategy:
    source = IdentitySource.LOCAL_STORE

    def try_resolve(self, db: Session, context: DeviceContext) -> Optional[str]:
        token = (context.local_token or "").strip()
        if not token.startswith(TOKEN_PREFIX) or len(token) > 255:
            return None
        return token


class FingerprintStrategy:
    source = IdentitySource.FINGERPRINT

    def __init__(self, binding_repo: DeviceBindingRepository) -> None:
        self.binding_repo = binding_repo

    def try_resolve(self, db: Session, context: DeviceContext) -> Optional[str]:
        if not context.fingerprint or context.fingerprint.startswith(DEGRADED_PREFIX):
            return None
        binding = self.binding_repo.find_by_fingerprint(db, context.fingerprint)
        return binding.dv_token if binding else None


class GeneratedStrategy:
    source = IdentitySource.GENERATED

    def __init__(self, token_service: DeviceTokenService) -> None:
        self.token_service = token_service

    def try_resolve(self, db: Session, context: DeviceContext) -> Optional[str]:
        return self.token_service.generate_device_token()


class DeviceIdentityResolver:
    def __init__(
        self,
        strategies: Optional[List[IdentityStrategy]] = None,
        fingerprinter: Optional[DeviceFingerprinter] = None
    ) -> None:
        token_service = DeviceTokenService()
        binding_repo = DeviceBindingRepository()
        self.fingerprinter = fingerprinter or DeviceFingerprinter()
        self.strategies = strategies if strategies is not None else [
            CookieStrategy(token_service, binding_repo),
            LocalStoreStrategy(),
            FingerprintStrategy(binding_repo),
            GeneratedStrategy(token_service),
        ]

    def resolve(self, db: Session, context: DeviceContext) -> ResolvedDevice:
        """
        Resolve the device identity for this request

        Args:
            db: Database session
            context: Cookie, local-storage token and fingerprint signals

        Returns:
            ResolvedDevice: Token, the tier it came from and the fingerprint

        Raises:
            RuntimeError: If no strategy produced a token
        """
        context.fingerprint = self.fingerprinter.fingerprint(context)

        for strategy in self.strategies:
            token = strategy.try_resolve(db, context)
            if token:
                return ResolvedDevice(device_id=token, source=strategy.source, fingerprint=context.fingerprint)

        raise RuntimeError("No identity strategy resolved a device token")
