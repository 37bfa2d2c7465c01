"""
Ownership checks shared by session management and deletion
"""
from typing import Any, Dict, Optional

from app.core.config import settings


def is_elevated(current_user: Dict[str, Any]) -> bool:
    return (current_user.get("role_level") or 0) >= settings.ADMIN_ROLE_LEVEL


def can_manage(owner_id: Optional[int], current_user: Dict[str, Any]) -> bool:
    """Owners manage their own sessions, elevated roles manage all of them"""
    return is_elevated(current_user) or (owner_id is not None and owner_id == current_user.get("user_id"))
