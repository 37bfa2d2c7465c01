"""
Device Binding Repository - Data access layer for device identity links
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from app.models.device_binding import DeviceBinding


class DeviceBindingRepository(BaseRepository[DeviceBinding]):
    def __init__(self):
        super().__init__(DeviceBinding)

    def get_active(self, db: Session, token: str) -> Optional[DeviceBinding]:
        return db.query(DeviceBinding).filter(
            DeviceBinding.dv_token == token,
            DeviceBinding.dv_is_active.is_(True)
        ).first()

    def find_by_fingerprint(self, db: Session, fingerprint: str) -> Optional[DeviceBinding]:
        """Most recently linked active device with this fingerprint"""
        return db.query(DeviceBinding).filter(
            DeviceBinding.dv_fingerprint == fingerprint,
            DeviceBinding.dv_is_active.is_(True)
        ).order_by(DeviceBinding.dv_linked_at.desc()).first()

    def get_member_id(self, db: Session, token: str) -> Optional[str]:
        """Member linked to an active device, if any"""
        binding = self.get_active(db, token)
        return binding.dv_member_id if binding else None

    def stage_link(
        self,
        db: Session,
        token: str,
        fingerprint: Optional[str],
        member_id: Optional[str],
        linked_at: datetime
    ) -> DeviceBinding:
        """Insert or refresh the binding without committing"""
        binding = db.query(DeviceBinding).filter(DeviceBinding.dv_token == token).first()
        if binding is None:
            binding = DeviceBinding(dv_token=token, dv_is_active=True)
            db.add(binding)
        if fingerprint:
            binding.dv_fingerprint = fingerprint
        if member_id:
            binding.dv_member_id = member_id
        binding.dv_is_active = True
        binding.dv_linked_at = linked_at
        return binding
