"""
Submission Guard Service - One submission per (session or code, device)
"""
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.repositories.submission_marker_repository import SubmissionMarkerRepository


@dataclass(frozen=True)
class ReservationCheck:
    already_submitted: bool
    marker_key: str


class SubmissionGuardService:
    """
    Looks up duplicate markers.

    The check itself never writes. When it passes the coordinator stages the
    marker in the same transaction as the attendance record; the marker's
    primary key turns a concurrent second insert into an IntegrityError.
    A marker whose record was never written keeps blocking that device.
    """

    def __init__(self) -> None:
        self.marker_repo = SubmissionMarkerRepository()

    def check_and_reserve(self, db: Session, scope_key: str, device_id: str) -> ReservationCheck:
        key = self.marker_repo.build_key(scope_key, device_id)
        return ReservationCheck(
            already_submitted=self.marker_repo.marker_exists(db, key),
            marker_key=key
        )

    def stage_marker(self, db: Session, scope_key: str, device_id: str) -> None:
        self.marker_repo.add_marker(db, scope_key, device_id)
