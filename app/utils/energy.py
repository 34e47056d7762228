import logging
import uuid
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..models import Profile


logger = logging.getLogger("youlin.energy")


def apply_energy_delta(db: Session, user_id: uuid.UUID, delta: int, *, floor: int | None = None) -> bool:
    """Atomically add `delta` to a profile's energy.

    With `floor`, the update only matches while energy >= floor, so a debit can
    never race another debit below the floor. Returns False when nothing matched.
    """
    if delta == 0:
        return True
    stmt = (
        update(Profile)
        .where(Profile.id == user_id)
        .values(energy=Profile.energy + delta, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if floor is not None:
        stmt = stmt.where(Profile.energy >= floor)
    matched = db.execute(stmt).rowcount
    if matched:
        logger.info("energy %+d for user %s", delta, user_id)
    return bool(matched)


def current_energy(db: Session, user_id: uuid.UUID) -> int:
    p = db.get(Profile, user_id, populate_existing=True)
    return p.energy if p is not None else 0
