from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import ensure_profile, get_current_user, get_db
from ..config import settings
from ..models import Listing, User
from ..reputation import TIERS, ReputationTier, tier_for
from ..schemas import ProfileOut, TierOut, TiersOut


router = APIRouter(prefix="/profile", tags=["profile"])


def tier_out(tier: ReputationTier) -> TierOut:
    return TierOut(title=tier.title, color=tier.color, can_seek=tier.can_seek, min_energy=tier.min_energy)


@router.get("", response_model=ProfileOut)
def my_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = ensure_profile(db, user)
    active = db.query(Listing).filter(Listing.user_id == user.id, Listing.status == "active").count()
    return ProfileOut(
        user_id=str(user.id),
        email=user.email,
        energy=profile.energy,
        tier=tier_out(tier_for(profile.energy)),
        active_listings=active,
    )


@router.get("/tiers", response_model=TiersOut)
def reputation_tiers():
    return TiersOut(policy=settings.ENERGY_POLICY, tiers=[tier_out(t) for t in TIERS])
