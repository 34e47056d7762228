import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import update
from sqlalchemy.orm import Session

from ..auth import ensure_profile, get_current_user, get_db, get_optional_user
from ..config import settings
from ..errors import InsufficientEnergy, NotFound, ValidationFailed
from ..models import Listing, User
from ..reputation import check_can_post, energy_delta
from ..schemas import (
    ListingCreateIn,
    ListingCreatedOut,
    ListingOut,
    ListingsListOut,
    ListingUpdateIn,
    MatchedOut,
)
from ..utils.energy import apply_energy_delta, current_energy


logger = logging.getLogger("youlin.listings")

router = APIRouter(prefix="/listings", tags=["listings"])


def parse_id(raw: str, what: str = "Listing") -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise NotFound(f"{what} not found")


def to_out(l: Listing) -> ListingOut:
    return ListingOut(
        id=str(l.id),
        title=l.title,
        description=l.description or "",
        type=l.type,
        city=l.city,
        area=l.area,
        status=l.status,
        user_id=str(l.user_id),
        created_at=l.created_at,
    )


def _clean_title(raw: str) -> str:
    title = raw.strip()
    if not title:
        raise ValidationFailed("Title cannot be empty", code="title_required")
    return title


def _clean_area(raw: str | None) -> str | None:
    return (raw or "").strip() or None


def _escape_like(raw: str) -> str:
    return raw.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@router.get("", response_model=ListingsListOut)
def browse_listings(
    city: str = Query(default=settings.DEFAULT_CITY, min_length=1),
    area: str | None = Query(None),
    limit: int = Query(100, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    qry = db.query(Listing).filter(Listing.city == city, Listing.status == "active")
    area = _clean_area(area)
    if area:
        qry = qry.filter(Listing.area.ilike(f"%{_escape_like(area)}%", escape="\\"))
    rows = qry.order_by(Listing.created_at.desc()).offset(offset).limit(limit).all()
    return ListingsListOut(listings=[to_out(l) for l in rows])


@router.get("/mine", response_model=ListingsListOut)
def my_listings(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.query(Listing).filter(Listing.user_id == user.id).order_by(Listing.created_at.desc()).limit(200).all()
    return ListingsListOut(listings=[to_out(l) for l in rows])


@router.get("/{listing_id}", response_model=ListingOut)
def get_listing(listing_id: str, user: User | None = Depends(get_optional_user), db: Session = Depends(get_db)):
    l = db.get(Listing, parse_id(listing_id))
    # revoked listings stay visible to their owner only
    if l is None or (l.status != "active" and (user is None or user.id != l.user_id)):
        raise NotFound("Listing not found")
    return to_out(l)


@router.post("", response_model=ListingCreatedOut)
def create_listing(payload: ListingCreateIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    title = _clean_title(payload.title)
    profile = ensure_profile(db, user)
    check_can_post(payload.type, profile.energy)

    delta = energy_delta(payload.type)
    if delta < 0:
        # Debit before the insert; the floor guard keeps concurrent seeks honest.
        floor = max(settings.SEEK_MIN_ENERGY, -delta)
        if not apply_energy_delta(db, user.id, delta, floor=floor):
            raise InsufficientEnergy(
                f"Not enough energy to post a seek request (needs {floor})",
                details={"required": floor},
            )

    l = Listing(
        user_id=user.id,
        title=title,
        description=payload.description.strip(),
        type=payload.type,
        city=payload.city.strip(),
        area=_clean_area(payload.area),
        status="active",
    )
    db.add(l)
    db.flush()
    if delta > 0:
        apply_energy_delta(db, user.id, delta)
    energy = current_energy(db, user.id)
    logger.info("listing %s created by %s type=%s energy=%d", l.id, user.id, l.type, energy)
    return ListingCreatedOut(listing=to_out(l), energy=energy, energy_delta=delta)


@router.patch("/{listing_id}", response_model=MatchedOut)
def update_listing(listing_id: str, payload: ListingUpdateIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    title = _clean_title(payload.title)
    # Ownership lives in the filter: someone else's listing simply matches nothing.
    stmt = (
        update(Listing)
        .where(Listing.id == parse_id(listing_id), Listing.user_id == user.id, Listing.status == "active")
        .values(title=title, description=payload.description.strip(), type=payload.type, area=_clean_area(payload.area))
        .execution_options(synchronize_session=False)
    )
    matched = db.execute(stmt).rowcount
    return MatchedOut(detail="updated", matched=matched)


@router.post("/{listing_id}/revoke", response_model=MatchedOut)
def revoke_listing(listing_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    stmt = (
        update(Listing)
        .where(Listing.id == parse_id(listing_id), Listing.user_id == user.id)
        .values(status="inactive")
        .execution_options(synchronize_session=False)
    )
    matched = db.execute(stmt).rowcount
    if matched:
        logger.info("listing %s revoked by %s", listing_id, user.id)
    return MatchedOut(detail="revoked", matched=matched)
