"""Energy reputation policy.

Energy is an integer score earned by giving (offer posts) and spent by asking
(seek posts). Two gating strategies exist:

- ``balance``: a seek needs at least ``SEEK_MIN_ENERGY``; every successful post
  then moves the score by a fixed delta (+5 offer, -3 seek by default).
- ``tier``: a seek needs a tier whose ``can_seek`` flag is set; the score does
  not move on posting.
"""
from dataclasses import dataclass

from .config import settings
from .errors import InsufficientEnergy


@dataclass(frozen=True)
class ReputationTier:
    title: str
    color: str
    can_seek: bool
    min_energy: int


# Ordered from highest to lowest; the first tier whose floor is reached wins.
# Anything below the last floor (negative energy) still lands in the last tier.
TIERS: tuple[ReputationTier, ...] = (
    ReputationTier("Beacon", "#E76F51", True, 100),
    ReputationTier("Lantern", "#D4A017", True, 30),
    ReputationTier("Firefly", "#5F743A", True, 10),
    ReputationTier("Glimmer", "#A3B18A", True, 2),
    ReputationTier("Dormant", "#9CA3AF", False, 0),
)


def tier_for(energy: int) -> ReputationTier:
    for tier in TIERS:
        if energy >= tier.min_energy:
            return tier
    return TIERS[-1]


def energy_delta(listing_type: str, policy: str | None = None) -> int:
    policy = policy or settings.ENERGY_POLICY
    if policy != "balance":
        return 0
    return settings.OFFER_ENERGY_DELTA if listing_type == "offer" else settings.SEEK_ENERGY_DELTA


def check_can_post(listing_type: str, energy: int, policy: str | None = None) -> None:
    """Raise InsufficientEnergy when the policy forbids this post."""
    if listing_type != "seek":
        return
    policy = policy or settings.ENERGY_POLICY
    if policy == "tier":
        tier = tier_for(energy)
        if not tier.can_seek:
            raise InsufficientEnergy(
                f"Tier {tier.title} cannot post seek requests",
                details={"energy": energy, "tier": tier.title},
            )
        return
    if energy < settings.SEEK_MIN_ENERGY:
        raise InsufficientEnergy(
            f"Not enough energy to post a seek request (needs {settings.SEEK_MIN_ENERGY})",
            details={"energy": energy, "required": settings.SEEK_MIN_ENERGY},
        )


def can_post(listing_type: str, energy: int, policy: str | None = None) -> bool:
    try:
        check_can_post(listing_type, energy, policy)
    except InsufficientEnergy:
        return False
    return True
