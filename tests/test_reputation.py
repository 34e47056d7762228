import pytest

from app.errors import InsufficientEnergy
from app.reputation import TIERS, can_post, check_can_post, energy_delta, tier_for


@pytest.mark.parametrize("energy", [-5, 0, 1])
def test_lowest_tier_cannot_seek(energy):
    tier = tier_for(energy)
    assert tier.title == "Dormant"
    assert tier.can_seek is False


@pytest.mark.parametrize(
    "energy,title",
    [(2, "Glimmer"), (9, "Glimmer"), (10, "Firefly"), (29, "Firefly"), (30, "Lantern"), (99, "Lantern"), (100, "Beacon"), (10_000, "Beacon")],
)
def test_tier_breakpoints(energy, title):
    tier = tier_for(energy)
    assert tier.title == title
    assert tier.can_seek is True


def test_tiers_sorted_descending():
    floors = [t.min_energy for t in TIERS]
    assert floors == sorted(floors, reverse=True)


def test_balance_policy_gate_and_deltas():
    assert energy_delta("offer", "balance") == 5
    assert energy_delta("seek", "balance") == -3
    check_can_post("seek", 3, "balance")
    with pytest.raises(InsufficientEnergy) as exc:
        check_can_post("seek", 2, "balance")
    assert exc.value.code == "energy_insufficient"
    # offers are never gated
    check_can_post("offer", 0, "balance")


def test_tier_policy_gate_has_no_deltas():
    assert energy_delta("offer", "tier") == 0
    assert energy_delta("seek", "tier") == 0
    assert can_post("seek", 2, "tier") is True
    assert can_post("seek", 1, "tier") is False
    assert can_post("offer", 0, "tier") is True
