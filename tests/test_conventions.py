import pytest

from cards import Hand
from conventions import lavazza_3nt, lavazza_3nt_dealer, polish_club_descriptor, strong_nt_descriptor, weak_two
from dealer import Seat


@pytest.fixture(scope="module")
def polish_club():
    return polish_club_descriptor()


@pytest.mark.parametrize(
    "pbn, opens",
    [
        ("AK52.K532.Q2.432", True),    # weak no trump 4432
        ("AK52.K532.Q532.4", True),    # 4441 in the no trump range
        ("K32.Q32.A2.AJ432", True),    # 5332 with five clubs
        ("AKJ52.K32.Q2.432", False),   # five-card major 5332
        ("A2.K3.Q432.AJ432", True),    # unbalanced with long clubs
        ("AKQ2.AK32.AK2.32", True),    # strong
        ("Q52.K532.Q2.J432", False),   # too weak
    ],
)
def test_polish_club(polish_club, pbn, opens):
    assert polish_club.check(Hand.from_str(pbn)) is opens


def test_strong_nt():
    descriptor = strong_nt_descriptor()
    assert descriptor.check(Hand.from_str("AK52.K53.A32.K32"))
    assert not descriptor.check(Hand.from_str("AK52.K53.A32.432"))


@pytest.mark.parametrize(
    "pbn, expected",
    [
        ("Q2.KQJ432.432.32", True),
        ("AKQJ32.32.432.32", True),
        ("Q2.J98432.A32.K2", False),   # poor suit
        ("Q2.KQJ432.4.5432", True),    # side four-card minor and a singleton
        ("KQJ432.Q2.AK2.32", False),   # too many controls and points
    ],
)
def test_weak_two(pbn, expected):
    assert weak_two(Hand.from_str(pbn)) is expected


def test_lavazza_3nt():
    assert lavazza_3nt(Hand.from_str("AKQJ5432.32.32.2"))
    assert not lavazza_3nt(Hand.from_str("QJ876532.32.32.2"))


def test_lavazza_3nt_dealer(rng):
    dealer = lavazza_3nt_dealer(Seat.SOUTH, rng=rng)
    for deal in dealer.deal_many(3):
        assert lavazza_3nt(deal.south)
    any_seat = lavazza_3nt_dealer(rng=rng).deal()
    assert any(lavazza_3nt(hand) for hand in any_seat)
