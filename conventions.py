from cards import Suit
from constraints import HandDescriptor, HandTypeBuilder
from dealer import DealerBuilder, DEFAULT_MAX_ATTEMPTS, as_seat
from evaluator import Evaluator, CONTROLS, zar_points
from shapes import Shape

SUIT_QUALITY = Evaluator([2, 2, 1, 1, 1])

def polish_club_descriptor():
    '''1C opening of the Polish club: weak no trump, any strong hand, or clubs 11-14.'''
    weak_nt = (HandTypeBuilder()
        .add_shape('(4432)').add_shape('(4333)').add_shape('(4414)').add_shape('(5332)')
        .remove_shape('(5x)(2+2+)')
        .with_range(11, 14).build())
    clubs = (HandTypeBuilder()
        .with_longest(Suit.CLUBS)
        .remove_shape('(4x)x5').remove_shape('(5-5-5-)6+')
        .with_range(11, 14).build())
    strong = HandTypeBuilder().add_shape('xxxx').with_range(18, 37).build()
    return HandDescriptor([weak_nt, strong, clubs])

def strong_nt_descriptor(min_hcp = 15, max_hcp = 17):
    return HandDescriptor(HandTypeBuilder.balanced(min_hcp, max_hcp).build())

_weak_two = HandTypeBuilder().add_shape('(63-)4-4-').with_range(5, 10).build()

def weak_two(hand):
    '''5-10 HCP, six-card major scoring more than 3 with A=K=2, Q=J=T=1, fewer than 4 controls.'''
    if not _weak_two.check(hand) or CONTROLS.evaluate(hand) >= 4: return False
    return any(len(hand.in_suit(suit)) == 6 and SUIT_QUALITY.evaluate(hand.in_suit(suit)) > 3
               for suit in (Suit.SPADES, Suit.HEARTS))

_long_major = Shape.from_patterns('(8x)xx', '(7x)xx', '(9x)xx')

def lavazza_3nt(hand):
    return _long_major.includes(hand) and 26 <= zar_points(hand) <= 32

def lavazza_3nt_dealer(seat = None, rng = None, max_attempts = DEFAULT_MAX_ATTEMPTS):
    '''
    Dealer of hands suited to a Lavazza 3NT opening (7-9 card major, 26-32 Zar points)
    for the given seat, or for any seat when seat is None.
    '''
    builder = DealerBuilder()
    if seat is None: builder.with_function(lambda hands: any(lavazza_3nt(hand) for hand in hands))
    else:
        seat = as_seat(seat)
        builder.with_function(lambda hands: lavazza_3nt(hands[seat]))
    return builder.with_rng(rng).with_max_attempts(max_attempts).build()
