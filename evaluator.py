import numpy as np
from cards import Cards, Suit

class Evaluator():
    '''
    Point count given by a weight per rank, listed from the Ace down:
    Evaluator([4, 3, 2, 1]) is the Milton count, Evaluator([2, 1]) counts controls.
    '''
    def __init__(self, values):
        values = np.asarray(values, dtype = int)
        assert values.ndim == 1 and len(values) <= 13, 'At most 13 rank values (Ace first).'
        self.weights = np.concatenate([values, np.zeros(13 - len(values), dtype = int)])

    def evaluate(self, cards: Cards):
        return int(cards.to_array().sum(axis = 0) @ self.weights)

    def __call__(self, cards): return self.evaluate(cards)

    def __repr__(self):
        nonzero = np.flatnonzero(self.weights)
        values = self.weights[:nonzero.max() + 1].tolist() if len(nonzero) else []
        return f'Evaluator({values})'

HCP = Evaluator([4, 3, 2, 1])
CONTROLS = Evaluator([2, 1])
ZAR_HONOURS = Evaluator([6, 4, 2, 1])

def _length_and_concentration(hand):
    hcp = HCP.evaluate(hand)
    suits = sorted((hand.in_suit(suit) for suit in Suit), key = len)
    shortest, third, second, longest = suits
    points = len(longest) + len(second) + len(longest) - len(shortest)
    top_two = HCP.evaluate(longest) + HCP.evaluate(second)
    weak_concentration = 10 < hcp < 15 and top_two >= hcp - 1
    strong_concentration = hcp > 14 and top_two + HCP.evaluate(third) >= hcp - 1
    if weak_concentration or strong_concentration: points += 1
    if points == 25 and len(hand.spades()) > 3: points += 1
    return points

def _short_honours_malus(hand):
    malus = 0
    for suit in Suit:
        holding = hand.in_suit(suit)
        if len(holding) <= 1: malus += len(holding.kings()) + len(holding.queens()) + len(holding.jacks())
        elif len(holding) == 2: malus += len(holding.queens()) + len(holding.jacks())
    return malus

def zar_points(hand):
    '''
    Zar count: 6-4-2-1 honours, plus the two longest suits and the gap between
    longest and shortest, with a bonus for honours concentrated in the long suits
    and a malus for unsupported honours in short suits.
    '''
    return ZAR_HONOURS.evaluate(hand) + _length_and_concentration(hand) - _short_honours_malus(hand)
