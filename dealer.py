import threading, warnings
from enum import IntEnum
from itertools import count
from time import perf_counter
from typing import NamedTuple
import numpy as np
import pandas as pd
from tqdm import tqdm
from cards import Cards, Hand, Suit, DealerError, DeckExhaustionError, make_rng, parse_cards, MAX_LENGTH
from constraints import as_descriptor

DEFAULT_MAX_ATTEMPTS = 1_000_000
MAX_BOARD_NUMBER = 128
SEAT_LABELS = ['N','E','S','W']
SUIT_LABELS = ['S','H','D','C']
BALANCED = [[3,3,3,4],[2,3,4,4],[2,3,3,5]]

class ConstraintUnsatisfiable(DealerError):
    def __init__(self, attempts:int):
        super().__init__(f'No deal satisfied the constraints in {attempts} attempts.')
        self.attempts = attempts

class DealCancelled(DealerError):
    def __init__(self, attempts:int):
        super().__init__(f'Dealing cancelled after {attempts} attempts.')
        self.attempts = attempts

class Seat(IntEnum):
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    def __str__(self): return SEAT_LABELS[self]

    def next(self): return Seat((self + 1) % 4)

    def partner(self): return Seat((self + 2) % 4)

    def is_same_line(self, other): return self % 2 == int(other) % 2

    def iter_from(self):
        '''Endless rotation starting with the seat after this one.'''
        seat = self
        while True:
            seat = seat.next()
            yield seat

    def long_str(self): return self.name.title()

    @classmethod
    def from_char(cls, char: str):
        char = str(char).strip().upper()[:1]
        if char not in SEAT_LABELS: raise DealerError(f'Unrecognized seat: {char!r}.')
        return cls(SEAT_LABELS.index(char))

    @classmethod
    def from_board_number(cls, number:int): return cls((number - 1) % 4)

def as_seat(seat):
    if isinstance(seat, Seat): return seat
    if isinstance(seat, str): return Seat.from_char(seat)
    return Seat(seat)

class Vulnerability(IntEnum):
    NONE = 0
    NS = 1
    EW = 2
    ALL = 3

    @property
    def pbn_name(self): return ['None','NS','EW','Both'][self]

    @property
    def lin_code(self): return 'oneb'[self]

    def __str__(self): return self.pbn_name

    @classmethod
    def from_board_number(cls, number:int):
        return cls(int(number - 1 + np.floor((number - 1) / 4)) % 4)

    @classmethod
    def from_str(cls, name: str):
        name = str(name).replace('"','').strip().lower()
        if name in ('none', 'love', '-', ''): return cls.NONE
        if name == 'ns': return cls.NS
        if name == 'ew': return cls.EW
        if name in ('both', 'all'): return cls.ALL
        raise DealerError(f'Unrecognized vulnerability: {name!r}.')

    def is_vulnerable(self, seat):
        if self == Vulnerability.ALL: return True
        if self == Vulnerability.NONE: return False
        return (as_seat(seat) % 2 == 0) == (self == Vulnerability.NS)

    def next(self):
        return [Vulnerability.NS, Vulnerability.EW, Vulnerability.ALL, Vulnerability.NONE][self]

    def cycle(self):
        '''Endless iterator None -> NS -> EW -> Both -> None ..., starting from this one.'''
        state = self
        while True:
            yield state
            state = state.next()

class Hands(NamedTuple):
    north: Hand
    east: Hand
    south: Hand
    west: Hand

class Deal():
    '''
    Four hands in seat order (N, E, S, W) partitioning the deck, with a board
    number and a vulnerability.
    '''
    def __init__(self, hands, vulnerability = Vulnerability.NONE, number:int = 1):
        hands = list(hands)
        if len(hands) != 4: raise DealerError(f'A deal needs 4 hands, got {len(hands)}.')
        hands = Hands(*(h if isinstance(h, Hand) else Hand(h) for h in hands))
        seen = Cards()
        for seat, hand in zip(Seat, hands):
            if len(hand) != MAX_LENGTH:
                raise DealerError(f'{seat.long_str()} holds {len(hand)} cards instead of 13.')
            if seen & hand: raise DeckExhaustionError(f'card dealt twice: {seen & hand}')
            seen = seen + hand
        self._hands = hands
        self._vulnerability = Vulnerability(vulnerability)
        self._number = int(number)

    @classmethod
    def random(cls, rng = None, vulnerability = None, number:int = 1):
        rng = make_rng(rng)
        if vulnerability is None: vulnerability = Vulnerability.from_board_number(number)
        deck = Cards.ALL
        hands = [Hand(deck.pick(MAX_LENGTH, rng)) for _ in range(3)] + [Hand(deck)]
        return cls(hands, vulnerability, number)

    @classmethod
    def from_pbn(cls, pbn: str, number:int = 1, vulnerability = None):
        '''Parses "N:AKQ2.KQ32.AK2.32 ..."; the first hand may belong to any seat.'''
        pbn = str(pbn).replace('"','').strip()
        first, sep, rest = pbn.partition(':')
        holdings = rest.split()
        if not sep or first.strip().upper() not in SEAT_LABELS or len(holdings) != 4:
            raise DealerError(f'PBN format deal not properly defined: {pbn!r}.')
        start = Seat.from_char(first)
        hands = [None] * 4
        for offset, holding in enumerate(holdings):
            hands[(start + offset) % 4] = Hand.from_str(holding)
        if vulnerability is None: vulnerability = Vulnerability.from_board_number(number)
        return cls(hands, vulnerability, number)

    @property
    def hands(self): return self._hands

    @property
    def vulnerability(self): return self._vulnerability

    @property
    def number(self): return self._number

    @property
    def dealer(self): return Seat.from_board_number(self._number)

    @property
    def north(self): return self._hands.north
    @property
    def east(self): return self._hands.east
    @property
    def south(self): return self._hands.south
    @property
    def west(self): return self._hands.west

    def __getitem__(self, seat): return self._hands[as_seat(seat)]

    def __iter__(self): return iter(self._hands)

    def __eq__(self, other):
        if not isinstance(other, Deal): return NotImplemented
        return (self._hands, self._vulnerability, self._number) == (other._hands, other._vulnerability, other._number)

    def __hash__(self): return hash((tuple(h.bits for h in self._hands), self._vulnerability, self._number))

    def check(self, predicate): return bool(predicate(self._hands))

    def pbn_deal(self): return 'N:' + ' '.join(hand.pbn() for hand in self._hands)

    def as_pbn(self):
        pbn_string = [
            f'[Board "{self._number}"]',
            f'[Dealer "{self.dealer}"]',
            f'[Vulnerable "{self._vulnerability.pbn_name}"]',
            f'[Deal "{self.pbn_deal()}"]'
            ]
        return '\n'.join(pbn_string)

    def as_lin(self):
        # LIN lists hands from South clockwise; dealer digits are 1=S, 2=W, 3=N, 4=E
        order = [Seat.SOUTH, Seat.WEST, Seat.NORTH, Seat.EAST]
        dealer = order.index(self.dealer) + 1
        hands = ','.join(''.join(suit.latin + self._hands[seat].holding_str(suit) for suit in Suit) for seat in order)
        return f'st||md|{dealer}{hands}|sv|{self._vulnerability.lin_code}|rh||ah|Board {self._number}|'

    def as_short(self):
        north, east, south, west = (str(hand) for hand in self._hands)
        width = max(len(west) + len(east) + 4, len(north), len(south), 40)
        return '\n'.join([north.center(width), west + east.rjust(width - len(west)), south.center(width)])

    def as_long(self):
        north, east, south, west = (hand.long_str().split('\n') for hand in self._hands)
        pad = max(len(line) for line in west) + 4
        mid = max(len(line) for line in north + south) + 4
        lines = [' ' * pad + line for line in north]
        lines += [w.ljust(pad + mid) + e for w, e in zip(west, east)]
        lines += [' ' * pad + line for line in south]
        return '\n'.join(line.rstrip() for line in lines)

    def __str__(self): return self.as_short()

    def __repr__(self): return f'Deal({self.pbn_deal()!r}, {self._vulnerability.name}, {self._number})'

    def __format__(self, format_spec):
        if format_spec in ('', 'short'): return self.as_short()
        if format_spec == 'long': return self.as_long()
        if format_spec == 'pbn': return self.as_pbn()
        if format_spec == 'lin': return self.as_lin()
        raise ValueError(f'Unknown format for a deal: {format_spec!r}.')

    def to_frame(self):
        outdf = pd.DataFrame(index = SEAT_LABELS, columns = SUIT_LABELS, data = '')
        for i, hand in enumerate(self._hands):
            outdf.iloc[i,:] = [hand.holding_str(suit) for suit in Suit]
        return outdf

    def info_table(self):
        outdf = pd.DataFrame(index = SEAT_LABELS,
                             columns = ['HCP','Balanced','Singleton','Void','Long_7','Long_8'],
                             data = 0)
        for i, hand in enumerate(self._hands):
            shape = hand.shape()
            outdf.iloc[i,0] = hand.hcp()
            outdf.iloc[i,1] = 1 if sorted(shape) in BALANCED else 0
            outdf.iloc[i,2] = sum(s == 1 for s in shape)
            outdf.iloc[i,3] = sum(s == 0 for s in shape)
            outdf.iloc[i,4] = sum(s >= 7 for s in shape)
            outdf.iloc[i,5] = sum(s >= 8 for s in shape)
        return outdf

def recap(deals):
    '''Average HCP and summed shape features per seat over a list of deals.'''
    outdf = sum(deal.info_table() for deal in deals)
    outdf['HCP'] = outdf['HCP'] / len(deals)
    return outdf

def check(deals, *predicates):
    '''
    Boolean mask of the deals passing any of the predicates (each takes the Hands of a deal).
    Chain calls on the subset to require all of them.
    '''
    passed = np.array([[deal.check(p) for deal in deals] for p in predicates], dtype = bool).reshape(len(predicates), len(deals))
    passed = passed.any(axis = 0)
    n = len(deals)
    print(f'{passed.sum()}/{n}({passed.sum()/max(n, 1):.2f}) deals passed the constraint check.')
    return passed

def write_pbn(deals, path = None):
    text = '\n\n'.join(deal.as_pbn() for deal in deals) + '\n'
    if path is not None:
        with open(path, 'w') as f: f.write(text)
    return text

def read_pbn(text: str):
    '''Deals of a PBN text; board numbers default to the running count when a [Board] tag is missing.'''
    deals = []
    idx = 1
    vul = None
    for x in text.splitlines():
        x = x.strip()
        if x.startswith('[Board '):
            idx = int(x[7:-1].replace('"','').strip())
        elif x.startswith('[Vulnerable '):
            vul = Vulnerability.from_str(x[12:-1])
        elif x.startswith('[Deal '):
            deals.append(Deal.from_pbn(x[6:-1], idx, vul))
            idx += 1
            vul = None
    return deals

class Dealer():
    '''
    Produces random deals satisfying the constraints by rejection sampling:
    fill every seat from the cards not predealt, keep the deal when all hand
    descriptors and the accept function pass, otherwise try again.
    '''
    def __init__(
            self,
            predeal = None,
            descriptors = None,
            accept = None,
            vulnerability = Vulnerability.NONE,
            max_attempts: int | None = DEFAULT_MAX_ATTEMPTS,
            rng: np.random.Generator | int | None = None,
        ):
        self.predeal = _per_seat(predeal, _as_cards)
        self.descriptors = _per_seat(descriptors, as_descriptor)
        self.accept = accept
        self.vulnerability = Vulnerability(vulnerability)
        if max_attempts is not None and max_attempts <= 0: raise DealerError('max_attempts must be a positive integer or None.')
        self.max_attempts = max_attempts
        self.rng = make_rng(rng)

        used = Cards()
        for seat, cards in zip(Seat, self.predeal):
            if cards is None: continue
            if len(cards) > MAX_LENGTH:
                raise DealerError(f'{seat.long_str()} is predealt {len(cards)} cards, more than 13.')
            if used & cards: raise DeckExhaustionError(f'card dealt twice: {used & cards}')
            used = used + cards
        self.deck = Cards.ALL - used

    def __str__(self):
        lines = ['Dealer:']
        for seat in Seat:
            if self.predeal[seat] is not None: lines.append(f'  {seat.long_str()} holds {Cards(self.predeal[seat])}')
            if self.descriptors[seat] is not None: lines.append(f'  {seat.long_str()}: {self.descriptors[seat]}')
        if self.accept is not None: lines.append(f'  accept: {getattr(self.accept, "__name__", self.accept)}')
        lines.append(f'  vulnerability: {self.vulnerability}')
        return '\n'.join(lines)

    def _draw(self, rng):
        deck = self.deck.copy()
        hands = []
        for cards in self.predeal:
            if cards is None: hands.append(Hand(deck.pick(MAX_LENGTH, rng)))
            elif len(cards) < MAX_LENGTH: hands.append(Hand(cards + deck.pick(MAX_LENGTH - len(cards), rng)))
            else: hands.append(Hand(cards))
        return Hands(*hands)

    def _accepts(self, hands):
        for descriptor, hand in zip(self.descriptors, hands):
            if descriptor is not None and not descriptor.check(hand): return False
        return self.accept is None or bool(self.accept(hands))

    def deal(self, number:int = 1, cancel: threading.Event | None = None, rng = None):
        '''
        One deal satisfying every constraint. Raises ConstraintUnsatisfiable after
        max_attempts rejections, DealCancelled once the cancel event is set.
        '''
        rng = self.rng if rng is None else make_rng(rng)
        attempts = count(1) if self.max_attempts is None else range(1, self.max_attempts + 1)
        for attempt in attempts:
            if cancel is not None and cancel.is_set(): raise DealCancelled(attempt - 1)
            hands = self._draw(rng)
            if self._accepts(hands): return Deal(hands, self.vulnerability, number)
        raise ConstraintUnsatisfiable(self.max_attempts)

    def deal_many(self, n:int, progress = False, verbose = False, cancel = None):
        if n <= 0: raise ValueError('n must be a positive integer.')
        start = perf_counter()
        deals = []
        for i in tqdm(range(n), desc = 'Dealing hands', disable = not progress):
            deals.append(self.deal(number = i % MAX_BOARD_NUMBER + 1, cancel = cancel))
        end = perf_counter()
        if verbose: print(f'Dealt {n} hands in {end-start:.2f} seconds ({n/(end-start):.2f} hands/second).')
        return deals

class DealerBuilder():
    '''
    DealerBuilder().predeal(Seat.NORTH, 'SAKQHAKQDAKQCAKQJ')
                   .with_hand_descriptor(Seat.SOUTH, descriptor)
                   .with_function(lambda hands: ...).build()
    '''
    def __init__(self):
        self.hands = [None] * 4
        self.descriptors = [None] * 4
        self.accept = None
        self.vulnerability = Vulnerability.NONE
        self.max_attempts = DEFAULT_MAX_ATTEMPTS
        self.rng = None
        self.deck = Cards.ALL

    def predeal(self, seat, cards):
        seat = as_seat(seat)
        cards = _as_cards(cards)
        if len(cards) > MAX_LENGTH:
            raise DealerError(f'{seat.long_str()} is predealt {len(cards)} cards, more than 13.')
        if self.hands[seat] is not None:
            warnings.warn(f'{seat.long_str()} was already predealt; the previous cards are returned to the deck.')
            self.deck = self.deck + self.hands[seat]
        if not cards.issubset(self.deck): raise DeckExhaustionError(f'card dealt twice: {cards - self.deck}')
        self.deck = self.deck - cards
        self.hands[seat] = cards
        return self

    def with_function(self, accept):
        self.accept = accept
        return self

    def with_hand_descriptor(self, seat, descriptor):
        self.descriptors[as_seat(seat)] = as_descriptor(descriptor)
        return self

    def with_vulnerability(self, vulnerability):
        self.vulnerability = Vulnerability(vulnerability)
        return self

    def with_max_attempts(self, max_attempts: int | None):
        self.max_attempts = max_attempts
        return self

    def with_rng(self, rng):
        self.rng = rng
        return self

    def build(self):
        return Dealer(self.hands, self.descriptors, self.accept, self.vulnerability, self.max_attempts, self.rng)

def _as_cards(cards):
    if cards is None or isinstance(cards, Cards): return cards
    if isinstance(cards, str): return parse_cards(cards)
    return Cards.from_cards(cards)

def _per_seat(values, convert):
    '''Normalises a {seat: value} mapping or a 4-item sequence into a list indexed by Seat.'''
    out = [None] * 4
    if values is None: return out
    if isinstance(values, dict):
        for seat, value in values.items(): out[as_seat(seat)] = convert(value)
        return out
    values = list(values)
    if len(values) != 4: raise DealerError('Per-seat settings need exactly 4 entries (N, E, S, W).')
    return [convert(value) for value in values]
