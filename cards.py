from dataclasses import dataclass
from enum import IntEnum
import numpy as np

SUIT_LANE = 16 # bits reserved per suit, ranks live in bits 2..14 of each lane
MAX_LENGTH = 13
MAX_HCP_IN_HAND = 37
MAX_HCP_IN_DECK = 40

RANK_CHARS = '??23456789TJQKA' # indexed by rank
RANK_NAMES = ['?', '?', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A']
_RANK_FROM_CHAR = {c: r for r, c in enumerate(RANK_CHARS) if c != '?'}
_SUIT_FROM_CHAR = {
    'S': 0, 's': 0, '♠': 0,
    'H': 1, 'h': 1, '♥': 1,
    'D': 2, 'd': 2, '♦': 2,
    'C': 3, 'c': 3, '♣': 3,
}

class DealerError(ValueError):
    '''Base error of the dealing layer: malformed hands, predeals or dealer settings.'''

class DeckExhaustionError(DealerError):
    '''A draw needed more cards than the set holds (or a card was handed out twice).'''

def make_rng(rng = None):
    '''
    None -> fresh default generator, int -> seeded generator, Generator -> used as is.
    '''
    if isinstance(rng, np.random.Generator): return rng
    if rng is None: return np.random.default_rng()
    if isinstance(rng, (int, np.integer)) and not isinstance(rng, bool):
        return np.random.default_rng(rng)
    raise ValueError(f'Cannot build a random generator from {rng!r}.')

class Suit(IntEnum):
    SPADES = 0
    HEARTS = 1
    DIAMONDS = 2
    CLUBS = 3

    def __str__(self): return self.unicode

    @property
    def latin(self): return 'SHDC'[self]

    @property
    def unicode(self): return '♠♥♦♣'[self]

    @property
    def title(self): return self.name.title()

    def next(self):
        '''Next suit in S, H, D, C order, None after clubs.'''
        return None if self == Suit.CLUBS else Suit(self + 1)

    def rotating_next(self): return Suit((self + 1) % 4)

    @classmethod
    def from_char(cls, char: str):
        if char not in _SUIT_FROM_CHAR: raise ValueError(f'Unrecognized suit: {char!r}.')
        return cls(_SUIT_FROM_CHAR[char])

@dataclass(frozen = True, order = True)
class Card():
    offset: int # rank + 16 * suit

    @classmethod
    def new(cls, suit, rank: int):
        if not 2 <= rank <= 14: raise ValueError(f'Rank must be between 2 and 14, got {rank}.')
        return cls(rank + SUIT_LANE * int(suit))

    @classmethod
    def from_str(cls, token: str):
        '''Accepts SA, AS, S10, 10S, ST, TS (any case, unicode suits allowed).'''
        token = token.strip()
        if len(token) < 2: raise ValueError(f'Unrecognized card token: {token!r}.')
        if token[0] in _SUIT_FROM_CHAR and (token[1:].upper() in _RANK_FROM_CHAR or token[1:] == '10'):
            suit, rank = token[0], token[1:]
        elif token[-1] in _SUIT_FROM_CHAR:
            suit, rank = token[-1], token[:-1]
        else: raise ValueError(f'Unrecognized card token: {token!r}.')
        rank = 'T' if rank == '10' else rank.upper()
        if rank not in _RANK_FROM_CHAR: raise ValueError(f'Unrecognized card token: {token!r}.')
        return cls.new(Suit.from_char(suit), _RANK_FROM_CHAR[rank])

    @property
    def suit(self): return Suit(self.offset >> 4)

    @property
    def rank(self): return self.offset % SUIT_LANE

    @property
    def rankchar(self): return RANK_CHARS[self.rank]

    @property
    def rankname(self): return RANK_NAMES[self.rank]

    def __repr__(self): return f'{self.rankname}{self.suit.latin}'

class _CardsConstant():
    # every access hands out a fresh set, so pick() on it never corrupts the constant
    def __init__(self, bits): self.bits = bits
    def __get__(self, obj, owner): return owner(self.bits)

def _rank_mask(rank):
    return sum(1 << (rank + SUIT_LANE * suit) for suit in range(4))

_SUIT_MASK = 0x7ffc
_LANE_MASK = 0xffff

class Cards():
    '''
    Set of cards stored as a single integer bitset (one 16-bit lane per suit).
    Everything returns new sets except pick(), which removes the drawn cards.
    '''
    __slots__ = ('bits',)

    SPADES = _CardsConstant(_SUIT_MASK)
    HEARTS = _CardsConstant(_SUIT_MASK << 16)
    DIAMONDS = _CardsConstant(_SUIT_MASK << 32)
    CLUBS = _CardsConstant(_SUIT_MASK << 48)
    ALL = _CardsConstant(_SUIT_MASK | _SUIT_MASK << 16 | _SUIT_MASK << 32 | _SUIT_MASK << 48)
    EMPTY = _CardsConstant(0)
    ACES = _CardsConstant(_rank_mask(14))
    KINGS = _CardsConstant(_rank_mask(13))
    QUEENS = _CardsConstant(_rank_mask(12))
    JACKS = _CardsConstant(_rank_mask(11))
    TENS = _CardsConstant(_rank_mask(10))

    def __init__(self, bits = 0):
        if isinstance(bits, Cards): bits = bits.bits
        self.bits = int(bits)

    @classmethod
    def from_cards(cls, cards):
        bits = 0
        for card in cards: bits |= 1 << card.offset
        return cls(bits)

    @classmethod
    def from_str(cls, string: str):
        '''
        Suit letters (or symbols) switch the current suit, rank characters add cards:
        "SAKQHAKQDAKQCAKQJ", "♠AK2♥Q". Tens are T, 1 or 10. Spaces are ignored, and
        so are dots between suit letters. Without suit letters a dotted string is read
        as four PBN holdings, spades first. A repeated card is an error.
        '''
        if '.' in string and not any(c in _SUIT_FROM_CHAR for c in string):
            holdings = string.strip().split('.')
            if len(holdings) != 4:
                raise ValueError(f'A PBN hand needs 4 suit holdings separated by dots: {string!r}.')
            string = ''.join(s.latin + h for s, h in zip(Suit, holdings))
        bits = 0
        suit = Suit.SPADES
        i = 0
        while i < len(string):
            char = string[i]
            card = None
            if char in _SUIT_FROM_CHAR: suit = Suit.from_char(char)
            elif char in '. \t': pass
            elif char == '1':
                card = Card.new(suit, 10)
                if string[i+1:i+2] == '0': i += 1
            elif char.upper() in _RANK_FROM_CHAR:
                card = Card.new(suit, _RANK_FROM_CHAR[char.upper()])
            else: raise ValueError(f'Unrecognized character {char!r} in cards {string!r}.')
            if card is not None:
                if bits >> card.offset & 1: raise ValueError(f'Card {card!r} repeated in cards {string!r}.')
                bits |= 1 << card.offset
            i += 1
        return cls(bits)

    @classmethod
    def from_array(cls, array: np.ndarray):
        '''Inverse of to_array: (4, 13) boolean array, axis 1 ordered Ace down to 2.'''
        array = np.asarray(array, dtype = bool)
        assert array.shape == (4, 13), 'Array must be of shape (4,13).'
        bits = 0
        for suit, idx in zip(*np.nonzero(array)):
            bits |= 1 << (14 - int(idx) + SUIT_LANE * int(suit))
        return cls(bits)

    def to_array(self):
        array = np.zeros((4, 13), dtype = bool)
        for card in self: array[card.suit, 14 - card.rank] = True
        return array

    def copy(self): return type(self)(self.bits)

    def as_bits(self): return self.bits

    def __len__(self): return self.bits.bit_count()

    def __bool__(self): return self.bits != 0

    def is_empty(self): return self.bits == 0

    def __eq__(self, other):
        if not isinstance(other, Cards): return NotImplemented
        return self.bits == other.bits

    def __hash__(self): return hash(self.bits)

    def __contains__(self, card): return self.contains(card)

    def contains(self, card): return self.bits & (1 << card.offset) != 0

    def insert(self, card): return Cards(self.bits | 1 << card.offset)

    def remove(self, card): return Cards(self.bits & ~(1 << card.offset))

    def union(self, other): return Cards(self.bits | other.bits)

    def difference(self, other): return Cards(self.bits & ~other.bits)

    def intersection(self, other): return Cards(self.bits & other.bits)

    def issubset(self, other): return self.bits & ~other.bits == 0

    __add__ = union
    __or__ = union
    __sub__ = difference
    __and__ = intersection

    def in_suit(self, suit):
        shift = SUIT_LANE * int(suit)
        return Cards(self.bits & (_LANE_MASK << shift))

    def spades(self): return self.in_suit(Suit.SPADES)
    def hearts(self): return self.in_suit(Suit.HEARTS)
    def diamonds(self): return self.in_suit(Suit.DIAMONDS)
    def clubs(self): return self.in_suit(Suit.CLUBS)

    def aces(self): return self & Cards.ACES
    def kings(self): return self & Cards.KINGS
    def queens(self): return self & Cards.QUEENS
    def jacks(self): return self & Cards.JACKS
    def tens(self): return self & Cards.TENS

    def suit_lengths(self):
        '''(spades, hearts, diamonds, clubs) lengths.'''
        bits = self.bits
        return tuple(((bits >> (SUIT_LANE * suit)) & _LANE_MASK).bit_count() for suit in range(4))

    def high_card_points(self):
        return 4 * len(self.aces()) + 3 * len(self.kings()) + 2 * len(self.queens()) + len(self.jacks())

    def __iter__(self):
        bits = self.bits
        while bits:
            low = bits & -bits
            yield Card(low.bit_length() - 1)
            bits ^= low

    def __reversed__(self):
        bits = self.bits
        while bits:
            top = bits.bit_length() - 1
            yield Card(top)
            bits &= ~(1 << top)

    def min(self):
        if not self.bits: return None
        return Card((self.bits & -self.bits).bit_length() - 1)

    def max(self):
        if not self.bits: return None
        return Card(self.bits.bit_length() - 1)

    def pick(self, n: int, rng = None):
        '''
        Remove n cards chosen uniformly at random and return them as a new set.
        Random 64-bit masks are intersected with the remaining cards; a chosen subset
        goes to the drawn pile when it fits, to the kept pile when enough cards are
        left without it, and is redrawn otherwise.
        '''
        if n < 0: raise ValueError(f'Cannot pick a negative number of cards ({n}).')
        n_left = len(self)
        if n > n_left:
            raise DeckExhaustionError(f'Cannot pick {n} cards from a set of {n_left}.')
        rng = make_rng(rng)
        bits = self.bits
        kept = 0; given = 0
        while n_left > 0:
            if n == 0:
                kept |= bits
                break
            # all meaningful bits are below 63
            chosen = int(rng.integers(0, 1 << 63, dtype = np.int64)) & bits
            if chosen == 0: continue
            n_chosen = chosen.bit_count()
            if n_chosen <= n:
                bits &= ~chosen; given |= chosen
                n_left -= n_chosen; n -= n_chosen
            elif n_chosen + n <= n_left:
                bits &= ~chosen; kept |= chosen
                n_left -= n_chosen
        self.bits = kept
        return Cards(given)

    def __str__(self):
        out = ''
        for suit in Suit:
            holding = self.in_suit(suit)
            if holding: out += suit.unicode + ''.join(card.rankchar for card in reversed(holding))
        return out

    def __repr__(self): return f'{type(self).__name__}({self})'

def parse_cards(string: str):
    '''
    PBN holdings "AKQ2.KQ32.AK2.32" (spades first) or suit-letter form "SAKQ2HKQ32DAK2C32".
    '''
    string = string.strip()
    try: return Cards.from_str(string)
    except ValueError as e: raise DealerError(f'Invalid cards {string!r}: {e}') from e

class Hand(Cards):
    '''
    One seat's holding. Thirteen cards by caller discipline: only from_str checks the count.
    '''
    __slots__ = ()

    @classmethod
    def from_str(cls, string: str):
        '''Same formats as parse_cards, exactly 13 cards.'''
        cards = parse_cards(string)
        if len(cards) != MAX_LENGTH:
            raise DealerError(f'Wrong number of cards for a bridge hand ({len(cards)}): {string!r}.')
        return cls(cards)

    @classmethod
    def random(cls, rng = None): return cls(Cards.ALL.pick(MAX_LENGTH, rng))

    def shape(self): return self.suit_lengths()

    def len_of_suit(self, suit): return self.suit_lengths()[int(suit)]

    def slen(self): return len(self.spades())
    def hlen(self): return len(self.hearts())
    def dlen(self): return len(self.diamonds())
    def clen(self): return len(self.clubs())

    def hcp(self): return self.high_card_points()

    def suits(self):
        '''The four holdings in S, H, D, C order.'''
        return [self.in_suit(suit) for suit in Suit]

    def holding_str(self, suit):
        return ''.join(card.rankchar for card in reversed(self.in_suit(suit)))

    def pbn(self): return '.'.join(self.holding_str(suit) for suit in Suit)

    def long_str(self):
        return '\n'.join(f'{suit.unicode} {self.holding_str(suit) or "-"}' for suit in Suit)
