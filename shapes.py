import threading
from functools import reduce
import numpy as np
import scipy.special as sp
from cards import MAX_LENGTH
from shapeparser import ShapeCreator

RADIX = MAX_LENGTH + 1
SHAPE_COMBINATIONS = RADIX ** 4
_PLACE_VALUES = np.array([RADIX ** 3, RADIX ** 2, RADIX, 1])

def shape_index(lengths):
    '''Table index of one (s, h, d, c) tuple, or an array of indices for an (..., 4) array.'''
    lengths = np.asarray(lengths)
    assert lengths.shape[-1] == 4, 'Lengths must be given for 4 suits.'
    return lengths @ _PLACE_VALUES

def index_to_lengths(idx):
    idx = np.asarray(idx)
    return np.stack([idx // RADIX ** 3 % RADIX, idx // RADIX ** 2 % RADIX, idx // RADIX % RADIX, idx % RADIX], axis = -1)

# every distribution of 13 cards into 4 suits (560 of them)
_grid = np.indices((RADIX,) * 4).reshape(4, -1).T
ALL_SHAPES = _grid[_grid.sum(axis = 1) == MAX_LENGTH]
del _grid

class LenRange():
    def __init__(self, min = 0, max = MAX_LENGTH):
        self.min = int(np.clip(min, 0, MAX_LENGTH))
        self.max = int(np.clip(max, self.min, MAX_LENGTH))

    def contains(self, length): return self.min <= length <= self.max

    __contains__ = contains

    def __eq__(self, other):
        if not isinstance(other, LenRange): return NotImplemented
        return (self.min, self.max) == (other.min, other.max)

    def __hash__(self): return hash((self.min, self.max))

    def __repr__(self): return f'LenRange({self.min}, {self.max})'

class Shape():
    '''
    Set of hand distributions stored as a read-only boolean table over all
    14^4 (s, h, d, c) tuples, with per-suit length bounds as hints.
    Shapes are never modified: every combinator builds a new one.
    '''
    def __init__(self, table = None, min_ls = None, max_ls = None):
        if table is None: table = np.zeros(SHAPE_COMBINATIONS, dtype = bool)
        table = np.array(table, dtype = bool)
        assert table.shape == (SHAPE_COMBINATIONS,), f'Shape table must have {SHAPE_COMBINATIONS} entries.'
        table.flags.writeable = False
        self.table = table
        if min_ls is None or max_ls is None: min_ls, max_ls = self._hints(table)
        self.min_ls = tuple(int(x) for x in min_ls)
        self.max_ls = tuple(int(x) for x in max_ls)

    @staticmethod
    def _hints(table):
        lengths = index_to_lengths(np.flatnonzero(table))
        if len(lengths) == 0: return (0,) * 4, (MAX_LENGTH,) * 4
        return lengths.min(axis = 0), lengths.max(axis = 0)

    @classmethod
    def empty(cls): return cls()

    @classmethod
    def all(cls): return cls.from_tuples(ALL_SHAPES)

    @classmethod
    def from_tuples(cls, tuples):
        lengths = np.array(list(tuples), dtype = int).reshape(-1, 4)
        if np.any(lengths < 0) or np.any(lengths > MAX_LENGTH) or np.any(lengths.sum(axis = 1) != MAX_LENGTH):
            raise ValueError('Every shape must have 4 suit lengths between 0 and 13 adding up to 13.')
        table = np.zeros(SHAPE_COMBINATIONS, dtype = bool)
        table[shape_index(lengths)] = True
        return cls(table)

    @classmethod
    def from_pattern(cls, pattern: str):
        '''Compile a pattern string ("4333", "(54)xx", "5+4-x2"); results are cached.'''
        return shape_cache.get(pattern)

    @classmethod
    def from_patterns(cls, *patterns):
        if not patterns: return cls.empty()
        return reduce(lambda a, b: a + b, (cls.from_pattern(p) for p in patterns))

    @classmethod
    def balanced(cls): return cls.from_patterns('(4333)', '(4432)', '(5332)')

    @classmethod
    def but(cls, pattern: str): return cls.all() - cls.from_pattern(pattern)

    @classmethod
    def from_len_ranges(cls, ranges):
        ranges = list(ranges)
        assert len(ranges) == 4, 'One length range per suit is needed.'
        mins = np.array([r.min for r in ranges])
        maxs = np.array([r.max for r in ranges])
        keep = np.all((ALL_SHAPES >= mins) & (ALL_SHAPES <= maxs), axis = 1)
        return cls.from_tuples(ALL_SHAPES[keep])

    @classmethod
    def with_longest(cls, suit):
        '''Shapes where the suit has 5+ cards and no other suit is longer.'''
        suit = int(suit)
        keep = (ALL_SHAPES[:, suit] >= 5) & (ALL_SHAPES[:, suit] == ALL_SHAPES.max(axis = 1))
        return cls.from_tuples(ALL_SHAPES[keep])

    def includes(self, hand):
        return bool(self.table[shape_index(hand.suit_lengths())])

    def __contains__(self, item):
        if hasattr(item, 'suit_lengths'): return self.includes(item)
        lengths = tuple(item)
        if len(lengths) != 4 or min(lengths) < 0 or max(lengths) > MAX_LENGTH: return False
        return bool(self.table[shape_index(lengths)])

    def check(self, lengths):
        '''Vectorised membership for an (..., 4) array of suit lengths.'''
        lengths = np.asarray(lengths, dtype = int)
        return self.table[shape_index(lengths)]

    def __add__(self, other):
        if not other: return Shape(self.table | other.table, self.min_ls, self.max_ls)
        if not self: return Shape(self.table | other.table, other.min_ls, other.max_ls)
        return Shape(self.table | other.table,
                     np.minimum(self.min_ls, other.min_ls), np.maximum(self.max_ls, other.max_ls))

    __or__ = __add__

    def __sub__(self, other): return Shape(self.table & ~other.table)

    def __and__(self, other): return Shape(self.table & other.table)

    def __eq__(self, other):
        if not isinstance(other, Shape): return NotImplemented
        return np.array_equal(self.table, other.table)

    __hash__ = None

    def __len__(self): return int(np.count_nonzero(self.table))

    def __bool__(self): return bool(self.table.any())

    def lengths(self):
        '''(n, 4) array of the member distributions in table order.'''
        return index_to_lengths(np.flatnonzero(self.table))

    def __iter__(self):
        for row in self.lengths(): yield tuple(int(x) for x in row)

    def to_list(self): return list(self)

    def len_ranges(self):
        return [LenRange(lo, hi) for lo, hi in zip(self.min_ls, self.max_ls)]

    def len_range(self, suit):
        return LenRange(self.min_ls[int(suit)], self.max_ls[int(suit)])

    def probability(self):
        '''A-priori probability that a random hand has one of these distributions.'''
        lengths = self.lengths()
        if len(lengths) == 0: return 0.
        return float(np.prod(sp.comb(MAX_LENGTH, lengths), axis = 1).sum() / sp.comb(52, MAX_LENGTH))

    def __repr__(self):
        members = ', '.join(''.join(f'{l:X}' for l in t) for t in list(self)[:8])
        more = ', ...' if len(self) > 8 else ''
        return f'Shape({len(self)} shapes: {members}{more})'

class ShapeCache():
    '''
    Pattern string -> compiled Shape. Lookups read the dict directly;
    insertion is serialised so concurrent callers end up sharing one entry.
    '''
    def __init__(self):
        self._shapes = {}
        self._lock = threading.Lock()

    def get(self, pattern: str):
        shape = self._shapes.get(pattern)
        if shape is not None: return shape
        shape = Shape.from_tuples(ShapeCreator.build_shape(pattern))
        with self._lock:
            return self._shapes.setdefault(pattern, shape)

    def __contains__(self, pattern): return pattern in self._shapes

    def __len__(self): return len(self._shapes)

    def clear(self):
        with self._lock: self._shapes.clear()

shape_cache = ShapeCache()

