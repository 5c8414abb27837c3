import warnings
from cards import Suit, MAX_HCP_IN_HAND
from shapes import Shape

class HcpRange():
    def __init__(self, min_hcp:int = 0, max_hcp:int = MAX_HCP_IN_HAND):
        lo = min(max(min_hcp, 0), MAX_HCP_IN_HAND)
        hi = max(min(max_hcp, MAX_HCP_IN_HAND), lo)
        if (lo, hi) != (min_hcp, max_hcp):
            warnings.warn(f'HCP range {min_hcp}-{max_hcp} clamped to {lo}-{hi}.')
        self.min = lo
        self.max = hi

    def contains(self, hcp:int): return self.min <= hcp <= self.max

    __contains__ = contains

    def __eq__(self, other):
        if not isinstance(other, HcpRange): return NotImplemented
        return (self.min, self.max) == (other.min, other.max)

    def __hash__(self): return hash((self.min, self.max))

    def __str__(self): return f'{self.min}-{self.max} HCP'

    def __repr__(self): return f'HcpRange({self.min}, {self.max})'

class HandType():
    '''One hand archetype: a set of shapes and an HCP range.'''
    def __init__(self, shape: Shape | None = None, hcp_range: HcpRange | None = None):
        self.shape = Shape.all() if shape is None else shape
        self.hcp_range = HcpRange() if hcp_range is None else hcp_range

    @classmethod
    def new(cls, shape, min_hcp = 0, max_hcp = MAX_HCP_IN_HAND):
        if isinstance(shape, str): shape = Shape.from_pattern(shape)
        return cls(shape, HcpRange(min_hcp, max_hcp))

    def check(self, hand):
        return self.shape.includes(hand) and self.hcp_range.contains(hand.high_card_points())

    def __str__(self): return f'{len(self.shape)} shapes, {self.hcp_range}'

    def __repr__(self): return f'HandType({self.shape!r}, {self.hcp_range!r})'

    def __or__(self, other): return HandDescriptor([self]) | other

    def copy(self): return HandType(self.shape, self.hcp_range)

class HandTypeBuilder():
    '''
    Fluent construction of a HandType:
    HandTypeBuilder().add_shape('(4333)').add_shape('(4432)').with_range(12, 14).build()
    '''
    def __init__(self):
        self.shape = None
        self.hcp_range = None

    @classmethod
    def balanced(cls, min_hcp = 0, max_hcp = MAX_HCP_IN_HAND):
        builder = cls()
        builder.shape = Shape.balanced()
        builder.hcp_range = HcpRange(min_hcp, max_hcp)
        return builder

    def add_shape(self, pattern):
        shape = Shape.from_pattern(pattern) if isinstance(pattern, str) else pattern
        self.shape = shape if self.shape is None else self.shape + shape
        return self

    def remove_shape(self, pattern):
        shape = Shape.from_pattern(pattern) if isinstance(pattern, str) else pattern
        self.shape = (Shape.all() if self.shape is None else self.shape) - shape
        return self

    def with_range(self, min_hcp:int, max_hcp:int):
        self.hcp_range = HcpRange(min_hcp, max_hcp)
        return self

    def with_longest(self, suit: Suit):
        if self.shape is not None:
            warnings.warn('with_longest replaces the shapes already added to this builder.')
        self.shape = Shape.with_longest(suit)
        return self

    def build(self): return HandType(self.shape, self.hcp_range)

class HandDescriptor():
    '''Alternation of hand types: a hand matches if any of them matches.'''
    def __init__(self, hand_types = None):
        if isinstance(hand_types, HandType): hand_types = [hand_types]
        self.hand_types = list(hand_types) if hand_types is not None else []

    def check(self, hand): return any(hand_type.check(hand) for hand_type in self.hand_types)

    def __len__(self): return len(self.hand_types)
    def __getitem__(self, idx): return self.hand_types[idx]
    def __iter__(self): return iter(self.hand_types)

    def __or__(self, other):
        if other is None: return self.copy()
        if isinstance(other, HandType): other = [other]
        return HandDescriptor(self.hand_types + list(other))

    def copy(self): return HandDescriptor(list(self.hand_types))

    def __str__(self):
        if not self.hand_types: return 'Hand descriptor: (nothing)'
        return 'Hand descriptor:\n' + '\n'.join(f'  or {ht}' if i else f'     {ht}' for i, ht in enumerate(self.hand_types))

def as_descriptor(constraint):
    '''Accepts a HandDescriptor, a HandType or an iterable of HandTypes.'''
    if constraint is None or isinstance(constraint, HandDescriptor): return constraint
    if isinstance(constraint, HandType): return HandDescriptor([constraint])
    return HandDescriptor(list(constraint))
