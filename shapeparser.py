'''
Compiler for the shape language: "4333", "(54)31", "5+4-x2", "(4x)(3+2)".

A pattern is read left to right as spades, hearts, diamonds, clubs. Digits 0-9 and
A-D (10-13) are lengths, '+' / '-' after a length mean "at least" / "at most",
'x' is any length, and parentheses group suits whose lengths may appear in any order.
'''
from collections import deque
from dataclasses import dataclass
from enum import Enum
from itertools import permutations
from typing import NamedTuple

MAX_LENGTH = 13
NUM_SUITS = 4

class ShapeError(ValueError):
    def __init__(self, message, pattern = None):
        super().__init__(message)
        self.message = message
        self.pattern = pattern

    def __str__(self):
        if self.pattern is None: return self.message
        return f'error creating shape {self.pattern!r}: {self.message}'

class ShapeSyntaxError(ShapeError):
    '''Unknown character, orphan modifier, unmatched or nested parentheses, bad group.'''
    def __init__(self, message, pattern = None, position = None):
        super().__init__(message, pattern)
        self.position = position

class ShapeArityError(ShapeError):
    '''Pattern does not describe exactly four suits adding up to 13 cards.'''

class Modifier(Enum):
    EXACT = ''
    AT_LEAST = '+'
    AT_MOST = '-'

class TokenKind(Enum):
    LENGTH = 'length'
    MODIFIER = 'modifier'
    JOKER = 'joker'
    OPEN_PAREN = '('
    CLOSE_PAREN = ')'
    EMPTY = 'end'

class Token(NamedTuple):
    kind: TokenKind
    value: object = None
    position: int = 0

@dataclass(frozen = True)
class SuitPattern():
    length: int
    modifier: Modifier = Modifier.EXACT

    def contains(self, length):
        if self.modifier is Modifier.AT_LEAST: return length >= self.length
        if self.modifier is Modifier.AT_MOST: return length <= self.length
        return length == self.length

    def __len__(self): return 1

    def suits(self): return [self]

    @property
    def minimum(self): return 0 if self.modifier is Modifier.AT_MOST else self.length

    @property
    def maximum(self): return MAX_LENGTH if self.modifier is Modifier.AT_LEAST else self.length

    def __str__(self):
        if self.modifier is Modifier.AT_LEAST and self.length == 0: return 'x'
        return f'{self.length:X}{self.modifier.value}'

@dataclass(frozen = True)
class GroupPattern():
    members: tuple

    def contains(self, length): return False

    def __len__(self): return len(self.members)

    def suits(self): return list(self.members)

    def __str__(self): return '(' + ''.join(str(m) for m in self.members) + ')'

JOKER = SuitPattern(0, Modifier.AT_LEAST)

class Scanner():
    def __init__(self, source: str):
        self.source = source
        self.tokens = []
        self.start = 0
        self.current = 0

    def scan_tokens(self):
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()
        self.tokens.append(Token(TokenKind.EMPTY, None, self.current))
        return self.tokens

    def is_at_end(self): return self.current >= len(self.source)

    def advance(self):
        char = self.source[self.current]
        self.current += 1
        return char

    def add_token(self, kind, value = None): self.tokens.append(Token(kind, value, self.start))

    def error(self, message):
        return ShapeSyntaxError(message, self.source, self.start)

    def scan_token(self):
        char = self.advance()
        if char.isdigit() and char.isascii(): self.add_token(TokenKind.LENGTH, int(char))
        elif char in 'ABCDabcd': self.add_token(TokenKind.LENGTH, int(char, 16))
        elif char in 'EFef': raise self.error(f'suit is too long ({char!r} at position {self.start})')
        elif char in 'xX': self.add_token(TokenKind.JOKER)
        elif char == '+': self.add_token(TokenKind.MODIFIER, Modifier.AT_LEAST)
        elif char == '-': self.add_token(TokenKind.MODIFIER, Modifier.AT_MOST)
        elif char == '(': self.add_token(TokenKind.OPEN_PAREN)
        elif char == ')': self.add_token(TokenKind.CLOSE_PAREN)
        else: raise self.error(f'unknown character {char!r} at position {self.start}')

class Parser():
    def __init__(self, tokens, source = None):
        self.tokens = tokens
        self.source = source
        self.current = 0

    @classmethod
    def parse_pattern(cls, pattern: str):
        return cls(Scanner(pattern).scan_tokens(), pattern).parse()

    def parse(self):
        patterns = []
        while not self.is_at_end(): patterns.append(self.group())
        check_arity(patterns, self.source)
        return patterns

    def peek(self): return self.tokens[self.current]

    def is_at_end(self): return self.peek().kind is TokenKind.EMPTY

    def advance(self):
        token = self.tokens[self.current]
        if not self.is_at_end(): self.current += 1
        return token

    def error(self, message, token):
        return ShapeSyntaxError(f'{message} at position {token.position}', self.source, token.position)

    def group(self):
        if self.peek().kind is not TokenKind.OPEN_PAREN: return self.suit()
        opening = self.advance()
        members = []
        while True:
            token = self.peek()
            if token.kind is TokenKind.CLOSE_PAREN:
                self.advance()
                if len(members) < 2: raise self.error('a group needs at least two suits', opening)
                return GroupPattern(tuple(members))
            if token.kind is TokenKind.EMPTY: raise self.error('non matching parentheses', opening)
            members.append(self.suit())

    def suit(self):
        token = self.advance()
        if token.kind is TokenKind.JOKER: return JOKER
        if token.kind is TokenKind.LENGTH:
            if self.peek().kind is TokenKind.MODIFIER:
                return SuitPattern(token.value, self.advance().value)
            return SuitPattern(token.value)
        if token.kind is TokenKind.OPEN_PAREN: raise self.error('nested parentheses', token)
        if token.kind is TokenKind.CLOSE_PAREN: raise self.error('non matching parentheses', token)
        if token.kind is TokenKind.MODIFIER: raise self.error('modifier without a length', token)
        raise self.error('unexpected end of pattern', token)

def flatten(patterns):
    return [suit for pattern in patterns for suit in pattern.suits()]

def fixed_minimum(patterns):
    '''Cards already committed by exact lengths and "at least" floors.'''
    return sum(suit.minimum for suit in flatten(patterns))

def check_arity(patterns, source = None):
    suits = flatten(patterns)
    if len(suits) < NUM_SUITS:
        raise ShapeArityError(f'shape is too short: {len(suits)} suits given', source)
    if len(suits) > NUM_SUITS:
        raise ShapeArityError(f'shape is too long: {len(suits)} suits given', source)
    if fixed_minimum(patterns) > MAX_LENGTH:
        raise ShapeArityError(f'shape is too long: at least {fixed_minimum(patterns)} cards', source)
    if not any(suit.modifier is Modifier.AT_LEAST for suit in suits):
        most = sum(suit.maximum for suit in suits)
        if most < MAX_LENGTH:
            raise ShapeArityError(f'shape is too short: at most {most} cards', source)

class ShapeCreator():
    '''
    Expands a parsed pattern into every (s, h, d, c) distribution it matches.

    The pattern queue is consumed front to back; a group is replaced in place by each
    ordering of its members. Once three lengths are fixed the fourth is forced to
    13 minus their sum and only checked against the next pattern.
    '''
    def __init__(self, patterns):
        self.patterns = deque(patterns)
        self.free_places = MAX_LENGTH - fixed_minimum(patterns)

    @classmethod
    def build_shape(cls, pattern: str):
        '''Sorted list of the distinct 4-tuples matched by a pattern string.'''
        return cls(Parser.parse_pattern(pattern)).interpret()

    def interpret(self):
        accepted = set()
        self._interpret([], accepted)
        return sorted(accepted)

    def _interpret(self, shape, accepted):
        if not self.patterns:
            if len(shape) == NUM_SUITS and self.free_places == 0: accepted.add(tuple(shape))
            return
        pattern = self.patterns.popleft()
        if len(shape) == NUM_SUITS - 1:
            last = MAX_LENGTH - sum(shape)
            if last >= 0 and not self.patterns and pattern.contains(last):
                accepted.add(tuple(shape) + (last,))
        elif isinstance(pattern, GroupPattern):
            for ordering in dict.fromkeys(permutations(pattern.members)):
                self.patterns.extendleft(reversed(ordering))
                self._interpret(shape, accepted)
                for _ in ordering: self.patterns.popleft()
        elif pattern.modifier is Modifier.AT_LEAST:
            free = self.free_places
            for extra in range(free + 1):
                self.free_places = free - extra
                self._interpret(shape + [pattern.length + extra], accepted)
            self.free_places = free
        elif pattern.modifier is Modifier.AT_MOST:
            free = self.free_places
            for length in range(min(free, pattern.length) + 1):
                self.free_places = free - length
                self._interpret(shape + [length], accepted)
            self.free_places = free
        else:
            self._interpret(shape + [pattern.length], accepted)
        self.patterns.appendleft(pattern)

def compile_pattern(pattern: str):
    return ShapeCreator.build_shape(pattern)
