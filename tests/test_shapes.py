import threading

import numpy as np
import pytest

from cards import Hand, Suit
from shapeparser import ShapeSyntaxError
from shapes import ALL_SHAPES, LenRange, Shape, ShapeCache, shape_cache, shape_index


def test_all_shapes():
    assert len(ALL_SHAPES) == 560
    assert len(Shape.all()) == 560
    assert (ALL_SHAPES.sum(axis=1) == 13).all()


def test_shape_index_layout():
    assert shape_index((0, 0, 0, 13)) == 13
    assert shape_index((1, 0, 0, 0)) == 14 ** 3
    assert list(shape_index(np.array([[4, 3, 3, 3], [0, 0, 0, 13]]))) == [4 * 14 ** 3 + 3 * 14 ** 2 + 3 * 14 + 3, 13]


def test_union_of_patterns():
    shape = Shape.from_pattern("4(34)2") + Shape.from_pattern("(6331)")
    assert len(shape) == 14
    assert (4, 3, 4, 2) in shape and (4, 4, 3, 2) in shape
    assert (1, 3, 3, 6) in shape


def test_difference_of_patterns():
    shape = Shape.from_pattern("3xx2")
    assert (3, 4, 4, 2) in shape
    assert (3, 3, 5, 2) in shape
    trimmed = shape - Shape.from_pattern("3352")
    assert (3, 3, 5, 2) not in trimmed
    assert (3, 4, 4, 2) in trimmed
    assert len(trimmed) == len(shape) - 1


def test_intersection_and_equality():
    both = Shape.from_pattern("5+xxx") & Shape.from_pattern("x5+xx")
    assert both == Shape.from_pattern("5+5+xx")
    assert Shape.from_pattern("(4333)") == Shape.from_tuples([(4, 3, 3, 3), (3, 4, 3, 3), (3, 3, 4, 3), (3, 3, 3, 4)])
    assert Shape.from_pattern("(4333)") != Shape.from_pattern("4333")


def test_combinators_follow_set_laws_on_random_hands(rng):
    a = Shape.from_patterns("(5332)", "5+4+xx")
    b = Shape.balanced()
    union = a + b
    difference = a - b
    for _ in range(500):
        hand = Hand.random(rng)
        assert union.includes(hand) == (a.includes(hand) or b.includes(hand))
        assert difference.includes(hand) == (a.includes(hand) and not b.includes(hand))


def test_shapes_are_read_only():
    shape = Shape.from_pattern("4333")
    with pytest.raises(ValueError):
        shape.table[0] = True
    before = len(shape)
    _ = shape + Shape.from_pattern("4432")
    _ = shape - Shape.from_pattern("4333")
    assert len(shape) == before


def test_includes_hand():
    shape = Shape.from_pattern("(4432)")
    assert shape.includes(Hand.from_str("AK52.K532.A2.432"))
    assert Hand.from_str("AK52.K532.A2.432") in shape
    assert not shape.includes(Hand.from_str("AK52.K53.A32.432"))


def test_vectorised_check():
    shape = Shape.from_pattern("(4333)")
    mask = shape.check(np.array([[4, 3, 3, 3], [3, 3, 3, 4], [5, 3, 3, 2]]))
    assert mask.tolist() == [True, True, False]


def test_len_hints():
    shape = Shape.from_pattern("5+4-x2")
    assert shape.min_ls[0] == 5 and shape.max_ls[0] == 11
    assert shape.min_ls[3] == 2 and shape.max_ls[3] == 2
    assert shape.max_ls[1] == 4
    assert shape.len_range(Suit.CLUBS) == LenRange(2, 2)
    assert shape.len_ranges()[0] == LenRange(5, 11)


def test_len_hints_after_union():
    a = Shape.from_pattern("4333")
    b = Shape.from_pattern("3424")
    union = a + b
    assert union.min_ls == (3, 3, 2, 3) and union.max_ls == (4, 4, 3, 4)
    assert (a + Shape.empty()).min_ls == (4, 3, 3, 3)
    assert (a + (a - a)).max_ls == (4, 3, 3, 3)
    assert (Shape.empty() | b).len_ranges() == [LenRange(3, 3), LenRange(4, 4), LenRange(2, 2), LenRange(4, 4)]


def test_len_hints_from_patterns_and_balanced():
    assert Shape.balanced().len_ranges() == [LenRange(2, 5)] * 4
    assert Shape.balanced().min_ls == Shape(Shape.balanced().table).min_ls
    assert Shape.from_patterns("6+xxx", "x6+xx").max_ls == (13, 13, 7, 7)
    assert Shape.from_patterns() == Shape.empty()


def test_len_hints_after_difference_and_intersection():
    balanced = Shape.balanced()
    no_five = balanced - Shape.from_patterns("5xxx", "x5xx", "xx5x", "xxx5")
    assert no_five.len_ranges() == [LenRange(2, 4)] * 4
    majors = balanced & Shape.from_pattern("5xxx")
    assert majors.len_range(Suit.SPADES) == LenRange(5, 5)
    assert majors.len_range(Suit.HEARTS) == LenRange(2, 3)
    assert (balanced - balanced).min_ls == (0, 0, 0, 0) and (balanced - balanced).max_ls == (13,) * 4


def test_empty_shape():
    empty = Shape.empty()
    assert len(empty) == 0
    assert not empty
    assert empty.min_ls == (0, 0, 0, 0) and empty.max_ls == (13, 13, 13, 13)
    assert empty.probability() == 0.0
    assert Shape.from_pattern("4333") - Shape.from_pattern("4333") == empty


def test_probability():
    assert Shape.all().probability() == pytest.approx(1.0)
    assert Shape.from_pattern("(4333)").probability() == pytest.approx(0.1054, abs=1e-4)
    assert Shape.balanced().probability() == pytest.approx(0.4762, abs=1e-3)


def test_balanced_and_but():
    assert len(Shape.balanced()) == 4 + 12 + 12
    assert len(Shape.but("(4333)")) == 556
    assert (4, 3, 3, 3) not in Shape.but("(4333)")


def test_from_len_ranges():
    ranges = [LenRange(5, 13), LenRange(), LenRange(), LenRange()]
    assert Shape.from_len_ranges(ranges) == Shape.from_pattern("5+xxx")


def test_with_longest():
    hearts = Shape.with_longest(Suit.HEARTS)
    assert (3, 6, 2, 2) in hearts
    assert (5, 5, 2, 1) in hearts
    assert (6, 5, 1, 1) not in hearts
    assert (4, 4, 3, 2) not in hearts


def test_from_tuples_validates():
    with pytest.raises(ValueError):
        Shape.from_tuples([(4, 3, 3, 2)])
    with pytest.raises(ValueError):
        Shape.from_tuples([(14, -1, 0, 0)])


def test_iteration_and_repr():
    shape = Shape.from_pattern("(32)(71)")
    assert sorted(shape) == [(2, 3, 1, 7), (2, 3, 7, 1), (3, 2, 1, 7), (3, 2, 7, 1)]
    assert "4 shapes" in repr(shape)


def test_len_range_clamps():
    assert LenRange(-2, 20) == LenRange(0, 13)
    assert LenRange(5, 3) == LenRange(5, 5)
    assert 4 in LenRange(3, 5) and 6 not in LenRange(3, 5)


def test_module_cache_returns_the_same_shape():
    first = Shape.from_pattern("6xx5")
    assert "6xx5" in shape_cache
    assert Shape.from_pattern("6xx5") is first


def test_cache_does_not_store_errors():
    cache = ShapeCache()
    with pytest.raises(ShapeSyntaxError):
        cache.get("4?33")
    assert "4?33" not in cache
    assert len(cache) == 0


def test_cache_is_shared_between_threads():
    cache = ShapeCache()
    results = []

    def compile_shape():
        results.append(cache.get("(5431)"))

    threads = [threading.Thread(target=compile_shape) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(cache) == 1
    assert all(shape is results[0] for shape in results)
    cache.clear()
    assert len(cache) == 0
