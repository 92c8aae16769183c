from fractions import Fraction as F

import pytest

import ratreals as rr
from ratreals.core.intervals import RationalInterval, halo, interval


def test_endpoints_are_sorted():
    i = interval(3, 1)
    assert (i.low, i.high) == (1, 3)
    assert interval(2).is_point()


@pytest.mark.parametrize(
    "x,expected",
    [("3/7", F(3, 7)), ("1.25", F(5, 4)), (2, F(2)), (F(1, 3), F(1, 3))],
)
def test_rational_coercion(x: rr.RationalLike, expected: F):
    assert rr.rational(x) == expected


@pytest.mark.parametrize("bad", [0.5, "abc", "1/0"])
def test_rational_rejects(bad: object):
    with pytest.raises(rr.InvalidIntervalError):
        rr.rational(bad)  # type: ignore


def test_intersection():
    assert interval(0, 2).intersection(interval(1, 3)) == interval(1, 2)
    assert interval(0, 1).intersection(interval(2, 3)) is None
    assert interval(0, 1).intersection(interval(1, 2)) == interval(1)
    assert not interval(0, 1).intersects(interval(F(3, 2), 2))


def test_containment():
    i = interval(0, 1)
    assert i.contains(interval(F(1, 4), F(1, 2)))
    assert not i.contains(interval(F(1, 2), 2))
    assert i.contains_value(1)
    assert not i.contains_value(F(-1, 100))


def test_measures():
    i = interval(-3, 2)
    assert i.width == 5
    assert i.midpoint == F(-1, 2)
    assert i.magnitude == 3
    assert i.min_magnitude == 0
    assert interval(-3, -2).min_magnitude == 2
    assert interval(0, 1).distance(interval(3, 4)) == 2
    assert interval(0, 3).distance(interval(1, 4)) == 0


def test_arithmetic():
    a = interval(-1, 2)
    b = interval(3, 4)
    assert -a == interval(-2, 1)
    assert a + b == interval(2, 6)
    assert a - b == interval(-5, -1)
    assert a * b == interval(-4, 8)
    assert interval(1, 2) / interval(4, 8) == interval(F(1, 8), F(1, 2))
    with pytest.raises(ZeroDivisionError):
        interval(1, 2) / interval(-1, 1)


def test_halo_and_split():
    assert halo(interval(1, 2), F(1, 10)) == interval(F(9, 10), F(21, 10))
    left, right = interval(0, 1).split(F(1, 3))
    assert left == interval(0, F(1, 3))
    assert right == interval(F(1, 3), 1)
    with pytest.raises(rr.InvalidIntervalError):
        interval(0, 1).split(2)


def test_str():
    assert str(RationalInterval(F(1, 2), 1)) == "1/2:1"
