import asyncio
from fractions import Fraction as F

import pytest

import ratreals as rr
from ratreals.core.intervals import RationalInterval, interval

THIRD = F(1, 3)


def third_test(i: RationalInterval) -> rr.Answer:
    if i.contains_value(THIRD):
        return rr.Yes(i)
    return rr.No()


def third_algorithm(current: RationalInterval, precision: F):
    lo, hi = current.low, current.high
    while hi - lo > precision:
        mid = (lo + hi) / 2
        if mid < THIRD:
            lo = mid
        else:
            hi = mid
    return interval(lo, hi)


#####
##### Test oracles
#####


def test_test_oracle_contract():
    o = rr.make_test_oracle(interval(0, 1), third_test, name="third")

    async def main():
        assert await o(interval(2, 3), F(1, 100)) == rr.No(interval(0, 1))
        assert await o(interval(-1, 2), F(1, 100)) == rr.Yes(interval(0, 1))
        ans = await o(interval(0, F(1, 2)), F(1, 100))
        assert ans == rr.Yes(interval(0, F(1, 2)))
        assert o.yes == interval(0, F(1, 2))
        ans = await o(interval(F(1, 2), F(3, 4)), F(1, 100))
        assert isinstance(ans, rr.No)
        ans = await o(interval(0, F(1, 5)), F(1, 100))
        assert isinstance(ans, rr.No)

    asyncio.run(main())


def test_async_predicate():
    async def test(i: RationalInterval) -> rr.Answer:
        await asyncio.sleep(0)
        return third_test(i)

    o = rr.make_test_oracle(interval(0, 1), test)
    ans = asyncio.run(o(interval(F(1, 4), F(1, 2)), F(1, 100)))
    assert ans == rr.Yes(interval(F(1, 4), F(1, 2)))


def test_precision_limitation():
    o = rr.make_test_oracle(interval(0, 1), lambda i: rr.Maybe(i))
    with pytest.raises(rr.PrecisionLimitationError):
        asyncio.run(o(interval(F(1, 4), F(1, 2)), F(1, 100)))


def test_inconsistent_prophecy():
    o = rr.make_test_oracle(interval(0, 1), lambda i: rr.Yes(interval(5, 6)))
    with pytest.raises(rr.OracleConsistencyError):
        asyncio.run(o(interval(F(1, 4), F(1, 2)), F(1, 100)))
    assert o.yes == interval(0, 1)


def test_negative_delta():
    o = rr.make_test_oracle(interval(0, 1), third_test)
    with pytest.raises(rr.InvalidIntervalError):
        asyncio.run(o(interval(0, 1), -1))


def test_test_oracle_bisection():
    o = rr.make_test_oracle(interval(0, 1), third_test)
    res = asyncio.run(rr.narrow(o, F(1, 1000)))
    assert res.width <= F(1, 1000)
    assert res.contains_value(THIRD)
    assert o.yes == res


def test_bisection_on_midpoint():
    # Ambiguous whenever 1/2 is an endpoint: the middle query must be used.
    def test(i: RationalInterval) -> rr.Answer:
        if F(1, 2) in (i.low, i.high):
            return rr.Maybe(i)
        return rr.Yes(i) if i.contains_value(F(1, 2)) else rr.No()

    o = rr.make_test_oracle(interval(0, 1), test)
    with rr.diagnostics() as d:
        res = asyncio.run(rr.narrow(o, F(1, 100)))
    assert res.width <= F(1, 100)
    assert res.contains_value(F(1, 2))
    assert not d.warnings()


def test_stuck_bisection_is_logged():
    o = rr.make_test_oracle(interval(0, 1), lambda i: rr.Maybe(i))
    with rr.diagnostics() as d:
        res = asyncio.run(rr.narrow(o, F(1, 100)))
    assert res == interval(0, 1)
    sources = {m.source for m in d.warnings()}
    assert "make_test_oracle" in sources
    assert "narrow" in sources


#####
##### Algorithm oracles
#####


def test_algorithm_oracle_contract():
    o = rr.make_algorithm_oracle(interval(0, 1), third_algorithm)

    async def main():
        ans = await o(interval(0, F(1, 2)), F(1, 100))
        assert isinstance(ans, rr.Yes)
        assert ans.prophecy.width <= F(1, 100)
        assert ans.prophecy.contains_value(THIRD)
        assert o.yes == ans.prophecy
        assert isinstance(await o(interval(F(1, 2), 1), F(1, 100)), rr.No)

    asyncio.run(main())


def test_async_algorithm():
    async def alg(current: RationalInterval, precision: F):
        await asyncio.sleep(0)
        return third_algorithm(current, precision)

    o = rr.make_algorithm_oracle(interval(0, 1), alg)
    res = asyncio.run(rr.narrow(o, F(1, 10_000)))
    assert res.width <= F(1, 10_000)
    assert res.contains_value(THIRD)


def test_algorithm_oracle_maybe():
    o = rr.from_interval(interval(0, 1))
    with rr.diagnostics() as d:
        ans = asyncio.run(o(interval(0, F(1, 2)), F(1, 100)))
    assert ans == rr.Maybe(interval(0, 1))
    assert [m.source for m in d.warnings()] == ["make_algorithm_oracle"]


def test_algorithm_oracle_inconsistent_result():
    o = rr.make_algorithm_oracle(interval(0, 1), lambda c, p: interval(2, 3))
    with pytest.raises(rr.OracleConsistencyError):
        asyncio.run(o(interval(0, F(1, 2)), F(1, 100)))


#####
##### Refinement queue
#####


def test_refinements_are_serialized():
    running = 0
    max_running = 0

    async def alg(current: RationalInterval, precision: F):
        nonlocal running, max_running
        running += 1
        max_running = max(max_running, running)
        await asyncio.sleep(0)
        res = third_algorithm(current, precision)
        running -= 1
        return res

    o = rr.make_algorithm_oracle(interval(0, 1), alg)

    async def main():
        precisions = [F(1, 10**k) for k in range(1, 6)]
        return await asyncio.gather(*(rr.narrow(o, p) for p in precisions))

    results = asyncio.run(main())
    assert max_running == 1
    assert o.yes.width <= F(1, 10**5)
    for res, k in zip(results, range(1, 6)):
        assert res.width <= F(1, 10**k)
        assert res.contains_value(THIRD)


def test_queue_survives_event_loops():
    o = rr.make_test_oracle(interval(0, 1), third_test)
    first = asyncio.run(rr.narrow(o, F(1, 10)))
    second = asyncio.run(rr.narrow(o, F(1, 100)))
    assert second.width <= F(1, 100)
    assert first.contains(second)
    assert not o.queue.locked()


def test_queue_released_after_failure():
    o = rr.make_algorithm_oracle(interval(0, 1), lambda c, p: interval(2, 3))

    async def main():
        with pytest.raises(rr.OracleConsistencyError):
            await rr.narrow(o, F(1, 100))
        assert not o.queue.locked()
        return await o(interval(-1, 2), F(1, 100))

    assert asyncio.run(main()) == rr.Yes(interval(0, 1))
