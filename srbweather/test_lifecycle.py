import asyncio

from srbweather.lifecycle import InitState, Lifecycle


class CountingSession:
    def __init__(self):
        self.calls = 0

    async def bootstrap(self):
        self.calls += 1
        await asyncio.sleep(0.01)


def test_initializes_once():
    async def scenario():
        lifecycle = Lifecycle()
        session = CountingSession()
        assert lifecycle.state is InitState.pending
        first = await lifecycle.ensure_initialized(session)
        second = await lifecycle.ensure_initialized(session)
        return lifecycle, session, first, second

    lifecycle, session, first, second = asyncio.run(scenario())
    assert (first, second) == (True, False)
    assert session.calls == 1
    assert lifecycle.state is InitState.done


def test_concurrent_callers_share_one_initialization():
    async def scenario():
        lifecycle = Lifecycle()
        session = CountingSession()
        results = await asyncio.gather(
            lifecycle.ensure_initialized(session),
            lifecycle.ensure_initialized(session),
            lifecycle.ensure_initialized(session),
        )
        return session, results

    session, results = asyncio.run(scenario())
    assert session.calls == 1
    assert sorted(results) == [False, False, True]
