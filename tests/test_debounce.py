import asyncio

from locpicker.resolver.debounce import Debouncer


def test_burst_of_triggers_fires_once():
    async def _run():
        fired = []
        debouncer = Debouncer(0.05, lambda: fired.append(asyncio.get_running_loop().time()))
        for _ in range(5):
            debouncer.trigger()
            await asyncio.sleep(0.01)
        assert fired == []
        assert debouncer.pending
        await asyncio.sleep(0.15)
        assert len(fired) == 1
        assert not debouncer.pending

    asyncio.run(_run())


def test_cancel_drops_pending_call():
    async def _run():
        fired = []
        debouncer = Debouncer(0.02, lambda: fired.append(True))
        debouncer.trigger()
        debouncer.cancel()
        await asyncio.sleep(0.06)
        assert fired == []

    asyncio.run(_run())
