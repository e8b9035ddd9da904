import asyncio

from media_catalog.services.scheduler import RefreshScheduler


class _CountingOrchestrator:
    def __init__(self, fail_first=False):
        self.calls = 0
        self.fail_first = fail_first

    async def refresh(self):
        self.calls += 1
        if self.fail_first and self.calls == 1:
            raise RuntimeError("browser failed to launch")


def test_runs_immediately_then_on_interval():
    orch = _CountingOrchestrator()

    async def scenario():
        scheduler = RefreshScheduler(orch, interval=0.01, run_on_start=True)
        scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()
        return scheduler

    scheduler = asyncio.run(scenario())
    assert orch.calls >= 2
    assert not scheduler.started


def test_failed_cycle_does_not_stop_the_schedule():
    orch = _CountingOrchestrator(fail_first=True)

    async def scenario():
        scheduler = RefreshScheduler(orch, interval=0.01)
        scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()

    asyncio.run(scenario())
    assert orch.calls >= 2


def test_disabled_schedule_never_runs():
    orch = _CountingOrchestrator()

    async def scenario():
        scheduler = RefreshScheduler(orch, interval=0, run_on_start=False)
        scheduler.start()
        await asyncio.sleep(0.01)
        assert not scheduler.started
        await scheduler.stop()

    asyncio.run(scenario())
    assert orch.calls == 0
