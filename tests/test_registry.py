import asyncio
import unittest

from chemlab.api.registry import SessionRegistry
from chemlab.errors import NotFoundError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestIdleExpiry(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.registry = SessionRegistry(settle_seconds=0.0, idle_seconds=60, clock=self.clock)

    def test_idle_session_closed_on_next_create(self):
        sid, session = self.registry.create()
        self.clock.now = 61
        self.registry.create()

        self.assertNotIn(sid, self.registry)
        self.assertTrue(session.closed)
        self.assertEqual(len(self.registry), 1)

    def test_get_keeps_session_alive(self):
        sid, _ = self.registry.create()
        self.clock.now = 50
        self.registry.get(sid)
        self.clock.now = 100
        self.registry.get(sid)
        self.clock.now = 161
        with self.assertRaises(NotFoundError):
            self.registry.get(sid)

    def test_evict_expired_counts(self):
        for _ in range(3):
            self.registry.create()
        self.clock.now = 30
        fresh, _ = self.registry.create()
        self.clock.now = 70
        self.assertEqual(self.registry.evict_expired(), 3)
        self.assertIn(fresh, self.registry)


class TestCapacity(unittest.TestCase):
    def test_least_recently_used_goes_first(self):
        registry = SessionRegistry(settle_seconds=0.0, max_sessions=2)
        first, first_session = registry.create()
        second, _ = registry.create()
        registry.get(first)

        third, _ = registry.create()

        self.assertEqual(len(registry), 2)
        self.assertNotIn(second, registry)
        self.assertIn(first, registry)
        self.assertIn(third, registry)
        self.assertFalse(first_session.closed)

    def test_unbounded_by_default(self):
        registry = SessionRegistry(settle_seconds=0.0)
        for _ in range(20):
            registry.create()
        self.assertEqual(len(registry), 20)

    def test_close_unknown(self):
        registry = SessionRegistry()
        with self.assertRaises(NotFoundError):
            registry.close("missing")


class TestEvictionDuringMix(unittest.IsolatedAsyncioTestCase):
    async def test_evicted_session_discards_pending_mix(self):
        clock = FakeClock()
        registry = SessionRegistry(settle_seconds=10.0, idle_seconds=5, clock=clock)
        sid, session = registry.create()
        session.toggle_chemical("Copper Sulfate")
        session.toggle_chemical("Ammonia")

        mixing = asyncio.ensure_future(session.mix())
        await asyncio.sleep(0)
        clock.now = 6
        registry.create()

        self.assertIsNone(await mixing)
        self.assertNotIn(sid, registry)
        self.assertIsNone(session.active_reaction)


if __name__ == '__main__':
    unittest.main()
