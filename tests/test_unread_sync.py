import asyncio
import unittest

from chat_sync.services.unread_sync import UnreadSync

from tests.fakes import ALICE, BOB, FakeChatService, make_context


class UnreadSyncTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.service = FakeChatService()
        self.unread = UnreadSync(make_context(self.service), interval=0.01)

    async def asyncTearDown(self):
        await self.unread.stop()

    async def test_poll_replaces_counts_wholesale(self):
        self.service.unread = {ALICE.id: 2, BOB.id: 1}
        await self.unread.refresh()
        self.service.unread = {BOB.id: 4}
        await self.unread.refresh()

        self.assertEqual(dict(self.unread.counts), {BOB.id: 4})
        self.assertEqual(self.unread.count(ALICE.id), 0)

    async def test_selected_peer_stays_zero_until_server_confirms(self):
        self.service.unread = {ALICE.id: 3}
        await self.unread.refresh()
        self.assertEqual(self.unread.count(ALICE.id), 3)

        self.unread.mark_viewing(ALICE.id)
        self.assertEqual(self.unread.count(ALICE.id), 0)

        # server has not caught up yet
        await self.unread.refresh()
        self.assertEqual(self.unread.count(ALICE.id), 0)
        self.assertIn(ALICE.id, self.unread.overrides)

        self.service.unread = {}
        await self.unread.refresh()
        self.assertEqual(self.unread.count(ALICE.id), 0)
        self.assertNotIn(ALICE.id, self.unread.overrides)

    async def test_after_confirmation_polled_values_are_trusted(self):
        self.unread.mark_viewing(ALICE.id)
        self.service.unread = {}
        await self.unread.refresh()

        self.service.unread = {ALICE.id: 2}
        await self.unread.refresh()

        self.assertEqual(self.unread.count(ALICE.id), 2)

    async def test_release_trusts_last_polled_value_immediately(self):
        self.service.unread = {ALICE.id: 3}
        await self.unread.refresh()
        self.unread.mark_viewing(ALICE.id)
        await self.unread.refresh()

        self.unread.release(ALICE.id)

        self.assertEqual(self.unread.count(ALICE.id), 3)

    async def test_poll_issued_before_override_cannot_confirm_it(self):
        self.service.unread = {}
        hold = self.service.hold("get_unread_counts")
        poll = asyncio.create_task(self.unread.refresh())
        await hold.entered.wait()

        self.unread.mark_viewing(ALICE.id)
        hold.release()
        await poll

        self.assertIn(ALICE.id, self.unread.overrides)

    async def test_override_only_affects_its_peer(self):
        self.service.unread = {ALICE.id: 3, BOB.id: 2}
        self.unread.mark_viewing(ALICE.id)
        await self.unread.refresh()

        self.assertEqual(self.unread.count(ALICE.id), 0)
        self.assertEqual(self.unread.count(BOB.id), 2)

    async def test_failed_poll_keeps_counts(self):
        self.service.unread = {BOB.id: 2}
        await self.unread.refresh()

        self.service.fail("get_unread_counts", times=3)
        for _ in range(3):
            self.assertFalse(await self.unread.refresh())

        self.assertEqual(self.unread.count(BOB.id), 2)

    async def test_listeners_are_notified(self):
        changes = []
        self.unread.subscribe(lambda: changes.append(dict(self.unread.counts)))

        self.service.unread = {BOB.id: 1}
        await self.unread.refresh()
        self.unread.mark_viewing(BOB.id)

        self.assertEqual(changes, [{BOB.id: 1}, {}])

    async def test_shutdown_ignores_in_flight_response(self):
        self.service.unread = {BOB.id: 5}
        hold = self.service.hold("get_unread_counts")
        poll = asyncio.create_task(self.unread.refresh())
        await hold.entered.wait()

        self.unread.shutdown()
        hold.release()

        self.assertFalse(await poll)
        self.assertEqual(dict(self.unread.counts), {})
