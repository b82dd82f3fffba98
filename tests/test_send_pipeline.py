import asyncio
import unittest

from chat_sync.core.dto import BlockStatusDTO
from chat_sync.core.selection import SelectionRef
from chat_sync.services.block_gate import BlockGate
from chat_sync.services.message_sync import MessageSync, PendingEntry
from chat_sync.services.send_pipeline import SendPipeline

from tests.fakes import ALICE, BOB, FakeChatService, make_context, select


class SendPipelineTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.service = FakeChatService()
        context = make_context(self.service)
        self.ref = SelectionRef()
        select(self.ref, ALICE)
        self.messages = MessageSync(context, self.ref, interval=1.0)
        self.gate = BlockGate(context, self.ref)
        self.sender = SendPipeline(context, self.ref, self.gate, self.messages)
        await self.gate.refresh()

    async def test_blank_text_is_a_no_op(self):
        for text in ("", "   ", "\n\t"):
            self.assertIsNone(await self.sender.send(text))

        self.assertEqual(self.service.count("send_message"), 0)
        self.assertEqual(self.messages.entries, ())

    async def test_no_peer_is_a_no_op(self):
        select(self.ref, None)

        self.assertIsNone(await self.sender.send("hi"))
        self.assertEqual(self.service.count("send_message"), 0)

    async def test_unknown_block_status_prevents_sending(self):
        self.service.blocks[BOB.id] = BlockStatusDTO(blocked_me=True)
        select(self.ref, BOB)
        self.gate.reset()

        self.assertFalse(self.sender.can_send)
        self.assertIsNone(await self.sender.send("hi"))
        self.assertEqual(self.service.count("send_message"), 0)
        self.assertEqual(self.messages.entries, ())

        await self.gate.refresh()
        self.assertFalse(self.sender.can_send)

    async def test_either_block_direction_prevents_sending(self):
        for status in (BlockStatusDTO(blocked_by_me=True), BlockStatusDTO(blocked_me=True)):
            self.service.blocks[ALICE.id] = status
            await self.gate.refresh()

            self.assertFalse(self.sender.can_send)
            self.assertIsNone(await self.sender.send("hi"))

        self.assertEqual(self.service.count("send_message"), 0)

    async def test_success_appends_message_and_clears_draft(self):
        self.sender.set_draft("hello")

        message = await self.sender.send()

        self.assertEqual(message.content, "hello")
        self.assertEqual(self.messages.messages, (message,))
        self.assertEqual(self.messages.pending, ())
        self.assertEqual(self.sender.draft, "")

    async def test_pending_entry_shows_before_response(self):
        hold = self.service.hold("send_message")
        send = asyncio.create_task(self.sender.send("hi"))
        await hold.entered.wait()

        (entry,) = self.messages.entries
        self.assertIsInstance(entry, PendingEntry)
        self.assertEqual(entry.content, "hi")

        hold.release()
        await send
        self.assertEqual([m.content for m in self.messages.messages], ["hi"])

    async def test_failure_keeps_draft_and_does_not_retry(self):
        self.sender.set_draft("hello")
        self.service.fail("send_message")

        self.assertIsNone(await self.sender.send())

        self.assertEqual(self.sender.draft, "hello")
        self.assertEqual(self.service.count("send_message"), 1)
        (entry,) = self.messages.entries
        self.assertTrue(entry.failed)

    async def test_sent_message_appears_once_after_next_poll(self):
        message = await self.sender.send("hi")
        await self.messages.refresh()
        await self.messages.refresh()

        self.assertEqual([m.id for m in self.messages.messages], [message.id])

    async def test_poll_landing_before_send_response_does_not_duplicate(self):
        hold = self.service.hold("send_message")
        send = asyncio.create_task(self.sender.send("hi"))
        await hold.entered.wait()

        # the server stored the message but the response is still in flight
        stored = self.service.message(1, ALICE.id, "hi")
        await self.messages.refresh()
        self.service.persist_sends = False
        self.service._next_id = stored.id - 1

        hold.release()
        message = await send

        self.assertEqual(message.id, stored.id)
        self.assertEqual([m.id for m in self.messages.messages], [stored.id])
        self.assertEqual(self.messages.pending, ())

    async def test_explicit_text_leaves_unrelated_draft(self):
        self.sender.set_draft("draft")

        await self.sender.send("other")

        self.assertEqual(self.sender.draft, "draft")
