import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from src.core.realtime import RealtimeSyncListener, normalize_change


def realtime_payload(event_type, new=None, old=None):
    # formato entregue pelo realtime-py
    return {"data": {"type": event_type, "record": new or {}, "old_record": old or {}}, "ids": []}


class TestNormalizeChange(unittest.TestCase):
    def test_realtime_py_format(self):
        event, new, old = normalize_change(realtime_payload("INSERT", new={"id": "b1"}))
        self.assertEqual(event, "INSERT")
        self.assertEqual(new, {"id": "b1"})
        self.assertIsNone(old)

    def test_js_format(self):
        event, new, old = normalize_change({"eventType": "DELETE", "new": {}, "old": {"id": "b1"}})
        self.assertEqual(event, "DELETE")
        self.assertIsNone(new)
        self.assertEqual(old, {"id": "b1"})


class TestRealtimeSyncListener(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.channel = MagicMock()
        self.channel.on_postgres_changes.return_value = self.channel

        async def fake_subscribe(callback=None):
            if callback:
                callback("SUBSCRIBED", None)

        self.channel.subscribe = AsyncMock(side_effect=fake_subscribe)
        self.client = MagicMock()
        self.client.channel.return_value = self.channel
        self.client.remove_channel = AsyncMock()
        self.refetch = AsyncMock()
        self.notify = AsyncMock()
        self.on_activity = MagicMock()
        self.listener = RealtimeSyncListener(
            self.client, "user-1", self.refetch, self.notify, on_activity=self.on_activity, debounce=0.01
        )

    async def test_start_subscribes_and_reports_connected(self):
        await self.listener.start()
        self.assertTrue(self.listener.is_connected)
        self.client.channel.assert_any_call("db-changes")
        self.client.channel.assert_any_call("public:boleto_logs")
        kwargs = self.channel.on_postgres_changes.call_args_list[0][1]
        self.assertEqual(kwargs["table"], "boletos")

    async def test_start_twice_does_not_duplicate_handlers(self):
        await self.listener.start()
        await self.listener.start()
        self.assertEqual(self.client.channel.call_count, 2)  # boletos + histórico

    async def test_stop_and_restart(self):
        await self.listener.start()
        await self.listener.stop()
        self.assertFalse(self.listener.is_connected)
        self.assertEqual(self.client.remove_channel.await_count, 2)

        await self.listener.start()
        self.assertEqual(self.client.channel.call_count, 4)
        self.assertTrue(self.listener.is_connected)

    async def test_failed_subscribe_removes_channel(self):
        self.channel.subscribe.side_effect = [ConnectionError("socket fechado"), None, None]
        with self.assertRaises(ConnectionError):
            await self.listener.start()

        self.client.remove_channel.assert_awaited_once_with(self.channel)
        self.assertFalse(self.listener.started)

        await self.listener.start()
        self.assertTrue(self.listener.started)
        self.assertEqual(self.client.channel.call_count, 3)

    async def test_failed_logs_subscribe_rolls_back(self):
        self.channel.subscribe.side_effect = [None, ConnectionError("socket fechado")]
        with self.assertRaises(ConnectionError):
            await self.listener.start()

        self.assertEqual(self.client.remove_channel.await_count, 2)
        self.assertFalse(self.listener.started)

    async def test_insert_notifies_and_refetches(self):
        handled = self.listener.handle_change(
            realtime_payload("INSERT", new={"id": "b1", "user_id": "user-1", "title": "Internet"})
        )
        self.assertTrue(handled)
        await asyncio.sleep(0.05)
        self.notify.assert_awaited_once_with("Novo Boleto!", 'O boleto "Internet" foi adicionado.')
        self.refetch.assert_awaited_once()

    async def test_update_refetches_without_notification(self):
        self.listener.handle_change(realtime_payload("UPDATE", new={"id": "b1", "user_id": "user-1"}))
        await asyncio.sleep(0.05)
        self.refetch.assert_awaited_once()
        self.notify.assert_not_awaited()

    async def test_delete_matches_on_old_record(self):
        self.assertTrue(
            self.listener.handle_change(realtime_payload("DELETE", old={"id": "b1", "user_id": "user-1"}))
        )

    async def test_other_users_events_are_ignored(self):
        handled = self.listener.handle_change(
            realtime_payload("INSERT", new={"id": "b1", "user_id": "user-2", "title": "X"})
        )
        self.assertFalse(handled)
        await asyncio.sleep(0.05)
        self.refetch.assert_not_awaited()
        self.notify.assert_not_awaited()

    async def test_burst_is_debounced(self):
        for _ in range(5):
            self.listener.handle_change(realtime_payload("UPDATE", new={"id": "b1", "user_id": "user-1"}))
        await asyncio.sleep(0.05)
        self.refetch.assert_awaited_once()

    async def test_stop_cancels_pending_refetch(self):
        await self.listener.start()
        self.listener.handle_change(realtime_payload("UPDATE", new={"id": "b1", "user_id": "user-1"}))
        await self.listener.stop()
        await asyncio.sleep(0.05)
        self.refetch.assert_not_awaited()

    async def test_activity_callback(self):
        self.listener.handle_activity({"data": {"type": "INSERT"}})
        self.on_activity.assert_called_once()
