import asyncio
import datetime
import unittest
from unittest.mock import AsyncMock, MagicMock

from src.core.models import Boleto
from src.core.notifications import (
    DueSoonScheduler, due_today_message, format_currency, new_boleto_message,
)

TODAY = datetime.date(2024, 3, 15)


def make_boleto(id, due_date="2024-03-15", status="pending", title="Conta de Luz", amount=150.5):
    return Boleto(id=id, user_id="user-1", title=title, amount=amount, due_date=due_date, status=status)


class TestMessages(unittest.TestCase):
    def test_format_currency(self):
        self.assertEqual(format_currency(150.5), "R$\xa0150,50")
        self.assertEqual(format_currency(1234567.891), "R$\xa01.234.567,89")
        self.assertEqual(format_currency(0), "R$\xa00,00")

    def test_due_today_message(self):
        title, body = due_today_message(make_boleto("b1"))
        self.assertEqual(title, "Boleto Vence Hoje!")
        self.assertEqual(body, 'Sua conta "Conta de Luz" vence hoje no valor de R$\xa0150,50.')

    def test_new_boleto_message(self):
        self.assertEqual(
            new_boleto_message({"title": "Internet"}),
            ("Novo Boleto!", 'O boleto "Internet" foi adicionado.'),
        )


class TestDueSoonScheduler(unittest.IsolatedAsyncioTestCase):
    def make_scheduler(self, boletos, notify=None):
        self.boletos = boletos
        self.notify = notify or MagicMock()
        return DueSoonScheduler(lambda: self.boletos, self.notify, interval=3600, today=lambda: TODAY)

    async def test_repeated_scans_alert_once(self):
        scheduler = self.make_scheduler([make_boleto("b1")])
        for _ in range(3):
            await scheduler.check_due_soon()
        self.notify.assert_called_once_with(
            "Boleto Vence Hoje!", 'Sua conta "Conta de Luz" vence hoje no valor de R$\xa0150,50.'
        )
        self.assertTrue(scheduler.was_notified("b1"))

    async def test_same_due_date_alerts_each_bill(self):
        scheduler = self.make_scheduler([make_boleto("b1"), make_boleto("b2", title="Água")])
        sent = await scheduler.check_due_soon()
        self.assertEqual(sent, 2)
        self.assertEqual(self.notify.call_count, 2)

    async def test_ignores_paid_and_other_days(self):
        scheduler = self.make_scheduler([
            make_boleto("b1", status="paid"),
            make_boleto("b2", due_date="2024-03-16"),
            make_boleto("b3", due_date="2024-03-14"),
        ])
        self.assertEqual(await scheduler.check_due_soon(), 0)
        self.notify.assert_not_called()

    async def test_new_bill_due_today_is_alerted_on_next_scan(self):
        scheduler = self.make_scheduler([make_boleto("b1")])
        await scheduler.check_due_soon()
        self.boletos = self.boletos + [make_boleto("b2")]
        await scheduler.check_due_soon()
        self.assertEqual(self.notify.call_count, 2)

    async def test_async_notify(self):
        notify = AsyncMock()
        scheduler = self.make_scheduler([make_boleto("b1")], notify=notify)
        await scheduler.check_due_soon()
        notify.assert_awaited_once()

    async def test_failed_delivery_is_not_retried(self):
        notify = MagicMock(side_effect=RuntimeError("sem permissão"))
        scheduler = self.make_scheduler([make_boleto("b1")], notify=notify)
        self.assertEqual(await scheduler.check_due_soon(), 0)
        await scheduler.check_due_soon()
        notify.assert_called_once()

    async def test_start_scans_immediately_and_stop_cancels(self):
        scheduler = self.make_scheduler([make_boleto("b1")])
        scheduler.start()
        scheduler.start()  # não cria uma segunda tarefa
        await asyncio.sleep(0)
        self.assertTrue(scheduler.running)
        self.notify.assert_called_once()

        await scheduler.stop()
        self.assertFalse(scheduler.running)

        # rearmar mantém o conjunto de avisados
        scheduler.start()
        await asyncio.sleep(0)
        self.notify.assert_called_once()
        await scheduler.stop()

    async def test_stop_without_start(self):
        scheduler = self.make_scheduler([])
        await scheduler.stop()
        self.assertFalse(scheduler.running)
