import unittest
from unittest.mock import MagicMock, patch

import requests

from src.core.google_calendar import CalendarMirror, build_event
from src.core.models import Boleto


class TestCalendarMirror(unittest.TestCase):
    def setUp(self):
        self.boleto = Boleto(id="b1", user_id="user-1", title="Internet", amount=99.9,
                             due_date="2024-03-15", calendar_event_id="evt-1")
        self.mirror = CalendarMirror("token")

    def test_build_event(self):
        event = build_event(self.boleto)
        self.assertEqual(event["summary"], "Vencimento: Internet")
        self.assertEqual(event["start"], {"date": "2024-03-15"})
        self.assertIn("Código de barras: Não informado", event["description"])
        self.assertEqual(event["reminders"]["overrides"][0], {"method": "popup", "minutes": 1440})

    @patch("src.core.google_calendar.requests.post")
    def test_create_event_returns_id(self, mock_post):
        mock_post.return_value = MagicMock(json=MagicMock(return_value={"id": "evt-9"}))
        self.assertEqual(self.mirror.create_event(self.boleto), "evt-9")
        self.assertEqual(mock_post.call_args[1]["headers"]["Authorization"], "Bearer token")

    @patch("src.core.google_calendar.requests.post")
    def test_create_event_failure_returns_none(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("offline")
        self.assertIsNone(self.mirror.create_event(self.boleto))

    @patch("src.core.google_calendar.requests.patch")
    def test_update_event(self, mock_patch):
        self.assertTrue(self.mirror.update_event(self.boleto))
        self.assertTrue(mock_patch.call_args[0][0].endswith("/evt-1"))

    def test_update_without_event_id(self):
        self.boleto.calendar_event_id = None
        self.assertFalse(self.mirror.update_event(self.boleto))

    @patch("src.core.google_calendar.requests.delete")
    def test_delete_event_failure_returns_false(self, mock_delete):
        mock_delete.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("410")
        self.assertFalse(self.mirror.delete_event("evt-1"))
