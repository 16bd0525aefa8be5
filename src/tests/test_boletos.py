import unittest
from unittest.mock import MagicMock, patch

from src.core import boletos
from src.core.exceptions import StoreError, ValidationError
from src.core.models import Boleto


def make_boleto(**overrides):
    fields = dict(id="b1", user_id="user-1", title="Conta de Luz", amount=150.5,
                  due_date="2024-03-15", category="Moradia")
    fields.update(overrides)
    return Boleto(**fields)


class TestValidateBoletoFields(unittest.TestCase):
    def test_valid_fields_are_normalized(self):
        data = boletos.validate_boleto_fields(
            {"title": " Conta de Luz ", "amount": "150,50", "due_date": "2024-03-15", "category": "Moradia"}
        )
        self.assertEqual(data, {
            "title": "Conta de Luz",
            "amount": 150.5,
            "due_date": "2024-03-15",
            "barcode": None,
            "category": "Moradia",
            "is_recurring": False,
        })

    def test_category_defaults_to_outros(self):
        data = boletos.validate_boleto_fields({"title": "Gás", "amount": 80, "due_date": "2024-03-15"})
        self.assertEqual(data["category"], "Outros")

    def test_missing_required_fields(self):
        for missing in ("title", "amount", "due_date"):
            fields = {"title": "Gás", "amount": 80, "due_date": "2024-03-15"}
            del fields[missing]
            with self.subTest(missing=missing), self.assertRaises(ValidationError):
                boletos.validate_boleto_fields(fields)

    def test_negative_amount(self):
        with self.assertRaises(ValidationError):
            boletos.validate_boleto_fields({"title": "Gás", "amount": -1, "due_date": "2024-03-15"})

    def test_unknown_category(self):
        with self.assertRaises(ValidationError):
            boletos.validate_boleto_fields(
                {"title": "Gás", "amount": 1, "due_date": "2024-03-15", "category": "Viagem"}
            )


class TestSaveBoleto(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()

    @patch("src.core.boletos.db")
    def test_validation_happens_before_network(self, mock_db):
        with self.assertRaises(ValidationError):
            boletos.save_boleto(self.client, "user-1", {"title": "", "amount": 1, "due_date": "2024-03-15"})
        mock_db.create_boleto.assert_not_called()

    @patch("src.core.boletos.db")
    def test_create_without_calendar(self, mock_db):
        mock_db.create_boleto.return_value = make_boleto()
        result = boletos.save_boleto(
            self.client, "user-1",
            {"title": "Conta de Luz", "amount": 150.50, "due_date": "2024-03-15", "category": "Moradia",
             "is_recurring": False},
        )
        self.assertEqual(result.status, "pending")
        self.assertIsNone(result.calendar_event_id)
        mock_db.update_boleto.assert_not_called()

    @patch("src.core.boletos.db")
    def test_create_stores_calendar_event_id(self, mock_db):
        mock_db.create_boleto.return_value = make_boleto()
        mock_db.update_boleto.return_value = make_boleto(calendar_event_id="evt-1")
        calendar = MagicMock()
        calendar.create_event.return_value = "evt-1"

        result = boletos.save_boleto(
            self.client, "user-1", {"title": "Conta de Luz", "amount": 1, "due_date": "2024-03-15"},
            calendar=calendar,
        )
        mock_db.update_boleto.assert_called_once_with(self.client, "user-1", "b1", {"calendar_event_id": "evt-1"})
        self.assertEqual(result.calendar_event_id, "evt-1")

    @patch("src.core.boletos.db")
    def test_calendar_failure_does_not_block_create(self, mock_db):
        mock_db.create_boleto.return_value = make_boleto()
        calendar = MagicMock()
        calendar.create_event.return_value = None

        result = boletos.save_boleto(
            self.client, "user-1", {"title": "Conta de Luz", "amount": 1, "due_date": "2024-03-15"},
            calendar=calendar,
        )
        self.assertEqual(result.id, "b1")
        mock_db.update_boleto.assert_not_called()

    @patch("src.core.boletos.db")
    def test_edit_updates_calendar_event(self, mock_db):
        mock_db.update_boleto.return_value = make_boleto(calendar_event_id="evt-1", title="Luz")
        calendar = MagicMock()
        boletos.save_boleto(
            self.client, "user-1", {"title": "Luz", "amount": 1, "due_date": "2024-03-15"},
            boleto_id="b1", calendar=calendar,
        )
        mock_db.create_boleto.assert_not_called()
        calendar.update_event.assert_called_once()


class TestToggleAndRemove(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()

    @patch("src.core.boletos.db")
    def test_toggle_recurring_is_one_write(self, mock_db):
        boleto = make_boleto(is_recurring=True, due_date="2024-01-31")
        boletos.toggle_boleto_status(self.client, "user-1", boleto)
        mock_db.update_boleto.assert_called_once_with(
            self.client, "user-1", "b1", {"status": "pending", "due_date": "2024-02-29"}
        )

    @patch("src.core.boletos.db")
    def test_toggle_store_error_propagates(self, mock_db):
        mock_db.update_boleto.side_effect = StoreError("Erro ao atualizar boleto.")
        with self.assertRaises(StoreError):
            boletos.toggle_boleto_status(self.client, "user-1", make_boleto())

    @patch("src.core.boletos.db")
    def test_remove_succeeds_when_calendar_delete_fails(self, mock_db):
        calendar = MagicMock()
        calendar.delete_event.side_effect = Exception("calendar down")
        boleto = make_boleto(calendar_event_id="evt-1")

        boletos.remove_boleto(self.client, "user-1", boleto, calendar=calendar)

        calendar.delete_event.assert_called_once_with("evt-1")
        mock_db.delete_boleto.assert_called_once_with(self.client, "user-1", "b1")

    @patch("src.core.boletos.db")
    def test_remove_without_calendar(self, mock_db):
        boletos.remove_boleto(self.client, "user-1", make_boleto(calendar_event_id="evt-1"))
        mock_db.delete_boleto.assert_called_once()


class TestHelpers(unittest.TestCase):
    def test_pending_total_and_sorting(self):
        items = [
            make_boleto(id="a", status="paid", due_date="2024-01-01", amount=10),
            make_boleto(id="b", due_date="2024-03-01", amount=20),
            make_boleto(id="c", due_date="2024-02-01", amount=30),
        ]
        self.assertEqual(boletos.pending_total(items), 50)
        self.assertEqual([b.id for b in boletos.sort_for_display(items)], ["c", "b", "a"])
        self.assertEqual(boletos.find_boleto(items, "b").amount, 20)
        self.assertIsNone(boletos.find_boleto(items, "z"))
