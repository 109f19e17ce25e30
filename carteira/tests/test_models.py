from datetime import date
from decimal import Decimal

from django.contrib.auth.models import User
from django.db import IntegrityError, transaction
from django.test import TestCase

from carteira.finance.models import Account, Bank, Category, CreditCard, Invoice, Transaction


class ModelTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="maria", password="segredo123")
        self.card = CreditCard.objects.create(
            user=self.user, name="Nubank", brand="mastercard", type="credito", last_four_digits="1234",
            credit_limit=Decimal("1000.00"), closing_day=10, due_day=20,
        )

    def test_banks_are_seeded(self):
        self.assertTrue(Bank.objects.filter(code="260", name="Nu Pagamentos").exists())
        self.assertEqual(Bank.objects.count(), 8)

    def test_account_defaults(self):
        account = Account.objects.create(user=self.user, name="Carteira", type="outro")
        self.assertEqual(account.bank_name, Account.NO_BANK)
        self.assertEqual(account.color, "#3b82f6")
        self.assertEqual(account.balance, Decimal("0.00"))
        self.assertTrue(account.is_active)

    def test_category_name_unique_per_user(self):
        Category.objects.create(user=self.user, name="Lazer", type="despesa", color="pink", icon="Gamepad2")
        other = User.objects.create_user(username="joao", password="segredo123")
        Category.objects.create(user=other, name="Lazer", type="despesa", color="pink", icon="Gamepad2")
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Category.objects.create(user=self.user, name="Lazer", type="despesa", color="red", icon="X")

    def test_card_available_limit(self):
        self.card.current_balance = Decimal("250.00")
        self.card.recompute_available_limit()
        self.assertEqual(self.card.available_limit, Decimal("750.00"))

    def test_invoice_remaining_amount_never_negative(self):
        invoice = Invoice(user=self.user, credit_card=self.card, card_name="Nubank",
                          amount=Decimal("100.00"), paid_amount=Decimal("120.00"),
                          due_date=date(2024, 3, 20), closing_date=date(2024, 3, 10))
        self.assertEqual(invoice.remaining_amount, Decimal("0.00"))
        invoice.paid_amount = Decimal("40.00")
        self.assertEqual(invoice.remaining_amount, Decimal("60.00"))

    def test_card_purchase_flag(self):
        purchase = Transaction(user=self.user, type="despesa", credit_card=self.card,
                               amount=Decimal("10.00"), date=date(2024, 3, 1), description="Livro")
        expense = Transaction(user=self.user, type="despesa", amount=Decimal("10.00"),
                              date=date(2024, 3, 1), description="Padaria")
        self.assertTrue(purchase.is_card_purchase)
        self.assertFalse(expense.is_card_purchase)
        self.assertEqual(purchase.status, "confirmada")

    def test_deleting_category_keeps_transactions(self):
        account = Account.objects.create(user=self.user, name="Carteira", type="outro")
        category = Category.objects.create(user=self.user, name="Lazer", type="despesa", color="pink", icon="X")
        tx = Transaction.objects.create(user=self.user, type="despesa", amount=Decimal("10.00"),
                                        date=date(2024, 3, 1), description="Cinema",
                                        account=account, category=category)
        category.delete()
        tx.refresh_from_db()
        self.assertIsNone(tx.category_id)
