from datetime import date
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase

from carteira.finance.models import Account, Category, CreditCard, Invoice, Transaction
from carteira.finance.repos import (DjangoAccountsRepo, DjangoTransactionsRepo, InsufficientFundsError,
                                    NotFoundError, ValidationError)
from carteira.services.credit_card_service import CreditCardService
from carteira.services.invoice_service import InvoiceService, derive_invoice_status, refresh_statuses
from carteira.services.transaction_service import TransactionService


class InvoiceStatusTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="maria", password="segredo123")
        self.card = CreditCard.objects.create(user=self.user, name="Nubank", brand="mastercard", type="credito",
                                              last_four_digits="1234", closing_day=10, due_day=20)
        self.invoice = Invoice.objects.create(user=self.user, credit_card=self.card, card_name="Nubank",
                                              amount=Decimal("300.00"), due_date=date(2024, 3, 20),
                                              closing_date=date(2024, 3, 10))

    def test_open_until_due_date(self):
        self.assertEqual(derive_invoice_status(self.invoice, date(2024, 3, 19)), "aberta")
        self.assertEqual(derive_invoice_status(self.invoice, date(2024, 3, 20)), "aberta")
        self.assertEqual(derive_invoice_status(self.invoice, date(2024, 3, 21)), "vencida")

    def test_paid_and_cancelled_stick(self):
        self.invoice.is_paid = True
        self.assertEqual(derive_invoice_status(self.invoice, date(2025, 1, 1)), "paga")
        self.invoice.is_paid = False
        self.invoice.status = Invoice.STATUS_CANCELLED
        self.assertEqual(derive_invoice_status(self.invoice, date(2025, 1, 1)), "cancelada")

    def test_refresh_statuses_persists_overdue(self):
        changed = refresh_statuses(today=date(2024, 3, 25))
        self.invoice.refresh_from_db()
        self.assertEqual(changed, 1)
        self.assertEqual(self.invoice.status, "vencida")

        Invoice.objects.filter(pk=self.invoice.pk).update(due_date=date(2024, 4, 20))
        refresh_statuses(today=date(2024, 3, 25))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, "aberta")


class InvoicePaymentTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="maria", password="segredo123")
        self.account = Account.objects.create(user=self.user, name="Corrente", type="corrente",
                                              balance=Decimal("1000.00"))
        self.card = CreditCard.objects.create(user=self.user, name="Nubank", brand="mastercard", type="credito",
                                              last_four_digits="1234", closing_day=10, due_day=20,
                                              credit_limit=Decimal("2000.00"), current_balance=Decimal("300.00"),
                                              available_limit=Decimal("1700.00"))
        self.invoice = Invoice.objects.create(user=self.user, credit_card=self.card, card_name="Nubank",
                                              amount=Decimal("300.00"), due_date=date(2024, 3, 20),
                                              closing_date=date(2024, 3, 10))
        self.service = InvoiceService(self.user)

    def test_full_payment(self):
        invoice, payment = self.service.pay_invoice(self.invoice.pk, self.account.pk, "300.00",
                                                    payment_date="2024-03-18")
        self.account.refresh_from_db()
        self.card.refresh_from_db()

        self.assertTrue(invoice.is_paid)
        self.assertEqual(invoice.status, "paga")
        self.assertEqual(invoice.paid_on, date(2024, 3, 18))
        self.assertEqual(invoice.paid_account, self.account)
        self.assertEqual(self.account.balance, Decimal("700.00"))
        self.assertEqual(self.card.current_balance, Decimal("0.00"))
        self.assertEqual(self.card.available_limit, Decimal("2000.00"))

        self.assertEqual(payment.type, "bill_payment")
        self.assertEqual(payment.description, "Pagamento fatura Nubank")
        self.assertEqual(payment.tags, ["fatura", "pagamento"])
        self.assertEqual(payment.metadata, {"invoice_id": self.invoice.pk, "card_name": "Nubank",
                                            "payment_type": "bill_payment",
                                            "card_balance_applied": "300.00"})
        self.assertIsNone(payment.category_id)

    def test_partial_payments_accumulate(self):
        invoice, _ = self.service.pay_invoice(self.invoice.pk, self.account.pk, "100.00", description="Parcial")
        self.assertFalse(invoice.is_paid)
        self.assertEqual(invoice.status, "aberta")
        self.assertEqual(invoice.paid_amount, Decimal("100.00"))
        self.assertEqual(invoice.remaining_amount, Decimal("200.00"))

        invoice, _ = self.service.pay_invoice(self.invoice.pk, self.account.pk, "200.00")
        self.assertTrue(invoice.is_paid)
        self.assertEqual(invoice.paid_amount, Decimal("300.00"))

    def test_insufficient_balance_changes_nothing(self):
        with self.assertRaises(InsufficientFundsError):
            self.service.pay_invoice(self.invoice.pk, self.account.pk, "1000.01")
        self.account.refresh_from_db()
        self.invoice.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("1000.00"))
        self.assertEqual(self.invoice.paid_amount, Decimal("0.00"))
        self.assertFalse(Transaction.objects.exists())

    def test_payment_validation(self):
        with self.assertRaises(ValidationError):
            self.service.pay_invoice(self.invoice.pk, self.account.pk, "0")
        with self.assertRaises(ValidationError):
            self.service.pay_invoice(self.invoice.pk, None, "10")
        with self.assertRaises(NotFoundError):
            self.service.pay_invoice(9999, self.account.pk, "10")

    def test_already_paid(self):
        Invoice.objects.filter(pk=self.invoice.pk).update(is_paid=True, status="paga")
        with self.assertRaises(ValidationError):
            self.service.pay_invoice(self.invoice.pk, self.account.pk, "10")

    def test_foreign_account(self):
        other = User.objects.create_user(username="joao", password="segredo123")
        foreign = Account.objects.create(user=other, name="Inter", type="corrente", balance=Decimal("5000"))
        with self.assertRaises(NotFoundError):
            self.service.pay_invoice(self.invoice.pk, foreign.pk, "10")

    def test_deleting_payment_reverts_invoice(self):
        _, payment = self.service.pay_invoice(self.invoice.pk, self.account.pk, "300.00")
        TransactionService(DjangoTransactionsRepo(self.user), DjangoAccountsRepo(self.user)).delete_transaction(payment.pk)

        self.invoice.refresh_from_db()
        self.account.refresh_from_db()
        self.card.refresh_from_db()
        self.assertFalse(self.invoice.is_paid)
        self.assertIsNone(self.invoice.paid_on)
        self.assertEqual(self.invoice.paid_amount, Decimal("0.00"))
        self.assertEqual(self.account.balance, Decimal("1000.00"))
        self.assertEqual(self.card.current_balance, Decimal("300.00"))

    def test_deleting_payment_restores_only_the_applied_card_balance(self):
        CreditCard.objects.filter(pk=self.card.pk).update(current_balance=Decimal("0.00"),
                                                          available_limit=Decimal("2000.00"))
        invoice = self.service.create_invoice(credit_card_id=self.card.pk, card_name="Nubank", amount="500.00",
                                              due_date="2024-04-20", closing_date="2024-04-10")
        _, payment = self.service.pay_invoice(invoice.pk, self.account.pk, "500.00")
        self.assertEqual(payment.metadata["card_balance_applied"], "0.00")

        TransactionService(DjangoTransactionsRepo(self.user), DjangoAccountsRepo(self.user)).delete_transaction(payment.pk)

        self.card.refresh_from_db()
        self.account.refresh_from_db()
        invoice.refresh_from_db()
        self.assertEqual(self.card.current_balance, Decimal("0.00"))
        self.assertEqual(self.card.available_limit, Decimal("2000.00"))
        self.assertEqual(self.account.balance, Decimal("1000.00"))
        self.assertEqual(invoice.paid_amount, Decimal("0.00"))


class InvoiceQueriesTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="maria", password="segredo123")
        self.card = CreditCard.objects.create(user=self.user, name="Nubank", brand="mastercard", type="credito",
                                              last_four_digits="1234", closing_day=10, due_day=20,
                                              credit_limit=Decimal("2000.00"), available_limit=Decimal("2000.00"))
        self.service = InvoiceService(self.user)

    def test_create_invoice_defaults(self):
        invoice = self.service.create_invoice(credit_card_id=self.card.pk, card_name="Nubank", amount="450.00",
                                              due_date="2024-04-20", closing_date="2024-04-10")
        self.assertEqual(invoice.new_balance, Decimal("450.00"))
        self.assertEqual(invoice.credit_limit, Decimal("2000.00"))
        self.assertEqual(invoice.available_credit, Decimal("1550.00"))
        self.assertEqual(invoice.status, "aberta")
        self.assertEqual(invoice.minimum_amount, Decimal("0.00"))

    def test_create_invoice_requires_own_card(self):
        other = User.objects.create_user(username="joao", password="segredo123")
        with self.assertRaises(NotFoundError):
            InvoiceService(other).create_invoice(credit_card_id=self.card.pk, card_name="Nubank", amount="1",
                                                 due_date="2024-04-20", closing_date="2024-04-10")
        with self.assertRaises(ValidationError):
            self.service.create_invoice(credit_card_id=self.card.pk, card_name="Nubank")

    def test_items_grouped_by_category(self):
        food = Category.objects.create(user=self.user, name="Alimentação", type="despesa", color="orange", icon="X")
        cards = CreditCardService(self.user)
        cards.record_purchase(self.card.pk, "Mercado", "120.00", date="2024-03-01", category_id=food.pk)
        cards.record_purchase(self.card.pk, "Padaria", "30.00", date="2024-03-02", category_id=food.pk)
        cards.record_purchase(self.card.pk, "Presente", "60.00", date="2024-03-03")

        invoice = Invoice.objects.get(credit_card=self.card)
        groups = self.service.items_by_category(invoice)
        self.assertEqual([g["category"] for g in groups], ["Alimentação", "Outros"])
        self.assertEqual(groups[0]["total"], Decimal("150.00"))
        self.assertEqual(groups[0]["color"], "orange")
        self.assertEqual(groups[1]["color"], "#64748B")
        self.assertEqual(len(groups[0]["transactions"]), 2)

    def test_list_filters_by_card(self):
        other_card = CreditCard.objects.create(user=self.user, name="Inter", brand="visa", type="credito",
                                               last_four_digits="9999", closing_day=5, due_day=15)
        CreditCardService(self.user).record_purchase(self.card.pk, "A", "10", date="2024-03-01")
        CreditCardService(self.user).record_purchase(other_card.pk, "B", "10", date="2024-03-01")
        self.assertEqual(self.service.list_invoices().count(), 2)
        self.assertEqual(self.service.list_invoices(credit_card_id=other_card.pk).count(), 1)
