from datetime import date
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase

from carteira.finance.models import Account, Category, CreditCard, Transaction
from carteira.finance.repos import DjangoAccountsRepo, DjangoTransactionsRepo, NotFoundError, ValidationError
from carteira.services.account_service import AccountService
from carteira.services.transaction_service import TransactionService


class TransactionServiceTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="maria", password="segredo123")
        self.acc_service = AccountService(DjangoAccountsRepo(self.user))
        self.tr_service = TransactionService(DjangoTransactionsRepo(self.user), DjangoAccountsRepo(self.user))
        self.checking = self.acc_service.create_account("Corrente", "corrente", initial_balance="1000.00")
        self.savings = self.acc_service.create_account("Poupança", "poupanca")
        self.food = Category.objects.create(user=self.user, name="Alimentação", type="despesa", color="orange", icon="X")
        self.salary = Category.objects.create(user=self.user, name="Salário", type="receita", color="green", icon="X")

    def balance(self, account):
        account.refresh_from_db()
        return account.balance

    def test_account_defaults(self):
        self.assertEqual(self.checking.balance, Decimal("1000.00"))
        self.assertEqual(self.checking.description, "Conta corrente")
        self.assertEqual(self.checking.bank_name, Account.NO_BANK)

    def test_income_increases_balance(self):
        self.tr_service.create_transaction(type="receita", description="Salário", amount="2500.00",
                                           date="2024-03-05", account_id=self.checking.pk, category_id=self.salary.pk)
        self.assertEqual(self.balance(self.checking), Decimal("3500.00"))

    def test_expense_decreases_balance_and_may_overdraw(self):
        self.tr_service.create_transaction(type="despesa", description="Aluguel", amount="1200.00",
                                           date="2024-03-05", account_id=self.checking.pk)
        self.assertEqual(self.balance(self.checking), Decimal("-200.00"))

    def test_transfer_moves_money(self):
        self.tr_service.create_transaction(type="transferencia", description="Reserva", amount="300.00",
                                           date="2024-03-05", account_id=self.checking.pk,
                                           destination_account_id=self.savings.pk)
        self.assertEqual(self.balance(self.checking), Decimal("700.00"))
        self.assertEqual(self.balance(self.savings), Decimal("300.00"))

    def test_transfer_validation(self):
        with self.assertRaises(ValidationError):
            self.tr_service.create_transaction(type="transferencia", description="X", amount="10",
                                               account_id=self.checking.pk)
        with self.assertRaises(ValidationError):
            self.tr_service.create_transaction(type="transferencia", description="X", amount="10",
                                               account_id=self.checking.pk, destination_account_id=self.checking.pk)

    def test_rejects_invalid_input(self):
        base = {"type": "despesa", "description": "Mercado", "amount": "10.00", "account_id": self.checking.pk}
        for override in ({"amount": "0"}, {"amount": "-5"}, {"description": "  "}, {"type": "bill_payment"},
                         {"type": "outro"}, {"category_id": self.salary.pk}):
            with self.assertRaises(ValidationError):
                self.tr_service.create_transaction(**{**base, **override})
        self.assertEqual(Transaction.objects.count(), 0)
        self.assertEqual(self.balance(self.checking), Decimal("1000.00"))

    def test_foreign_account_is_not_found(self):
        other = User.objects.create_user(username="joao", password="segredo123")
        foreign = Account.objects.create(user=other, name="Inter", type="corrente")
        with self.assertRaises(NotFoundError):
            self.tr_service.create_transaction(type="receita", description="X", amount="10", account_id=foreign.pk)

    def test_cancelled_transaction_has_no_effect(self):
        self.tr_service.create_transaction(type="despesa", description="Estornada", amount="50",
                                           account_id=self.checking.pk, status="cancelada")
        self.assertEqual(self.balance(self.checking), Decimal("1000.00"))

    def test_update_moves_balance_effect(self):
        tx = self.tr_service.create_transaction(type="despesa", description="Mercado", amount="100.00",
                                                date="2024-03-05", account_id=self.checking.pk)
        self.tr_service.update_transaction(tx.pk, amount="150.00")
        self.assertEqual(self.balance(self.checking), Decimal("850.00"))

        self.tr_service.update_transaction(tx.pk, account_id=self.savings.pk)
        self.assertEqual(self.balance(self.checking), Decimal("1000.00"))
        self.assertEqual(self.balance(self.savings), Decimal("-150.00"))

    def test_delete_reverses_transfer(self):
        tx = self.tr_service.create_transaction(type="transferencia", description="Reserva", amount="300.00",
                                                account_id=self.checking.pk, destination_account_id=self.savings.pk)
        self.tr_service.delete_transaction(tx.pk)
        self.assertEqual(self.balance(self.checking), Decimal("1000.00"))
        self.assertEqual(self.balance(self.savings), Decimal("0.00"))
        self.assertFalse(Transaction.objects.filter(pk=tx.pk).exists())

    def test_delete_missing_transaction(self):
        with self.assertRaises(NotFoundError):
            self.tr_service.delete_transaction(999)

    def test_account_with_transactions_cannot_be_deleted(self):
        self.tr_service.create_transaction(type="receita", description="Pix", amount="10", account_id=self.savings.pk)
        with self.assertRaises(ValidationError):
            self.acc_service.delete_account(self.savings.pk)
        empty = self.acc_service.create_account("Vazia", "outro")
        self.acc_service.delete_account(empty.pk)
        self.assertFalse(Account.objects.filter(pk=empty.pk).exists())

    def test_account_update_with_initial_balance_resets_balance(self):
        self.acc_service.update_account(self.checking.pk, initial_balance="50.00", name="Principal")
        self.checking.refresh_from_db()
        self.assertEqual(self.checking.balance, Decimal("50.00"))
        self.assertEqual(self.checking.name, "Principal")

    def test_card_expense_goes_to_invoice(self):
        card = CreditCard.objects.create(user=self.user, name="Nubank", brand="mastercard", type="credito",
                                         last_four_digits="1234", closing_day=10, due_day=20)
        tx = self.tr_service.create_transaction(type="despesa", description="Livro", amount="80.00",
                                                date="2024-03-05", credit_card_id=card.pk, category_id=self.food.pk)
        self.assertTrue(tx.is_card_purchase)
        self.assertIsNotNone(tx.invoice_id)
        self.assertEqual(self.balance(self.checking), Decimal("1000.00"))

    def test_card_purchase_only_allows_descriptive_edits(self):
        card = CreditCard.objects.create(user=self.user, name="Nubank", brand="mastercard", type="credito",
                                         last_four_digits="1234", closing_day=10, due_day=20)
        tx = self.tr_service.create_transaction(type="despesa", description="Livro", amount="80.00",
                                                date="2024-03-05", credit_card_id=card.pk)
        self.tr_service.update_transaction(tx.pk, description="Livro de Python", amount="80.00", tags=["estudo"])
        tx.refresh_from_db()
        self.assertEqual(tx.description, "Livro de Python")
        self.assertEqual(tx.tags, ["estudo"])
        with self.assertRaises(ValidationError):
            self.tr_service.update_transaction(tx.pk, amount="90.00")
