from datetime import date
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase

from carteira.finance.models import Account, Transaction
from carteira.finance.repos import (DjangoAccountsRepo, DjangoTransactionsRepo, NotFoundError, ValidationError,
                                    get_owned, normalize_amount)


class AccountsRepoTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="maria", password="segredo123")
        self.repo = DjangoAccountsRepo(self.user)

    def test_create_account(self):
        acc = self.repo.create(name="Itaú", type="corrente")
        self.assertIsInstance(acc, Account)
        self.assertEqual(acc.user, self.user)
        self.assertEqual(acc.type, "corrente")

    def test_get_only_returns_own_accounts(self):
        other = User.objects.create_user(username="joao", password="segredo123")
        foreign = DjangoAccountsRepo(other).create(name="Inter", type="corrente")
        self.assertIsNone(self.repo.get(foreign.pk))
        with self.assertRaises(NotFoundError):
            get_owned(Account, self.user, foreign.pk, "Account")

    def test_list_puts_favourites_first(self):
        self.repo.create(name="Primeira", type="corrente")
        fav = self.repo.create(name="Favorita", type="poupanca", is_favorite=True)
        self.repo.create(name="Última", type="corrente")
        self.assertEqual(self.repo.list()[0], fav)

    def test_has_transactions_checks_destination(self):
        origin = self.repo.create(name="Origem", type="corrente")
        target = self.repo.create(name="Destino", type="poupanca")
        self.assertFalse(self.repo.has_transactions(target))
        Transaction.objects.create(user=self.user, type="transferencia", description="Reserva",
                                   amount=Decimal("50.00"), date=date(2024, 3, 1),
                                   account=origin, destination_account=target)
        self.assertTrue(self.repo.has_transactions(target))


class TransactionsRepoTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="maria", password="segredo123")
        self.repo = DjangoTransactionsRepo(self.user)
        self.checking = Account.objects.create(user=self.user, name="Corrente", type="corrente")
        self.savings = Account.objects.create(user=self.user, name="Poupança", type="poupanca")
        self.repo.create(type="despesa", description="Mercado Extra", amount=Decimal("120.00"),
                         date=date(2024, 3, 5), account=self.checking)
        self.repo.create(type="receita", description="Salário", amount=Decimal("3000.00"),
                         date=date(2024, 3, 1), account=self.checking)
        self.repo.create(type="transferencia", description="Reserva", amount=Decimal("500.00"),
                         date=date(2024, 3, 10), account=self.checking, destination_account=self.savings)

    def test_default_ordering_is_newest_first(self):
        self.assertEqual([t.description for t in self.repo.list()], ["Reserva", "Mercado Extra", "Salário"])

    def test_filters(self):
        self.assertEqual(self.repo.list(search="mercado").count(), 1)
        self.assertEqual(self.repo.list(type="receita").count(), 1)
        self.assertEqual(self.repo.list(account_id=self.savings.pk).count(), 1)
        self.assertEqual(self.repo.list(min_value=Decimal("200"), max_value=Decimal("1000")).count(), 1)
        self.assertEqual(self.repo.list(start_date=date(2024, 3, 2), end_date=date(2024, 3, 9)).count(), 1)

    def test_ordering_by_amount(self):
        amounts = [t.amount for t in self.repo.list(ordering="amount")]
        self.assertEqual(amounts, sorted(amounts))

    def test_invalid_ordering_rejected(self):
        with self.assertRaises(ValidationError):
            self.repo.list(ordering="user")


class NormalizeAmountTest(TestCase):
    def test_quantizes_to_cents(self):
        self.assertEqual(normalize_amount("12.3"), Decimal("12.30"))
        self.assertEqual(normalize_amount(7), Decimal("7.00"))

    def test_rejects_garbage(self):
        for raw in ("abc", "NaN", "Infinity", None):
            with self.assertRaises(ValidationError):
                normalize_amount(raw)
