from datetime import date
from decimal import Decimal

import pytest

from carteira.finance.models import Budget, BudgetAlert
from carteira.finance.repos import DjangoAccountsRepo, DjangoTransactionsRepo, NotFoundError, ValidationError
from carteira.services.budget_service import (BudgetService, budget_percentage, determine_budget_status,
                                              renew_expired)
from carteira.services.category_service import CategoryService
from carteira.services.credit_card_service import CreditCardService
from carteira.services.transaction_service import TransactionService


@pytest.fixture
def transactions(user):
    return TransactionService(DjangoTransactionsRepo(user), DjangoAccountsRepo(user))


@pytest.fixture
def budget(user, food):
    return BudgetService(user).create_budget(name="Mercado", amount="500", category_id=food.pk,
                                             start_date="2024-03-01")


def spend(service, account, category, amount, when="2024-03-10", **extra):
    return service.create_transaction(type="despesa", description="Compra", amount=amount, date=when,
                                      account_id=account.pk, category_id=category.pk if category else None, **extra)


def test_status_thresholds():
    assert determine_budget_status(Decimal("79.99"), Decimal("100"), 80) == "under_budget"
    assert determine_budget_status(Decimal("80"), Decimal("100"), 80) == "on_track"
    assert determine_budget_status(Decimal("100"), Decimal("100"), 80) == "on_track"
    assert determine_budget_status(Decimal("100.01"), Decimal("100"), 80) == "over_budget"
    assert budget_percentage(Decimal("42"), Decimal("0")) == Decimal("0.00")
    assert budget_percentage(Decimal("1"), Decimal("3")) == Decimal("33.33")


def test_create_defaults(budget):
    assert budget.period == "mensal"
    assert budget.end_date == date(2024, 3, 31)
    assert budget.alert_percentage == Decimal("80")
    assert budget.spent == Decimal("0.00")
    assert budget.remaining == Decimal("500.00")


def test_end_date_follows_period(user, food):
    quarterly = BudgetService(user).create_budget(name="Trimestre", amount="900", category_id=food.pk,
                                                  period="trimestral", start_date="2024-01-15")
    assert quarterly.end_date == date(2024, 4, 14)


def test_create_validation(user, food, salary):
    service = BudgetService(user)
    with pytest.raises(ValidationError):
        service.create_budget(name="", amount="100")
    with pytest.raises(ValidationError):
        service.create_budget(name="Zero", amount="0")
    with pytest.raises(ValidationError):
        service.create_budget(name="Alerta", amount="100", alert_percentage=150)
    with pytest.raises(ValidationError):
        service.create_budget(name="Período", amount="100", period="semanal")
    with pytest.raises(ValidationError):
        service.create_budget(name="Receita", amount="100", category_id=salary.pk)
    with pytest.raises(ValidationError):
        service.create_budget(name="Datas", amount="100", start_date="2024-03-10", end_date="2024-03-01")


def test_spending_refreshes_budget_and_raises_alerts(budget, transactions, checking, food):
    spend(transactions, checking, food, "300")
    budget.refresh_from_db()
    assert budget.spent == Decimal("300.00")
    assert budget.remaining == Decimal("200.00")
    assert not BudgetAlert.objects.exists()

    spend(transactions, checking, food, "120")
    alert = BudgetAlert.objects.get()
    assert alert.level == "warning"
    assert "84.00%" in alert.message

    spend(transactions, checking, food, "100")
    budget.refresh_from_db()
    assert budget.remaining == Decimal("-20.00")
    latest = BudgetAlert.objects.order_by("-id").first()
    assert latest.level == "exceeded"
    assert "excedido" in latest.message
    assert BudgetAlert.objects.count() == 2


def test_outside_window_and_cancelled_are_ignored(budget, transactions, checking, food):
    spend(transactions, checking, food, "50", when="2024-04-02")
    spend(transactions, checking, food, "70", status="cancelada")
    budget.refresh_from_db()
    assert budget.spent == Decimal("0.00")


def test_recategorising_moves_spending(budget, transactions, checking, food):
    tx = spend(transactions, checking, food, "200")
    transactions.update_transaction(tx.pk, category_id=None)
    budget.refresh_from_db()
    assert budget.spent == Decimal("0.00")

    transactions.update_transaction(tx.pk, category_id=food.pk)
    budget.refresh_from_db()
    assert budget.spent == Decimal("200.00")

    transactions.delete_transaction(tx.pk)
    budget.refresh_from_db()
    assert budget.spent == Decimal("0.00")


def test_budget_without_category_tracks_all_expenses(user, transactions, checking, food, card):
    overall = BudgetService(user).create_budget(name="Geral", amount="1000", start_date="2024-03-01")
    spend(transactions, checking, food, "100")
    spend(transactions, checking, None, "50")
    CreditCardService(user).record_purchase(card.pk, "Livro", "80", date="2024-03-05")
    overall.refresh_from_db()
    assert overall.spent == Decimal("230.00")


def test_deleting_category_widens_its_budget_to_all_expenses(budget, transactions, checking, food):
    spend(transactions, checking, food, "10")
    spend(transactions, checking, None, "500")
    budget.refresh_from_db()
    assert budget.spent == Decimal("10.00")

    CategoryService(budget.user).delete_category(food.pk)
    budget.refresh_from_db()
    assert budget.category_id is None
    assert budget.spent == Decimal("510.00")
    assert budget.remaining == Decimal("-10.00")


def test_update_recomputes_period(budget):
    service = BudgetService(budget.user)
    updated = service.update_budget(budget.pk, period="anual")
    assert updated.end_date == date(2025, 2, 28)
    with pytest.raises(ValidationError):
        service.update_budget(budget.pk, amount="-5")


def test_renew_expired(user, food):
    old = Budget.objects.create(user=user, category=food, name="Janeiro", amount=Decimal("300"),
                                remaining=Decimal("300"), start_date=date(2024, 1, 1),
                                end_date=date(2024, 1, 31), auto_renew=True)
    Budget.objects.create(user=user, category=food, name="Sem renovar", amount=Decimal("300"),
                          start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))

    assert renew_expired(today=date(2024, 2, 5)) == 1
    old.refresh_from_db()
    assert not old.is_active
    successor = Budget.objects.get(is_active=True, auto_renew=True)
    assert successor.start_date == date(2024, 2, 1)
    assert successor.end_date == date(2024, 2, 29)
    assert successor.amount == Decimal("300.00")
    assert renew_expired(today=date(2024, 2, 5)) == 0


def test_alerts_listing_and_read(budget, transactions, checking, food, other_user):
    spend(transactions, checking, food, "450")
    service = BudgetService(budget.user)
    alert = service.list_alerts(unread_only=True).get()
    service.mark_alert_read(alert.pk)
    assert not service.list_alerts(unread_only=True).exists()
    assert service.list_alerts().count() == 1
    with pytest.raises(NotFoundError):
        BudgetService(other_user).mark_alert_read(alert.pk)


def test_delete_budget(budget, other_user):
    with pytest.raises(NotFoundError):
        BudgetService(other_user).delete_budget(budget.pk)
    BudgetService(budget.user).delete_budget(budget.pk)
    assert not Budget.objects.exists()
