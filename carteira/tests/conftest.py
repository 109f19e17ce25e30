from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient

from carteira.finance.models import Account, Category, CreditCard


@pytest.fixture
def user(db):
    return User.objects.create_user(username="maria", password="segredo123")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="joao", password="segredo123")


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def checking(user):
    return Account.objects.create(user=user, name="Conta Corrente", type="corrente",
                                  balance=Decimal("1000.00"), initial_balance=Decimal("1000.00"))


@pytest.fixture
def savings(user):
    return Account.objects.create(user=user, name="Poupança", type="poupanca")


@pytest.fixture
def food(user):
    return Category.objects.create(user=user, name="Alimentação", type="despesa", color="orange", icon="UtensilsCrossed")


@pytest.fixture
def salary(user):
    return Category.objects.create(user=user, name="Salário", type="receita", color="green", icon="DollarSign")


@pytest.fixture
def card(user):
    return CreditCard.objects.create(user=user, name="Nubank", brand="mastercard", type="credito",
                                     last_four_digits="1234", credit_limit=Decimal("5000.00"),
                                     available_limit=Decimal("5000.00"), closing_day=10, due_day=20)


@pytest.fixture
def today():
    return date(2024, 3, 15)
