from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from django.db.models import Q

from .models import Account, Transaction


# Repository layer exceptions

class RepoError(Exception):
    """Base repository exception."""

class NotFoundError(RepoError):
    """Entity not found (or owned by another user)."""

class ValidationError(RepoError):
    """Validation failed (e.g. missing field, invalid amount)."""

class InsufficientFundsError(ValidationError):
    """Account balance does not cover the requested debit."""

class ConflictError(RepoError):
    """Operation conflicts with the current state (e.g. invoice already paid)."""


def normalize_amount(raw, field="amount") -> Decimal:
    try:
        d = Decimal(str(raw))
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {field} value: {raw}") from e
    if not d.is_finite():
        raise ValidationError(f"Invalid {field} value: {raw}")
    return d.quantize(Decimal("0.01"))


def get_owned(model, user, pk, label=None, for_update=False):
    """Fetch a row of ``model`` that belongs to ``user`` or raise NotFoundError."""
    qs = model.objects.filter(user=user)
    if for_update:
        qs = qs.select_for_update()
    obj = qs.filter(pk=pk).first() if pk is not None else None
    if obj is None:
        raise NotFoundError(f"{label or model.__name__} not found")
    return obj


# Repository interfaces

class AccountsRepoInterface(ABC):
    @abstractmethod
    def create(self, **fields) -> Any:
        """Create and return an account object"""
        raise NotImplementedError

    @abstractmethod
    def get(self, pk: int, for_update: bool = False) -> Optional[Any]:
        """Return account by primary key or None"""
        raise NotImplementedError

    @abstractmethod
    def list(self) -> List[Any]:
        """Return the user's accounts, favourites first."""
        raise NotImplementedError


class TransactionsRepoInterface(ABC):
    @abstractmethod
    def create(self, **fields) -> Any:
        """Create and return a transaction row (no balance side effects)."""
        raise NotImplementedError

    @abstractmethod
    def get(self, pk: int, for_update: bool = False) -> Optional[Any]:
        """Return transaction by pk or None."""
        raise NotImplementedError

    @abstractmethod
    def list(self, **filters) -> Any:
        """List transactions with simple filters (date range, account, category, ...)."""
        raise NotImplementedError


# Django implementations

class DjangoAccountsRepo(AccountsRepoInterface):
    def __init__(self, user):
        self.user = user

    def create(self, **fields) -> Account:
        return Account.objects.create(user=self.user, **fields)

    def get(self, pk: int, for_update: bool = False) -> Optional[Account]:
        qs = Account.objects.filter(user=self.user)
        if for_update:
            qs = qs.select_for_update()
        return qs.filter(pk=pk).first()

    def list(self) -> List[Account]:
        return list(Account.objects.filter(user=self.user).select_related("bank").order_by("-is_favorite", "-created_at"))

    def update(self, account: Account, fields: Dict[str, Any]) -> Account:
        for name, value in fields.items():
            setattr(account, name, value)
        account.save()
        return account

    def has_transactions(self, account: Account) -> bool:
        return Transaction.objects.filter(Q(account=account) | Q(destination_account=account)).exists()

    def delete(self, account: Account):
        account.delete()


class DjangoTransactionsRepo(TransactionsRepoInterface):
    ORDERING_FIELDS = {"date", "-date", "amount", "-amount", "description", "-description"}

    def __init__(self, user):
        self.user = user

    def create(self, **fields) -> Transaction:
        return Transaction.objects.create(user=self.user, **fields)

    def get(self, pk: int, for_update: bool = False) -> Optional[Transaction]:
        qs = Transaction.objects.filter(user=self.user)
        if for_update:
            return qs.select_for_update().filter(pk=pk).first()
        return qs.select_related("category", "account", "destination_account", "credit_card", "invoice").filter(pk=pk).first()

    def exists_hash(self, digest: str) -> bool:
        return Transaction.objects.filter(user=self.user, hash=digest).exists()

    def list(self, **filters):
        qs = Transaction.objects.filter(user=self.user).select_related(
            "category", "account", "destination_account", "credit_card"
        )
        start_date = filters.get("start_date")
        end_date = filters.get("end_date")
        tx_type = filters.get("type")
        category_id = filters.get("category_id")
        account_id = filters.get("account_id")
        credit_card_id = filters.get("credit_card_id")
        search = filters.get("search")
        min_value = filters.get("min_value")
        max_value = filters.get("max_value")

        if start_date:
            qs = qs.filter(date__gte=start_date)
        if end_date:
            qs = qs.filter(date__lte=end_date)
        if tx_type:
            qs = qs.filter(type=tx_type)
        if category_id:
            qs = qs.filter(category_id=category_id)
        if account_id:
            qs = qs.filter(Q(account_id=account_id) | Q(destination_account_id=account_id))
        if credit_card_id:
            qs = qs.filter(credit_card_id=credit_card_id)
        if search:
            qs = qs.filter(description__icontains=search)
        if min_value is not None:
            qs = qs.filter(amount__gte=min_value)
        if max_value is not None:
            qs = qs.filter(amount__lte=max_value)

        ordering = filters.get("ordering") or "-date"
        if ordering not in self.ORDERING_FIELDS:
            raise ValidationError(f"Invalid ordering: {ordering}")
        return qs.order_by(ordering, "-id")

    def delete(self, tx: Transaction):
        tx.delete()
