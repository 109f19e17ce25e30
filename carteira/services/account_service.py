import logging
from decimal import Decimal

from carteira.finance.models import Account, Bank
from carteira.finance.repos import DjangoAccountsRepo, NotFoundError, ValidationError, normalize_amount

logger = logging.getLogger(__name__)

ACCOUNT_TYPES = [choice for choice, _ in Account.TYPE_CHOICES]
UPDATABLE_FIELDS = ("name", "type", "agency", "account_number", "color", "is_favorite", "is_active", "description", "notes")


class AccountService():
    def __init__(self, repository: DjangoAccountsRepo):
        self.repository = repository

    def _resolve_bank(self, bank_id):
        if not bank_id:
            return None
        try:
            return Bank.objects.filter(pk=int(bank_id)).first()
        except (TypeError, ValueError):
            return None

    def create_account(self, name, type, bank_id=None, agency=None, account_number=None,
                       initial_balance=None, color=None, description=None, is_favorite=False):
        if not name:
            raise ValidationError("Account name is required")
        if type not in ACCOUNT_TYPES:
            raise ValidationError(f"Invalid account type: {type}")

        opening = normalize_amount(initial_balance, "initial_balance") if initial_balance is not None else Decimal("0.00")
        bank = self._resolve_bank(bank_id)

        account = self.repository.create(
            name=name,
            type=type,
            bank=bank,
            bank_name=bank.name if bank else Account.NO_BANK,
            agency=agency or None,
            account_number=account_number or None,
            balance=opening,
            initial_balance=opening,
            color=color or Account._meta.get_field("color").default,
            description=description or f"Conta {type}",
            is_favorite=is_favorite,
        )
        logger.info("Account %s created for %s with balance %s", account.pk, self.repository.user, opening)
        return account

    def get_account(self, account_id: int):
        account = self.repository.get(account_id)
        if not account:
            raise NotFoundError("Account not found")
        return account

    def get_all_accounts(self):
        return self.repository.list()

    def update_account(self, account_id: int, **changes):
        account = self.get_account(account_id)
        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if "name" in fields and not fields["name"]:
            raise ValidationError("Account name is required")
        if "type" in fields and fields["type"] not in ACCOUNT_TYPES:
            raise ValidationError(f"Invalid account type: {fields['type']}")
        if "bank_id" in changes:
            bank = self._resolve_bank(changes["bank_id"])
            fields["bank"] = bank
            fields["bank_name"] = bank.name if bank else Account.NO_BANK
        # an explicit initial balance resets the current balance
        if changes.get("initial_balance") is not None:
            opening = normalize_amount(changes["initial_balance"], "initial_balance")
            fields["initial_balance"] = opening
            fields["balance"] = opening
        return self.repository.update(account, fields)

    def delete_account(self, account_id: int):
        account = self.get_account(account_id)
        if self.repository.has_transactions(account):
            raise ValidationError("Cannot delete an account with transactions")
        self.repository.delete(account)
        logger.info("Account %s deleted", account_id)
        return account
