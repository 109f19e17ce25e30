import logging

from django.db import transaction
from django.utils import timezone

from carteira.finance.models import ZERO, Category, Transaction
from carteira.finance.repos import (DjangoAccountsRepo, DjangoTransactionsRepo, NotFoundError, ValidationError,
                                    get_owned, normalize_amount)
from carteira.services.balances import apply_balance_effect
from carteira.services.credit_card_service import CreditCardService
from carteira.services.invoice_service import InvoiceService, parse_date

logger = logging.getLogger(__name__)

USER_TYPES = (Transaction.TYPE_INCOME, Transaction.TYPE_EXPENSE, Transaction.TYPE_TRANSFER)
STATUSES = [choice for choice, _ in Transaction.STATUS_CHOICES]
# fields a card purchase or a bill payment may still change
LOCKED_EDITABLE = ("description", "category_id", "notes", "tags")
EDITABLE = ("type", "description", "amount", "date", "category_id", "account_id", "destination_account_id",
            "status", "is_paid", "notes", "tags", "metadata")


class TransactionService():
    def __init__(self, repository: DjangoTransactionsRepo, accounts_repo: DjangoAccountsRepo):
        self.repository = repository
        self.accounts_repo = accounts_repo
        self.user = repository.user

    def _account(self, account_id, label="Account"):
        account = self.accounts_repo.get(account_id) if account_id else None
        if account is None:
            raise NotFoundError(f"{label} not found")
        return account

    def _resolve(self, data):
        """Validate raw values and turn them into model field values."""
        tx_type = data.get("type")
        if tx_type == Transaction.TYPE_BILL_PAYMENT:
            raise ValidationError("Bill payments are created by paying an invoice")
        if tx_type not in USER_TYPES:
            raise ValidationError(f"Invalid transaction type: {tx_type}")

        description = (data.get("description") or "").strip()
        if not description:
            raise ValidationError("Description is required")

        if data.get("amount") in (None, ""):
            raise ValidationError("Amount is required")
        amount = normalize_amount(data["amount"])
        if amount <= ZERO:
            raise ValidationError("Amount must be greater than zero")

        status = data.get("status") or "confirmada"
        if status not in STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        if not data.get("account_id"):
            raise ValidationError("Account is required")
        account = self._account(data["account_id"])

        destination = None
        if tx_type == Transaction.TYPE_TRANSFER:
            if not data.get("destination_account_id"):
                raise ValidationError("Destination account is required for transfers")
            destination = self._account(data["destination_account_id"], "Destination account")
            if destination.pk == account.pk:
                raise ValidationError("Origin and destination accounts must be different")

        category = None
        if data.get("category_id"):
            category = get_owned(Category, self.user, data["category_id"], "Category")
            if tx_type in (Transaction.TYPE_INCOME, Transaction.TYPE_EXPENSE) and category.type != tx_type:
                raise ValidationError("Category type does not match transaction type")

        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise ValidationError("Tags must be a list")

        return {
            "type": tx_type,
            "description": description,
            "amount": amount,
            "date": parse_date(data.get("date")) or timezone.localdate(),
            "category": category,
            "account": account,
            "destination_account": destination,
            "status": status,
            "is_paid": data.get("is_paid", True),
            "notes": data.get("notes"),
            "tags": tags,
            "metadata": data.get("metadata") or {},
        }

    def create_transaction(self, **data):
        if data.get("type") == Transaction.TYPE_EXPENSE and data.get("credit_card_id"):
            rows = CreditCardService(self.user).record_purchase(
                data["credit_card_id"],
                description=data.get("description"),
                amount=data.get("amount"),
                date=data.get("date"),
                category_id=data.get("category_id"),
                installments=data.get("installments") or 1,
                notes=data.get("notes"),
                tags=data.get("tags"),
            )
            return rows[0]

        fields = self._resolve(data)
        with transaction.atomic():
            tx = self.repository.create(**fields)
            apply_balance_effect(tx)
        logger.info("Transaction %s (%s %s) created", tx.pk, tx.type, tx.amount)
        return tx

    def get_transaction(self, transaction_id: int):
        tx = self.repository.get(transaction_id)
        if not tx:
            raise NotFoundError("Transaction not found")
        return tx

    def list_transactions(self, **filters):
        return self.repository.list(**filters)

    def _update_locked(self, tx, changes):
        current = {
            "type": tx.type, "amount": tx.amount, "date": tx.date, "account_id": tx.account_id,
            "destination_account_id": tx.destination_account_id, "status": tx.status,
            "credit_card_id": tx.credit_card_id,
        }
        for name, value in changes.items():
            if name in LOCKED_EDITABLE or name not in current:
                continue
            if name == "amount":
                value = normalize_amount(value)
            elif name == "date":
                value = parse_date(value)
            elif name.endswith("_id"):
                value = int(value) if value not in (None, "") else None
            if value != current[name]:
                raise ValidationError("Only description, category, notes and tags can be changed on this transaction")

        if "description" in changes:
            description = (changes["description"] or "").strip()
            if not description:
                raise ValidationError("Description is required")
            tx.description = description
        if "category_id" in changes:
            if changes["category_id"]:
                category = get_owned(Category, self.user, changes["category_id"], "Category")
                if tx.type == Transaction.TYPE_EXPENSE and category.type != tx.type:
                    raise ValidationError("Category type does not match transaction type")
                tx.category = category
            else:
                tx.category = None
        if "notes" in changes:
            tx.notes = changes["notes"]
        if "tags" in changes:
            tx.tags = changes["tags"] or []
        tx.save()
        return tx

    def update_transaction(self, transaction_id: int, **changes):
        """Update a transaction, moving its balance effect from the old values to the new ones."""
        with transaction.atomic():
            tx = self.repository.get(transaction_id, for_update=True)
            if not tx:
                raise NotFoundError("Transaction not found")
            if tx.is_card_purchase or tx.type == Transaction.TYPE_BILL_PAYMENT:
                return self._update_locked(tx, changes)
            if changes.get("credit_card_id"):
                raise ValidationError("A transaction cannot be moved to a credit card")

            data = {
                "type": tx.type, "description": tx.description, "amount": tx.amount, "date": tx.date,
                "category_id": tx.category_id, "account_id": tx.account_id,
                "destination_account_id": tx.destination_account_id, "status": tx.status,
                "is_paid": tx.is_paid, "notes": tx.notes, "tags": tx.tags, "metadata": tx.metadata,
            }
            data.update({k: v for k, v in changes.items() if k in EDITABLE})
            fields = self._resolve(data)

            apply_balance_effect(tx, reverse=True)
            for name, value in fields.items():
                setattr(tx, name, value)
            tx.save()
            apply_balance_effect(tx)
        logger.info("Transaction %s updated", tx.pk)
        return tx

    def delete_transaction(self, transaction_id: int):
        with transaction.atomic():
            tx = self.repository.get(transaction_id, for_update=True)
            if not tx:
                raise NotFoundError("Transaction not found")
            if tx.is_card_purchase:
                CreditCardService(self.user).reverse_purchase(tx)
            elif tx.type == Transaction.TYPE_BILL_PAYMENT:
                InvoiceService(self.user).reverse_payment(tx)
            else:
                apply_balance_effect(tx, reverse=True)
                logger.info("Transaction %s deleted", tx.pk)
                self.repository.delete(tx)
        return True

