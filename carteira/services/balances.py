"""Account balance effects of a transaction row."""
import logging
from decimal import Decimal

from django.db.models import F

from carteira.finance.models import Account, Transaction

logger = logging.getLogger(__name__)

INACTIVE_STATUSES = ("cancelada", "estornada")


def balance_deltas(tx: Transaction):
    """Return ``[(account_id, delta), ...]`` for the effect of ``tx`` on bank accounts."""
    if tx.status in INACTIVE_STATUSES or tx.account_id is None:
        return []
    amount = Decimal(tx.amount)
    if tx.type == Transaction.TYPE_INCOME:
        return [(tx.account_id, amount)]
    if tx.type == Transaction.TYPE_TRANSFER:
        deltas = [(tx.account_id, -amount)]
        if tx.destination_account_id:
            deltas.append((tx.destination_account_id, amount))
        return deltas
    # despesa paid from an account, or bill_payment
    return [(tx.account_id, -amount)]


def apply_balance_effect(tx: Transaction, reverse: bool = False):
    """Apply (or undo) ``tx`` on its accounts. Must run inside ``transaction.atomic``."""
    for account_id, delta in balance_deltas(tx):
        if reverse:
            delta = -delta
        Account.objects.filter(pk=account_id).update(balance=F("balance") + delta)
        logger.debug("Account %s balance changed by %s (transaction %s)", account_id, delta, tx.pk)
