import logging
from datetime import date, datetime, timedelta

from django.db import transaction
from django.utils import timezone

from carteira.finance.models import ZERO, Account, CreditCard, Invoice, Transaction
from carteira.finance.repos import (InsufficientFundsError, ValidationError,
                                    get_owned, normalize_amount)
from carteira.services.balances import apply_balance_effect
from carteira.services.formatting import format_brl
from carteira.services.periods import add_months, clamp_day

logger = logging.getLogger(__name__)

UNCATEGORIZED_NAME = "Outros"
UNCATEGORIZED_COLOR = "#64748B"
PAYMENT_TAGS = ["fatura", "pagamento"]


def parse_date(value, field="date"):
    """Accept a date, a datetime or an ISO string (time part ignored)."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise ValidationError(f"Invalid {field}: {value}") from e


def derive_invoice_status(invoice: Invoice, today: date = None) -> str:
    """Status shown to clients: paid and cancelled stick, otherwise open until the due date passes."""
    if invoice.is_paid or invoice.status == Invoice.STATUS_PAID:
        return Invoice.STATUS_PAID
    if invoice.status == Invoice.STATUS_CANCELLED:
        return Invoice.STATUS_CANCELLED
    today = today or timezone.localdate()
    return Invoice.STATUS_OVERDUE if today > invoice.due_date else Invoice.STATUS_OPEN


def billing_cycle(card: CreditCard, purchase_date: date):
    """Return ``(period_start, closing_date, due_date)`` of the cycle a purchase falls in."""
    if purchase_date.day <= card.closing_day:
        closing = clamp_day(purchase_date.year, purchase_date.month, card.closing_day)
    else:
        closing = add_months(purchase_date.replace(day=1), 1, card.closing_day)
    return cycle_for_closing(card, closing)


def next_closing(card: CreditCard, closing: date, months: int = 1) -> date:
    """Closing date ``months`` cycles after ``closing``."""
    return add_months(closing.replace(day=1), months, card.closing_day)


def cycle_for_closing(card: CreditCard, closing: date):
    """Return ``(period_start, closing_date, due_date)`` of the cycle closing on ``closing``."""
    if card.due_day > card.closing_day:
        due = clamp_day(closing.year, closing.month, card.due_day)
    else:
        due = add_months(closing.replace(day=1), 1, card.due_day)

    return next_closing(card, closing, -1) + timedelta(days=1), closing, due


def refresh_statuses(today: date = None, user=None) -> int:
    """Persist the derived status of unpaid invoices; returns how many rows changed."""
    today = today or timezone.localdate()
    qs = Invoice.objects.filter(is_paid=False).exclude(status__in=[Invoice.STATUS_PAID, Invoice.STATUS_CANCELLED])
    if user is not None:
        qs = qs.filter(user=user)
    overdue = qs.filter(due_date__lt=today).exclude(status=Invoice.STATUS_OVERDUE).update(status=Invoice.STATUS_OVERDUE)
    reopened = qs.filter(due_date__gte=today, status=Invoice.STATUS_OVERDUE).update(status=Invoice.STATUS_OPEN)
    if overdue or reopened:
        logger.info("Invoice statuses refreshed: %s overdue, %s reopened", overdue, reopened)
    return overdue + reopened


class InvoiceService():
    def __init__(self, user):
        self.user = user

    def list_invoices(self, credit_card_id=None):
        qs = Invoice.objects.filter(user=self.user).select_related("credit_card")
        if credit_card_id:
            qs = qs.filter(credit_card_id=credit_card_id)
        return qs.order_by("-due_date", "-id")

    def get_invoice(self, invoice_id, for_update=False):
        return get_owned(Invoice, self.user, invoice_id, "Invoice", for_update=for_update)

    def create_invoice(self, **data):
        required = ("credit_card_id", "card_name", "amount", "due_date", "closing_date")
        missing = [f for f in required if data.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        card = get_owned(CreditCard, self.user, data["credit_card_id"], "Credit card")
        amount = normalize_amount(data["amount"])
        if amount < ZERO:
            raise ValidationError("Invoice amount cannot be negative")

        invoice = Invoice.objects.create(
            user=self.user,
            credit_card=card,
            card_name=data["card_name"],
            amount=amount,
            minimum_amount=normalize_amount(data.get("minimum_amount") or 0, "minimum_amount"),
            previous_balance=normalize_amount(data.get("previous_balance") or 0, "previous_balance"),
            new_balance=amount,
            credit_limit=card.credit_limit,
            available_credit=card.credit_limit - amount,
            due_date=parse_date(data["due_date"], "due_date"),
            closing_date=parse_date(data["closing_date"], "closing_date"),
            period_start=parse_date(data.get("period_start"), "period_start"),
            period_end=parse_date(data.get("period_end"), "period_end"),
            status=Invoice.STATUS_OPEN,
            notes=data.get("notes"),
        )
        logger.info("Invoice %s created for card %s (%s)", invoice.pk, card.pk, amount)
        return invoice

    def invoice_for_purchase(self, card: CreditCard, purchase_date: date) -> Invoice:
        """Return (locked) the invoice of the cycle ``purchase_date`` belongs to, creating it if needed."""
        return self.invoice_for_closing(card, billing_cycle(card, purchase_date)[1])

    def invoice_for_closing(self, card: CreditCard, closing: date) -> Invoice:
        period_start, closing, due = cycle_for_closing(card, closing)
        invoice, created = Invoice.objects.select_for_update().get_or_create(
            user=self.user,
            credit_card=card,
            closing_date=closing,
            defaults={
                "card_name": card.name,
                "due_date": due,
                "period_start": period_start,
                "period_end": closing,
                "credit_limit": card.credit_limit,
                "available_credit": card.available_limit,
            },
        )
        if created:
            logger.info("Opened invoice %s for card %s closing %s", invoice.pk, card.pk, closing)
        return invoice

    def items_by_category(self, invoice: Invoice):
        groups = {}
        purchases = invoice.transactions.filter(type=Transaction.TYPE_EXPENSE).select_related("category")
        for tx in purchases.order_by("date", "id"):
            if tx.category_id:
                key, name, color = tx.category.name.lower(), tx.category.name, tx.category.color or UNCATEGORIZED_COLOR
            else:
                key, name, color = UNCATEGORIZED_NAME.lower(), UNCATEGORIZED_NAME, UNCATEGORIZED_COLOR
            group = groups.setdefault(key, {"category": name, "color": color, "total": ZERO, "transactions": []})
            group["total"] += tx.amount
            group["transactions"].append(tx)
        return sorted(groups.values(), key=lambda g: g["total"], reverse=True)

    def pay_invoice(self, invoice_id, account_id, amount, description=None, payment_date=None):
        """Pay (fully or partially) an invoice from a bank account.

        Creates the ``bill_payment`` transaction, debits the account, updates the
        invoice paid amount/status and frees the card limit, all atomically.
        """
        if amount in (None, "") or not account_id:
            raise ValidationError("Account and amount are required")
        amount = normalize_amount(amount)
        if amount <= ZERO:
            raise ValidationError("Account and amount are required")
        paid_on = parse_date(payment_date, "payment_date") or timezone.localdate()

        card_id = self.get_invoice(invoice_id).credit_card_id
        with transaction.atomic():
            # lock order: card, invoice, account
            card = CreditCard.objects.select_for_update().get(pk=card_id)
            invoice = self.get_invoice(invoice_id, for_update=True)
            if invoice.is_paid:
                raise ValidationError("Invoice already paid")
            account = get_owned(Account, self.user, account_id, "Account", for_update=True)
            if account.balance < amount:
                raise InsufficientFundsError("Insufficient balance")
            card_applied = min(max(card.current_balance, ZERO), amount)

            payment = Transaction.objects.create(
                user=self.user,
                type=Transaction.TYPE_BILL_PAYMENT,
                description=description or f"Pagamento fatura {invoice.card_name}",
                amount=amount,
                date=paid_on,
                account=account,
                credit_card_id=invoice.credit_card_id,
                invoice=invoice,
                tags=list(PAYMENT_TAGS),
                metadata={
                    "invoice_id": invoice.pk,
                    "card_name": invoice.card_name,
                    "payment_type": Transaction.TYPE_BILL_PAYMENT,
                    "card_balance_applied": str(card_applied),
                },
            )
            apply_balance_effect(payment)

            invoice.paid_amount += amount
            invoice.paid_account = account
            if invoice.paid_amount >= invoice.amount:
                invoice.is_paid = True
                invoice.status = Invoice.STATUS_PAID
                invoice.paid_on = paid_on
            else:
                invoice.status = Invoice.STATUS_OPEN
            invoice.save()

            card.current_balance -= card_applied
            card.recompute_available_limit()
            card.save(update_fields=["current_balance", "available_limit", "updated_at"])

        logger.info(
            "Invoice %s paid %s from account %s (%s)",
            invoice.pk, format_brl(amount), account.pk, "full" if invoice.is_paid else "partial",
        )
        return invoice, payment

    def reverse_payment(self, payment: Transaction):
        """Undo a bill payment and delete its transaction."""
        invoice_id = payment.invoice_id or (payment.metadata or {}).get("invoice_id")
        card_id = payment.credit_card_id or (
            Invoice.objects.filter(user=self.user, pk=invoice_id).values_list("credit_card_id", flat=True).first()
        )
        applied = (payment.metadata or {}).get("card_balance_applied")
        card_applied = normalize_amount(applied) if applied is not None else payment.amount
        with transaction.atomic():
            card = CreditCard.objects.select_for_update().filter(pk=card_id).first() if card_id else None
            invoice = Invoice.objects.select_for_update().filter(user=self.user, pk=invoice_id).first()
            apply_balance_effect(payment, reverse=True)
            if invoice is not None:
                invoice.paid_amount = max(invoice.paid_amount - payment.amount, ZERO)
                if invoice.paid_amount < invoice.amount:
                    invoice.is_paid = False
                    invoice.paid_on = None
                    invoice.status = Invoice.STATUS_OPEN
                    invoice.status = derive_invoice_status(invoice)
                if invoice.paid_amount == ZERO:
                    invoice.paid_account = None
                invoice.save()

                if card is not None:
                    card.current_balance += card_applied
                    card.recompute_available_limit()
                    card.save(update_fields=["current_balance", "available_limit", "updated_at"])
            else:
                logger.warning("Bill payment %s has no invoice to reverse", payment.pk)
            logger.info("Bill payment %s reversed", payment.pk)
            payment.delete()
