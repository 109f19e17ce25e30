import logging
from decimal import ROUND_DOWN, Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from carteira.finance.models import ZERO, Category, CreditCard, Invoice, Transaction
from carteira.finance.repos import ConflictError, ValidationError, get_owned, normalize_amount
from carteira.services.invoice_service import InvoiceService, billing_cycle, next_closing, parse_date
from carteira.services.periods import add_months

logger = logging.getLogger(__name__)

CARD_BRANDS = [choice for choice, _ in CreditCard.BRAND_CHOICES]
CARD_TYPES = [choice for choice, _ in CreditCard.TYPE_CHOICES]
REQUIRED_FIELDS = ("name", "brand", "type", "last_four_digits", "closing_day", "due_day")
UPDATABLE_FIELDS = ("name", "brand", "type", "last_four_digits", "credit_limit", "closing_day", "due_day",
                    "color", "notes", "is_favorite", "is_active")
CENT = Decimal("0.01")


def max_installments():
    return settings.CARTEIRA.get("MAX_INSTALLMENTS", 18)


def split_installments(amount: Decimal, count: int):
    """Split ``amount`` into ``count`` equal parts; leftover cents go on the first one."""
    if count < 1:
        raise ValidationError("Installments must be at least 1")
    base = (amount / count).quantize(CENT, rounding=ROUND_DOWN)
    if base < CENT:
        raise ValidationError("Amount too small for the number of installments")
    parts = [base] * count
    parts[0] += amount - base * count
    return parts


def _validate_day(value, field):
    try:
        day = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {field}: {value}") from e
    if not 1 <= day <= 31:
        raise ValidationError(f"{field} must be between 1 and 31")
    return day


class CreditCardService():
    def __init__(self, user):
        self.user = user
        self.invoices = InvoiceService(user)

    def list_cards(self):
        return CreditCard.objects.filter(user=self.user).order_by("-is_favorite", "-created_at", "-id")

    def get_card(self, card_id, for_update=False):
        return get_owned(CreditCard, self.user, card_id, "Credit card", for_update=for_update)

    def _clean(self, fields):
        if "brand" in fields and fields["brand"] not in CARD_BRANDS:
            raise ValidationError(f"Invalid card brand: {fields['brand']}")
        if "type" in fields and fields["type"] not in CARD_TYPES:
            raise ValidationError(f"Invalid card type: {fields['type']}")
        if "last_four_digits" in fields:
            digits = str(fields["last_four_digits"])
            if len(digits) != 4 or not digits.isdigit():
                raise ValidationError("Last four digits must be exactly 4 numbers")
        for day_field in ("closing_day", "due_day"):
            if day_field in fields:
                fields[day_field] = _validate_day(fields[day_field], day_field)
        if "credit_limit" in fields:
            fields["credit_limit"] = normalize_amount(fields["credit_limit"] or 0, "credit_limit")
            if fields["credit_limit"] < ZERO:
                raise ValidationError("Credit limit cannot be negative")
        return fields

    def _clear_other_favorites(self, card):
        CreditCard.objects.filter(user=self.user, is_favorite=True).exclude(pk=card.pk).update(is_favorite=False)

    def create_card(self, **data):
        missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        fields = self._clean({k: v for k, v in data.items() if k in UPDATABLE_FIELDS})
        fields.setdefault("credit_limit", ZERO)
        if not fields.get("color"):
            fields["color"] = settings.CARTEIRA.get("DEFAULT_COLOR", "#3b82f6")

        with transaction.atomic():
            card = CreditCard(user=self.user, current_balance=ZERO, **fields)
            card.recompute_available_limit()
            card.save()
            if card.is_favorite:
                self._clear_other_favorites(card)
        logger.info("Credit card %s created for %s", card.pk, self.user)
        return card

    def update_card(self, card_id, **changes):
        fields = self._clean({k: v for k, v in changes.items() if k in UPDATABLE_FIELDS})
        if "name" in fields and not fields["name"]:
            raise ValidationError("Card name is required")
        with transaction.atomic():
            card = self.get_card(card_id, for_update=True)
            for name, value in fields.items():
                setattr(card, name, value)
            card.recompute_available_limit()
            card.save()
            if card.is_favorite:
                self._clear_other_favorites(card)
        return card

    def delete_card(self, card_id):
        card = self.get_card(card_id)
        name = card.name
        card.delete()
        logger.info("Credit card %s deleted with its invoices", card_id)
        return name

    def record_purchase(self, card_id, description, amount, date=None, category_id=None,
                        installments=1, notes=None, tags=None):
        """Record a card purchase split into installments; returns the installment rows."""
        if not description or not str(description).strip():
            raise ValidationError("Description is required")
        amount = normalize_amount(amount)
        if amount <= ZERO:
            raise ValidationError("Amount must be greater than zero")
        try:
            installments = int(installments or 1)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid installments: {installments}") from e
        if not 1 <= installments <= max_installments():
            raise ValidationError(f"Installments must be between 1 and {max_installments()}")
        purchase_date = parse_date(date) or timezone.localdate()

        category = None
        if category_id:
            category = get_owned(Category, self.user, category_id, "Category")
            if category.type != Transaction.TYPE_EXPENSE:
                raise ValidationError("Category type does not match transaction type")

        parts = split_installments(amount, installments)
        rows = []
        with transaction.atomic():
            card = self.get_card(card_id, for_update=True)
            if card.credit_limit > ZERO and amount > card.available_limit:
                raise ValidationError("Purchase exceeds the available limit")

            first_closing = billing_cycle(card, purchase_date)[1]
            for k, part in enumerate(parts):
                installment_date = add_months(purchase_date, k)
                invoice = self.invoices.invoice_for_closing(card, next_closing(card, first_closing, k))
                if invoice.is_paid:
                    raise ConflictError("Invoice already paid for this billing cycle")
                label = description.strip()
                if installments > 1:
                    label = f"{label} ({k + 1}/{installments})"
                rows.append(Transaction.objects.create(
                    user=self.user,
                    type=Transaction.TYPE_EXPENSE,
                    description=label,
                    amount=part,
                    date=installment_date,
                    category=category,
                    credit_card=card,
                    invoice=invoice,
                    installment_number=k + 1 if installments > 1 else None,
                    installment_count=installments if installments > 1 else None,
                    notes=notes,
                    tags=tags or [],
                ))
                Invoice.objects.filter(pk=invoice.pk).update(
                    amount=F("amount") + part, new_balance=F("new_balance") + part,
                )

            card.current_balance += amount
            card.recompute_available_limit()
            card.save(update_fields=["current_balance", "available_limit", "updated_at"])

        logger.info("Card %s purchase of %s in %s installment(s)", card.pk, amount, installments)
        return rows

    def reverse_purchase(self, tx: Transaction):
        """Remove one card purchase row from its invoice and the card balance, then delete it."""
        with transaction.atomic():
            card = self.get_card(tx.credit_card_id, for_update=True)
            if tx.invoice_id:
                invoice = Invoice.objects.select_for_update().get(pk=tx.invoice_id)
                if invoice.is_paid:
                    raise ConflictError("Cannot delete a purchase from a paid invoice")
                invoice.amount = max(invoice.amount - tx.amount, ZERO)
                invoice.new_balance = max(invoice.new_balance - tx.amount, ZERO)
                invoice.save(update_fields=["amount", "new_balance", "updated_at"])
            card.current_balance = max(card.current_balance - tx.amount, ZERO)
            card.recompute_available_limit()
            card.save(update_fields=["current_balance", "available_limit", "updated_at"])
            logger.info("Card purchase %s removed from card %s", tx.pk, card.pk)
            tx.delete()
