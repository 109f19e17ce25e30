import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from carteira.finance.models import ZERO, Budget, BudgetAlert, Category, Transaction
from carteira.finance.repos import NotFoundError, ValidationError, get_owned, normalize_amount
from carteira.services.formatting import format_brl
from carteira.services.invoice_service import parse_date
from carteira.services.periods import period_end

logger = logging.getLogger(__name__)

UNDER_BUDGET = "under_budget"
ON_TRACK = "on_track"
OVER_BUDGET = "over_budget"
STATUS_RANK = {UNDER_BUDGET: 0, ON_TRACK: 1, OVER_BUDGET: 2}

PERIODS = list(Budget.PERIOD_MONTHS)
UPDATABLE_FIELDS = ("name", "description", "amount", "period", "start_date", "end_date", "alert_percentage",
                    "is_active", "auto_renew", "category_id")


def budget_percentage(spent, amount) -> Decimal:
    if not amount:
        return ZERO
    return (Decimal(spent) / Decimal(amount) * 100).quantize(Decimal("0.01"))


def determine_budget_status(spent, amount, alert_percentage=None) -> str:
    if alert_percentage is None:
        alert_percentage = settings.CARTEIRA.get("DEFAULT_ALERT_PERCENTAGE", 80)
    if Decimal(spent) > Decimal(amount):
        return OVER_BUDGET
    if budget_percentage(spent, amount) >= Decimal(alert_percentage):
        return ON_TRACK
    return UNDER_BUDGET


def budget_status(budget: Budget) -> str:
    return determine_budget_status(budget.spent, budget.amount, budget.alert_percentage)


def compute_spent(budget: Budget) -> Decimal:
    """Sum of confirmed expenses in the budget's window (all expenses when it has no category)."""
    qs = Transaction.objects.filter(
        user_id=budget.user_id,
        type=Transaction.TYPE_EXPENSE,
        status="confirmada",
        date__gte=budget.start_date,
        date__lte=budget.end_date,
    )
    if budget.category_id:
        qs = qs.filter(category_id=budget.category_id)
    return qs.aggregate(total=Sum("amount"))["total"] or ZERO


def refresh_budget(budget: Budget) -> Budget:
    """Recompute spent/remaining and raise an alert when the status gets worse."""
    before = budget_status(budget)
    budget.spent = compute_spent(budget)
    budget.remaining = budget.amount - budget.spent
    budget.save(update_fields=["spent", "remaining", "updated_at"])

    after = budget_status(budget)
    if STATUS_RANK[after] > STATUS_RANK[before]:
        pct = budget_percentage(budget.spent, budget.amount)
        if after == OVER_BUDGET:
            level = "exceeded"
            message = f"Orçamento '{budget.name}' excedido: {format_brl(budget.spent)} de {format_brl(budget.amount)} ({pct}%)"
        else:
            level = "warning"
            message = f"Orçamento '{budget.name}' atingiu {pct}% do limite de {format_brl(budget.amount)}"
        BudgetAlert.objects.create(budget=budget, level=level, message=message)
        logger.warning("Budget %s moved to %s", budget.pk, after)
    return budget


def refresh_budgets_for(user_id, category_ids, dates):
    """Refresh active budgets touched by a change in ``category_ids`` on any of ``dates``."""
    dates = [d for d in dates if d]
    if not dates:
        return 0
    qs = Budget.objects.filter(user_id=user_id, is_active=True,
                               start_date__lte=max(dates), end_date__gte=min(dates))
    category_ids = {c for c in category_ids if c}
    qs = qs.filter(category_id__in=category_ids) | qs.filter(category__isnull=True)
    count = 0
    for budget in qs.distinct():
        refresh_budget(budget)
        count += 1
    return count


def renew_expired(today=None) -> int:
    """Roll auto-renewing budgets whose period ended into the next period."""
    today = today or timezone.localdate()
    renewed = 0
    for budget in Budget.objects.filter(is_active=True, auto_renew=True, end_date__lt=today):
        with transaction.atomic():
            months = Budget.PERIOD_MONTHS[budget.period]
            start = budget.end_date + timedelta(days=1)
            successor = Budget.objects.create(
                user_id=budget.user_id,
                category_id=budget.category_id,
                name=budget.name,
                description=budget.description,
                amount=budget.amount,
                remaining=budget.amount,
                period=budget.period,
                start_date=start,
                end_date=period_end(start, months),
                alert_percentage=budget.alert_percentage,
                auto_renew=True,
            )
            refresh_budget(successor)
            budget.is_active = False
            budget.save(update_fields=["is_active", "updated_at"])
        logger.info("Budget %s renewed as %s", budget.pk, successor.pk)
        renewed += 1
    return renewed


class BudgetService():
    def __init__(self, user):
        self.user = user

    def list_budgets(self, is_active=None):
        qs = Budget.objects.filter(user=self.user).select_related("category")
        if is_active is not None:
            qs = qs.filter(is_active=is_active)
        return qs.order_by("-start_date", "name")

    def get_budget(self, budget_id):
        return get_owned(Budget, self.user, budget_id, "Budget")

    def _clean(self, fields):
        if "name" in fields and not fields["name"]:
            raise ValidationError("Budget name is required")
        if "amount" in fields:
            fields["amount"] = normalize_amount(fields["amount"])
            if fields["amount"] <= ZERO:
                raise ValidationError("Amount must be greater than zero")
        if "period" in fields and fields["period"] not in PERIODS:
            raise ValidationError(f"Invalid period: {fields['period']}")
        if "alert_percentage" in fields:
            pct = normalize_amount(fields["alert_percentage"], "alert_percentage")
            if not Decimal("1") <= pct <= Decimal("100"):
                raise ValidationError("Alert percentage must be between 1 and 100")
            fields["alert_percentage"] = pct
        for name in ("start_date", "end_date"):
            if name in fields:
                fields[name] = parse_date(fields[name], name)
        if fields.get("category_id"):
            category = get_owned(Category, self.user, fields.pop("category_id"), "Category")
            if category.type != Transaction.TYPE_EXPENSE:
                raise ValidationError("Budgets track expense categories only")
            fields["category"] = category
        elif "category_id" in fields:
            fields.pop("category_id")
            fields["category"] = None
        return fields

    def create_budget(self, **data):
        missing = [f for f in ("name", "amount") if data.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        fields = self._clean({k: v for k, v in data.items() if k in UPDATABLE_FIELDS})
        fields.setdefault("period", "mensal")
        if not fields.get("start_date"):
            fields["start_date"] = timezone.localdate().replace(day=1)
        if not fields.get("end_date"):
            fields["end_date"] = period_end(fields["start_date"], Budget.PERIOD_MONTHS[fields["period"]])
        if fields["end_date"] < fields["start_date"]:
            raise ValidationError("End date must be on or after the start date")
        fields.setdefault("alert_percentage", Decimal(settings.CARTEIRA.get("DEFAULT_ALERT_PERCENTAGE", 80)))

        with transaction.atomic():
            budget = Budget.objects.create(user=self.user, remaining=fields["amount"], **fields)
            refresh_budget(budget)
        logger.info("Budget %s created for %s", budget.pk, self.user)
        return budget

    def update_budget(self, budget_id, **changes):
        budget = self.get_budget(budget_id)
        fields = self._clean({k: v for k, v in changes.items() if k in UPDATABLE_FIELDS})
        period_changed = "period" in fields or "start_date" in fields
        for name, value in fields.items():
            setattr(budget, name, value)
        if period_changed and "end_date" not in fields:
            budget.end_date = period_end(budget.start_date, Budget.PERIOD_MONTHS[budget.period])
        if budget.end_date < budget.start_date:
            raise ValidationError("End date must be on or after the start date")
        with transaction.atomic():
            budget.save()
            refresh_budget(budget)
        return budget

    def delete_budget(self, budget_id):
        budget = self.get_budget(budget_id)
        budget.delete()
        logger.info("Budget %s deleted", budget_id)

    def list_alerts(self, unread_only=False):
        qs = BudgetAlert.objects.filter(budget__user=self.user).select_related("budget")
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs.order_by("-created_at", "-id")

    def mark_alert_read(self, alert_id):
        alert = BudgetAlert.objects.filter(budget__user=self.user, pk=alert_id).first()
        if alert is None:
            raise NotFoundError("Alert not found")
        alert.is_read = True
        alert.save(update_fields=["is_read"])
        return alert
