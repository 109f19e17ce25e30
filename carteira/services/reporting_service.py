from decimal import Decimal

from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from carteira.finance.models import ZERO, Account, Budget, Invoice, Transaction
from carteira.services.budget_service import OVER_BUDGET, ON_TRACK, UNDER_BUDGET, budget_status
from carteira.services.periods import add_months, month_bounds

CONFIRMED = "confirmada"


def percentage_change(current, previous) -> Decimal:
    if not previous:
        return Decimal("100.00") if current else ZERO
    return ((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100).quantize(Decimal("0.01"))


class ReportingService:
    def __init__(self, user):
        self.user = user

    def _confirmed(self):
        return Transaction.objects.filter(user=self.user, status=CONFIRMED)

    def _month_totals(self, start, end):
        qs = self._confirmed().filter(date__range=[start, end])
        income = qs.filter(type=Transaction.TYPE_INCOME).aggregate(t=Sum("amount"))["t"] or ZERO
        expenses = qs.filter(type=Transaction.TYPE_EXPENSE, credit_card__isnull=True).aggregate(t=Sum("amount"))["t"] or ZERO
        card_expenses = qs.filter(type=Transaction.TYPE_EXPENSE, credit_card__isnull=False).aggregate(t=Sum("amount"))["t"] or ZERO
        return income, expenses, card_expenses

    def dashboard(self, today=None):
        today = today or timezone.localdate()
        start, end = month_bounds(today)
        prev_start, prev_end = month_bounds(add_months(start, -1))

        income, expenses, card_expenses = self._month_totals(start, end)
        prev_income, prev_expenses, prev_card = self._month_totals(prev_start, prev_end)

        total_balance = Account.objects.filter(user=self.user, is_active=True).aggregate(t=Sum("balance"))["t"] or ZERO

        open_invoices = Invoice.objects.filter(user=self.user, is_paid=False).exclude(status=Invoice.STATUS_CANCELLED)
        open_total = sum((inv.remaining_amount for inv in open_invoices), ZERO)

        budget_counts = {UNDER_BUDGET: 0, ON_TRACK: 0, OVER_BUDGET: 0}
        for budget in Budget.objects.filter(user=self.user, is_active=True):
            budget_counts[budget_status(budget)] += 1

        recent = list(
            Transaction.objects.filter(user=self.user)
            .select_related("category", "account", "destination_account", "credit_card")
            .order_by("-date", "-id")[:5]
        )

        return {
            "total_balance": total_balance,
            "monthly_income": income,
            "monthly_expenses": expenses,
            "credit_card_expenses": card_expenses,
            "income_change": percentage_change(income, prev_income),
            "expenses_change": percentage_change(expenses, prev_expenses),
            "credit_card_change": percentage_change(card_expenses, prev_card),
            "open_invoices_total": open_total,
            "open_invoices_count": open_invoices.count(),
            "budgets": budget_counts,
            "recent_transactions": recent,
            "period": {"start": start, "end": end},
        }

    def category_totals(self, start_date=None, end_date=None, type=Transaction.TYPE_EXPENSE):
        qs = self._confirmed().filter(type=type)
        if start_date and end_date:
            qs = qs.filter(date__range=[start_date, end_date])
        rows = qs.values("category_id", "category__name", "category__color")\
            .annotate(total=Sum("amount"), count=Count("id"))\
            .order_by("-total")
        return [
            {
                "category_id": row["category_id"],
                "category": row["category__name"] or "Sem Categoria",
                "color": row["category__color"],
                "total": row["total"],
                "count": row["count"],
            }
            for row in rows
        ]

    def cashflow(self, start_date, end_date):
        rows = self._confirmed().filter(
            date__range=[start_date, end_date],
            type__in=[Transaction.TYPE_INCOME, Transaction.TYPE_EXPENSE],
        ).annotate(month=TruncMonth("date")).values("month", "type")\
            .annotate(total=Sum("amount")).order_by("month")

        months = {}
        for row in rows:
            entry = months.setdefault(row["month"], {"month": row["month"], "income": ZERO, "expenses": ZERO})
            key = "income" if row["type"] == Transaction.TYPE_INCOME else "expenses"
            entry[key] += row["total"]
        result = []
        for month in sorted(months):
            entry = months[month]
            entry["net"] = entry["income"] - entry["expenses"]
            result.append(entry)
        return result
