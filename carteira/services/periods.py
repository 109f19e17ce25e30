"""Calendar helpers shared by invoices, budgets and reports."""
import calendar
from datetime import date, timedelta


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, moving days past the end of the month to its last day."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def add_months(d: date, months: int, day: int = None) -> date:
    total = d.year * 12 + (d.month - 1) + months
    year, month = divmod(total, 12)
    return clamp_day(year, month + 1, day or d.day)


def month_bounds(d: date):
    start = d.replace(day=1)
    end = clamp_day(d.year, d.month, 31)
    return start, end


def period_end(start: date, months: int) -> date:
    """Last day of a period of ``months`` months starting at ``start``."""
    return add_months(start, months) - timedelta(days=1)
