from django.core.management.base import BaseCommand, CommandError

from carteira.finance.repos import ValidationError
from carteira.services.invoice_service import parse_date, refresh_statuses


class Command(BaseCommand):
    help = 'Mark unpaid invoices past their due date as overdue (vencida)'

    def add_arguments(self, parser):
        parser.add_argument('--date', help='Reference date (YYYY-MM-DD), defaults to today')

    def handle(self, *args, **options):
        try:
            today = parse_date(options.get('date'), 'date')
        except ValidationError as e:
            raise CommandError(str(e)) from e
        changed = refresh_statuses(today=today)
        self.stdout.write(self.style.SUCCESS(f'Updated {changed} invoice(s)'))
