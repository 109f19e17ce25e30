from django.core.management.base import BaseCommand, CommandError

from carteira.finance.repos import ValidationError
from carteira.services.budget_service import renew_expired
from carteira.services.invoice_service import parse_date


class Command(BaseCommand):
    help = 'Start the next period of auto-renewing budgets whose period has ended'

    def add_arguments(self, parser):
        parser.add_argument('--date', help='Reference date (YYYY-MM-DD), defaults to today')

    def handle(self, *args, **options):
        try:
            today = parse_date(options.get('date'), 'date')
        except ValidationError as e:
            raise CommandError(str(e)) from e
        renewed = renew_expired(today=today)
        self.stdout.write(self.style.SUCCESS(f'Renewed {renewed} budget(s)'))
