from django.core.management.base import BaseCommand

from carteira.finance.models import ImportBatch


class Command(BaseCommand):
    help = 'Clear import batches to allow re-importing files'

    def add_arguments(self, parser):
        parser.add_argument('--username', help='Only clear the batches of this user')

    def handle(self, *args, **options):
        batches = ImportBatch.objects.all()
        if options.get('username'):
            batches = batches.filter(user__username=options['username'])
        count = batches.count()
        self.stdout.write(f"Found {count} import batches")

        batches.delete()

        self.stdout.write(self.style.SUCCESS(
            'Successfully deleted import batches! You can now re-import files.'
        ))
