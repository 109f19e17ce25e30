from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from carteira.services.category_service import create_default_categories


class Command(BaseCommand):
    help = 'Create the default categories for a user (safe to run more than once)'

    def add_arguments(self, parser):
        parser.add_argument('--username', required=True, help='User that receives the categories')

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            user = User.objects.get(username=options['username'])
        except User.DoesNotExist:
            raise CommandError(f"User '{options['username']}' does not exist")

        created = create_default_categories(user)
        self.stdout.write(
            self.style.SUCCESS(f'Successfully created {created} categories for {user.username}')
        )
