"""Management command to expire sent quotes past their valid_until date."""

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from django_quotes.exceptions import StorageError
from django_quotes.selectors import overdue_quotes
from django_quotes.services import expire_overdue_quotes


class Command(BaseCommand):
    help = 'Expire sent quotes whose valid_until date has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--tenant',
            help='Only expire quotes owned by this tenant ID'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List quotes that would be expired without changing them'
        )

    def handle(self, *args, **options):
        tenant_id = options['tenant']
        now = timezone.now()

        if options['dry_run']:
            quotes = list(overdue_quotes(now, tenant_id))
            self.stdout.write(f'Would expire {len(quotes)} quote(s)')
            for quote in quotes:
                self.stdout.write(
                    f'  - {quote.quote_number} (valid until {quote.valid_until.isoformat()})'
                )
            return

        try:
            expired = expire_overdue_quotes(now=now, tenant_id=tenant_id)
        except StorageError as e:
            raise CommandError(str(e))

        for quote in expired:
            self.stdout.write(f'  - {quote.quote_number}')
        self.stdout.write(
            self.style.SUCCESS(f'Expired {len(expired)} quote(s)')
        )
