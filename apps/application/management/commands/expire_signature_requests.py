from django.core.management.base import BaseCommand
from django.utils import timezone
from apps.domain.models import SignatureRequest
from apps.application.services.signature_service import SignatureService


class Command(BaseCommand):
    """
    Move pending signature requests past their deadline to ``expired``.

    Usage:
        python manage.py expire_signature_requests            # Expire overdue requests
        python manage.py expire_signature_requests --dry-run  # Only report what would expire
    """

    help = 'Expire pending signature requests whose deadline has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List overdue requests without changing them',
        )

    def handle(self, *args, **options):
        now = timezone.now()

        if options['dry_run']:
            overdue = SignatureRequest.objects.filter(status='pending', expires_at__lt=now)
            for signature_request in overdue:
                self.stdout.write(
                    f"  #{signature_request.id} {signature_request.title} (expired at {signature_request.expires_at.isoformat()})"
                )
            self.stdout.write(
                self.style.WARNING(f'{overdue.count()} signature request(s) would be expired')
            )
            return

        expired = SignatureService().expire_overdue(now=now)
        self.stdout.write(
            self.style.SUCCESS(f'Expired {expired} signature request(s)')
        )
