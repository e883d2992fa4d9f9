from django.db import models
from django.db.models import F, Q
from django.contrib.auth.models import User
from django.utils import timezone
from .organization import Organization
from .document import Document


class SignatureRequest(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('signed', 'Signed'),
        ('declined', 'Declined'),
        ('expired', 'Expired'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='signature_requests')
    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name='signature_requests')
    title = models.CharField(max_length=200)
    description = models.TextField(max_length=1000, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    requested_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='requested_signatures'
    )
    requested_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(blank=True, null=True)
    signed_at = models.DateTimeField(blank=True, null=True)
    signed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='completed_signatures'
    )
    document_hash = models.CharField(max_length=128, blank=True, null=True)
    signed_document_hash = models.CharField(max_length=128, blank=True, null=True)
    signer_count = models.PositiveIntegerField(default=1)
    completed_count = models.PositiveIntegerField(default=0)
    require_all = models.BooleanField(default=True)
    require_sequential = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'signature_requests'
        ordering = ['-requested_at']
        constraints = [
            models.UniqueConstraint(
                fields=['document'],
                condition=Q(status='pending'),
                name='unique_pending_request_per_document',
            ),
            models.CheckConstraint(
                condition=Q(completed_count__lte=F('signer_count')),
                name='completed_count_within_signer_count',
            ),
            models.CheckConstraint(
                condition=Q(signer_count__gte=1),
                name='signer_count_at_least_one',
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def is_terminal(self):
        return self.status != 'pending'

    def is_past_due(self, now=None):
        if not self.expires_at:
            return False
        return self.expires_at < (now or timezone.now())

    def get_display_status(self, now=None):
        """Status shown to users: a pending request past its deadline reads as expired.

        Read-only; the stored status only changes through explicit transitions.
        """
        if self.status == 'pending' and self.is_past_due(now):
            return 'expired'
        return self.status
