from django.db import models
from django.contrib.auth.models import User
from .signature_request import SignatureRequest


class Signer(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('signed', 'Signed'),
        ('declined', 'Declined'),
    ]

    request = models.ForeignKey(SignatureRequest, on_delete=models.CASCADE, related_name='signers')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='signer_entries')
    name = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True)
    sequence = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    is_implicit = models.BooleanField(default=False)
    decline_reason = models.TextField(max_length=1000, blank=True, null=True)
    signed_at = models.DateTimeField(blank=True, null=True)
    notified_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'signers'
        ordering = ['sequence']
        constraints = [
            models.UniqueConstraint(fields=['request', 'sequence'], name='unique_signer_sequence_per_request'),
        ]

    def __str__(self):
        label = 'implicit signer' if self.is_implicit else f"{self.name} ({self.email})"
        return f"{label} #{self.sequence} - {self.status}"
