from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone
from .signature_request import SignatureRequest
from .signer import Signer


class Signature(models.Model):
    TYPE_CHOICES = [
        ('drawn', 'Drawn'),
        ('typed', 'Typed'),
        ('uploaded', 'Uploaded'),
    ]

    request = models.ForeignKey(SignatureRequest, on_delete=models.CASCADE, related_name='signatures')
    signer = models.OneToOneField(Signer, on_delete=models.CASCADE, related_name='signature')
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='signatures')
    signature_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    signature_data = models.TextField()
    legal_name = models.CharField(max_length=200)
    consent_given = models.BooleanField(default=False)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.CharField(max_length=500, blank=True, null=True)
    document_hash = models.CharField(max_length=128, blank=True, null=True)
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'signatures'
        ordering = ['timestamp']

    def __str__(self):
        return f"{self.legal_name} ({self.signature_type}) on request {self.request_id}"

    def save(self, *args, **kwargs):
        # Evidência é imutável depois de gravada
        if self.pk is not None:
            raise ValueError('Signature evidence is immutable once written')
        super().save(*args, **kwargs)
