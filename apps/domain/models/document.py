from django.db import models
from django.contrib.auth.models import User
from .organization import Organization


class Document(models.Model):
    STORAGE_CHOICES = [
        ('http', 'HTTP'),
        ('local', 'Local'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='documents')
    name = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=100, default='application/pdf')
    storage_backend = models.CharField(max_length=20, choices=STORAGE_CHOICES, default='http')
    file_url = models.URLField(blank=True)
    file = models.FileField(upload_to='documents/', blank=True)
    uploaded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'documents'
        ordering = ['-created_at']

    def __str__(self):
        return self.name
