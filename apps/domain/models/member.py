from django.db import models
from django.contrib.auth.models import User
from .organization import Organization


class Member(models.Model):
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('staff', 'Staff'),
        ('client', 'Client'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='member')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='client')
    organization = models.ForeignKey(
        Organization, on_delete=models.SET_NULL, null=True, blank=True, related_name='members'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'members'
        ordering = ['user__username']

    def __str__(self):
        return f"{self.user.username} ({self.role})"
