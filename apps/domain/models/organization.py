from django.db import models


class Organization(models.Model):
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    storage_config = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'organizations'
        ordering = ['name']

    def __str__(self):
        return self.name
