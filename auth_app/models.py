from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_CHOICES = (
        ('owner', 'owner'),
        ('admin', 'admin')
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='owner')
    phone = models.CharField(max_length=20, blank=True)

    def __str__(self):
        return self.username
