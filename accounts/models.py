from django.contrib.auth.models import AbstractUser
from django.db import models

from accounts import roles


class CustomUser(AbstractUser):
    role = models.CharField(
        max_length=20,
        choices=roles.ROLE_CHOICES,
        default=roles.DONOR
    )
    email = models.EmailField(unique=True)

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def effective_role(self):
        """Superusers always act as super_admin, whatever their stored role"""
        if self.is_superuser:
            return roles.SUPER_ADMIN
        return self.role

    def has_lifeflow_permission(self, permission):
        return roles.can(self.effective_role, permission)


def role_of(user):
    """Role of any request user, anonymous users included."""
    if user is None or not user.is_authenticated:
        return roles.PUBLIC
    return getattr(user, 'effective_role', roles.PUBLIC)
