from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication"""

    def create_user(self, email, password=None, **extra_fields):
        """Create and save a regular user with the given email and password."""
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Create and save a superuser with the given email and password."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Custom user model that uses email instead of username"""
    username = None  # Remove username field
    email = models.EmailField(unique=True, verbose_name='email address')
    display_name = models.CharField(
        max_length=120,
        blank=True,
        default='',
        help_text="Name shown on leaderboards, circles and messages"
    )
    handle = models.CharField(max_length=40, blank=True, default='', db_index=True)
    avatar_url = models.URLField(blank=True, default='')

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []  # Email is already required as USERNAME_FIELD

    objects = UserManager()

    class Meta:
        db_table = 'accounts_user'

    def __str__(self):
        return self.email

    @property
    def public_name(self):
        """Best available name for display to other users."""
        if self.display_name:
            return self.display_name
        full_name = self.get_full_name()
        return full_name or "Anonymous"
