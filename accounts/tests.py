from django.contrib.auth import get_user_model
from django.test import TestCase

User = get_user_model()


class UserManagerTests(TestCase):
    def test_create_user_normalizes_email(self):
        user = User.objects.create_user(email='Someone@EXAMPLE.com', password='pass')
        self.assertEqual(user.email, 'Someone@example.com')
        self.assertTrue(user.check_password('pass'))
        self.assertFalse(user.is_staff)

    def test_email_is_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='pass')

    def test_create_superuser(self):
        admin = User.objects.create_superuser(email='admin@example.com', password='pass')
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)
        with self.assertRaises(ValueError):
            User.objects.create_superuser(email='bad@example.com', password='pass', is_staff=False)


class PublicNameTests(TestCase):
    def test_prefers_display_name(self):
        user = User(email='a@example.com', display_name='Ace', first_name='Alex', last_name='Smith')
        self.assertEqual(user.public_name, 'Ace')

    def test_falls_back_to_full_name_then_anonymous(self):
        self.assertEqual(User(email='b@example.com', first_name='Bo', last_name='Li').public_name, 'Bo Li')
        self.assertEqual(User(email='c@example.com').public_name, 'Anonymous')
