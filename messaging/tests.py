from django.contrib.auth import get_user_model
from django.test import TestCase

from activity.models import Notification
from circles.models import Circle, CircleMember
from core.exceptions import ContentRejected, NotFound, PermissionDenied
from .models import Message
from .moderation import moderate_text
from .services import conversations, delete_message, send_message, thread

User = get_user_model()


class ModerationTests(TestCase):
    def test_clean_fitness_text(self):
        result = moderate_text("Great class today, passed my assessment and hit a new mass PR")
        self.assertTrue(result.is_clean)
        self.assertEqual(result.severity, "none")

    def test_flags_profanity_with_substitutions(self):
        result = moderate_text("that was sh1t")
        self.assertFalse(result.is_clean)
        self.assertIn("sh1t", result.flagged_words)
        self.assertEqual(result.severity, "moderate")

    def test_empty_text_is_clean(self):
        self.assertTrue(moderate_text("").is_clean)


class MessagingTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.alice = User.objects.create_user(email='alice@example.com', password='pass', display_name='Alice')
        cls.bob = User.objects.create_user(email='bob@example.com', password='pass', display_name='Bob')
        cls.carol = User.objects.create_user(email='carol@example.com', password='pass', display_name='Carol')
        cls.circle = Circle.objects.create(name='Crew', owner=cls.alice)
        CircleMember.objects.create(circle=cls.circle, user=cls.alice, role=CircleMember.ROLE_OWNER)
        CircleMember.objects.create(circle=cls.circle, user=cls.bob)

    def test_send_notifies_recipient(self):
        message = send_message(self.alice, self.bob.pk, self.circle.pk, "Leg day at 6?")
        self.assertEqual(message.recipient, self.bob)
        self.assertTrue(Notification.objects.filter(user=self.bob, kind='message').exists())

    def test_recipient_outside_circle_is_forbidden(self):
        with self.assertRaises(PermissionDenied):
            send_message(self.alice, self.carol.pk, self.circle.pk, "hi")
        self.assertFalse(Message.objects.exists())

    def test_moderation_rejects_before_saving(self):
        with self.assertRaises(ContentRejected) as ctx:
            send_message(self.alice, self.bob.pk, self.circle.pk, "what the fuck")
        self.assertIn("fuck", ctx.exception.flagged_words)
        self.assertFalse(Message.objects.exists())

    def test_conversations_show_latest_message_and_unread_count(self):
        send_message(self.alice, self.bob.pk, self.circle.pk, "one")
        send_message(self.alice, self.bob.pk, self.circle.pk, "two")
        convos = conversations(self.bob)
        self.assertEqual(len(convos), 1)
        self.assertEqual(convos[0]['partner'], self.alice)
        self.assertEqual(convos[0]['last_message'].content, "two")
        self.assertEqual(convos[0]['unread_count'], 2)

    def test_thread_is_chronological_and_marks_read(self):
        send_message(self.alice, self.bob.pk, self.circle.pk, "first")
        send_message(self.bob, self.alice.pk, self.circle.pk, "second")
        messages, has_more = thread(self.bob, self.alice.pk)
        self.assertEqual([m.content for m in messages], ["first", "second"])
        self.assertFalse(has_more)
        self.assertFalse(Message.objects.filter(recipient=self.bob, read_at__isnull=True).exists())
        self.assertTrue(Message.objects.filter(recipient=self.alice, read_at__isnull=True).exists())

    def test_thread_with_unknown_user(self):
        with self.assertRaises(NotFound):
            thread(self.alice, 999999)

    def test_soft_delete_hides_only_own_side(self):
        message = send_message(self.alice, self.bob.pk, self.circle.pk, "oops")
        delete_message(self.alice, message.pk)
        self.assertEqual(thread(self.alice, self.bob.pk)[0], [])
        self.assertEqual(len(thread(self.bob, self.alice.pk)[0]), 1)

    def test_only_participants_can_delete(self):
        message = send_message(self.alice, self.bob.pk, self.circle.pk, "private")
        with self.assertRaises(PermissionDenied):
            delete_message(self.carol, message.pk)
