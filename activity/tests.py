from django.contrib.auth import get_user_model
from django.test import TestCase

from circles.models import Circle, CircleMember
from .models import ActivityFeedItem, Notification
from .services import feed_for, mark_notifications_read, notify, record_activity

User = get_user_model()


class FeedTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.me = User.objects.create_user(email='me@example.com', password='pass')
        cls.friend = User.objects.create_user(email='friend@example.com', password='pass')
        cls.stranger = User.objects.create_user(email='stranger@example.com', password='pass')
        circle = Circle.objects.create(name='Crew', owner=cls.me)
        CircleMember.objects.create(circle=circle, user=cls.me, role=CircleMember.ROLE_OWNER)
        CircleMember.objects.create(circle=circle, user=cls.friend)

    def test_feed_covers_me_and_my_circles_newest_first(self):
        mine = record_activity(self.me, 'joined_circle')
        theirs = record_activity(self.friend, 'earned_badge', payload={'badge': 'founder'})
        record_activity(self.stranger, 'joined_circle')

        items = list(feed_for(self.me))
        self.assertEqual([item.pk for item in items], [theirs.pk, mine.pk])


class NotificationTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='n@example.com', password='pass')

    def test_mark_all_read(self):
        notify(self.user, 'message', 'one')
        notify(self.user, 'message', 'two')
        self.assertEqual(mark_notifications_read(self.user), 2)
        self.assertFalse(Notification.objects.filter(read_at__isnull=True).exists())

    def test_mark_selected_read(self):
        first = notify(self.user, 'message', 'one')
        notify(self.user, 'message', 'two')
        self.assertEqual(mark_notifications_read(self.user, [first.pk]), 1)
        first.refresh_from_db()
        self.assertTrue(first.is_read)

    def test_long_titles_are_truncated(self):
        notification = notify(self.user, 'message', 'x' * 300)
        self.assertEqual(len(notification.title), 200)
        self.assertFalse(ActivityFeedItem.objects.exists())
