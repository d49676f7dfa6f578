from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone

from activity.models import ActivityFeedItem, Notification
from core.exceptions import CapacityExhausted, Conflict, Gone, NotFound, PermissionDenied
from .models import Circle, CircleInvitation, CircleMember
from .services import (
    create_circle,
    create_invitation,
    preview_invitation,
    redeem_invitation,
)

User = get_user_model()


class CircleCreationTests(TestCase):
	def test_creator_becomes_owner(self):
		owner = User.objects.create_user(email='owner@example.com', password='pass', display_name='Olive')
		circle = create_circle(owner, 'Morning Crew')
		member = CircleMember.objects.get(circle=circle, user=owner)
		self.assertEqual(member.role, CircleMember.ROLE_OWNER)
		self.assertEqual(member.display_name, 'Olive')


class InvitationTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.owner = User.objects.create_user(email='owner@example.com', password='pass')
		cls.guest = User.objects.create_user(email='guest@example.com', password='pass')
		cls.other = User.objects.create_user(email='other@example.com', password='pass')
		cls.circle = create_circle(cls.owner, 'Lifters')

	def test_create_invitation_generates_upper_case_code(self):
		invitation = create_invitation(self.circle, self.owner, max_uses=5)
		self.assertEqual(len(invitation.code), 8)
		self.assertEqual(invitation.code, invitation.code.upper())
		self.assertEqual(invitation.uses, 0)

	def test_plain_members_cannot_invite(self):
		CircleMember.objects.create(circle=self.circle, user=self.guest)
		with self.assertRaises(PermissionDenied):
			create_invitation(self.circle, self.guest)

	def test_redeem_is_case_insensitive_and_counts_use(self):
		invitation = CircleInvitation.objects.create(circle=self.circle, code='ABCD1234', created_by=self.owner)
		member = redeem_invitation('abcd1234', self.guest)
		self.assertEqual(member.circle, self.circle)
		self.assertEqual(member.role, CircleMember.ROLE_MEMBER)
		invitation.refresh_from_db()
		self.assertEqual(invitation.uses, 1)
		self.assertTrue(ActivityFeedItem.objects.filter(actor=self.guest, verb='joined_circle').exists())
		self.assertTrue(Notification.objects.filter(user=self.owner, kind='circle_joined').exists())

	def test_unknown_or_expired_code(self):
		with self.assertRaises(NotFound):
			redeem_invitation('NOPE0000', self.guest)
		CircleInvitation.objects.create(circle=self.circle, code='OLD00000',
		                                expires_at=timezone.now() - timedelta(minutes=1))
		with self.assertRaises(NotFound):
			redeem_invitation('OLD00000', self.guest)

	def test_existing_member_conflicts_without_using_code(self):
		invitation = CircleInvitation.objects.create(circle=self.circle, code='DUP00000')
		with self.assertRaises(Conflict):
			redeem_invitation('DUP00000', self.owner)
		invitation.refresh_from_db()
		self.assertEqual(invitation.uses, 0)

	def test_last_use_goes_to_exactly_one_user(self):
		invitation = CircleInvitation.objects.create(circle=self.circle, code='ONCE0000', max_uses=1)
		redeem_invitation('ONCE0000', self.guest)
		with self.assertRaises(CapacityExhausted):
			redeem_invitation('ONCE0000', self.other)
		invitation.refresh_from_db()
		self.assertEqual(invitation.uses, 1)
		self.assertFalse(CircleMember.objects.filter(circle=self.circle, user=self.other).exists())

	def test_email_restricted_invitation(self):
		CircleInvitation.objects.create(circle=self.circle, code='MAIL0000', email='guest@example.com')
		with self.assertRaises(PermissionDenied):
			redeem_invitation('MAIL0000', self.other)
		redeem_invitation('MAIL0000', self.guest)

	def test_failed_membership_insert_releases_the_use(self):
		invitation = CircleInvitation.objects.create(circle=self.circle, code='FAIL0000', max_uses=1)
		with mock.patch('circles.services.CircleMember.objects.create', side_effect=IntegrityError('boom')):
			with self.assertRaises(IntegrityError):
				redeem_invitation('FAIL0000', self.guest)
		invitation.refresh_from_db()
		self.assertEqual(invitation.uses, 0)

		redeem_invitation('FAIL0000', self.guest)
		invitation.refresh_from_db()
		self.assertEqual(invitation.uses, 1)


class InvitationPreviewTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.owner = User.objects.create_user(email='owner@example.com', password='pass')
		cls.circle = Circle.objects.create(name='Runners', description='5am club', owner=cls.owner)
		CircleMember.objects.create(circle=cls.circle, user=cls.owner, role=CircleMember.ROLE_OWNER)

	def test_preview_details(self):
		CircleInvitation.objects.create(circle=self.circle, code='VIEW0000', email='x@example.com')
		preview = preview_invitation('view0000')
		self.assertEqual(preview['circle']['name'], 'Runners')
		self.assertEqual(preview['circle']['member_count'], 1)
		self.assertTrue(preview['email_restricted'])

	def test_expired_and_exhausted_are_gone(self):
		CircleInvitation.objects.create(circle=self.circle, code='GONE0000', max_uses=2, uses=2)
		CircleInvitation.objects.create(circle=self.circle, code='LATE0000',
		                                expires_at=timezone.now() - timedelta(days=1))
		with self.assertRaises(Gone):
			preview_invitation('GONE0000')
		with self.assertRaises(Gone):
			preview_invitation('LATE0000')

	def test_unknown_code(self):
		with self.assertRaises(NotFound):
			preview_invitation('MISSING0')
