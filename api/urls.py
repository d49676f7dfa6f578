from django.urls import path, include
from rest_framework.routers import DefaultRouter
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView

from .views_activity import ActivityFeedAPIView, NotificationListAPIView
from .views_badges import BadgeCheckAPIView, BadgeFeatureAPIView, BadgeListAPIView
from .views_challenges import (
    ChallengeCheckInAPIView,
    ChallengeJoinAPIView,
    ChallengeLeaderboardAPIView,
    ChallengeProgressAPIView,
    ChallengeProofAPIView,
    ChallengeViewSet,
)
from .views_circles import (
    CircleInvitationAPIView,
    CircleJoinAPIView,
    CircleMembersAPIView,
    CircleViewSet,
    InvitationPreviewAPIView,
)
from .views_coach import GenerateWorkoutAPIView, GenerationStatusAPIView
from .views_cron import DataRetentionCronAPIView
from .views_messages import ConversationListAPIView, MessageThreadAPIView

router = DefaultRouter()
router.register(r'challenges', ChallengeViewSet, basename='challenge')
router.register(r'circles', CircleViewSet, basename='circle')

urlpatterns = [
    # Challenges
    path('challenges/<int:pk>/join/', ChallengeJoinAPIView.as_view(), name='api-challenge-join'),
    path('challenges/<int:pk>/checkin/', ChallengeCheckInAPIView.as_view(), name='api-challenge-checkin'),
    path('challenges/<int:pk>/progress/', ChallengeProgressAPIView.as_view(), name='api-challenge-progress'),
    path('challenges/<int:pk>/leaderboard/', ChallengeLeaderboardAPIView.as_view(), name='api-challenge-leaderboard'),
    path('challenges/<int:pk>/proof/', ChallengeProofAPIView.as_view(), name='api-challenge-proof'),
    # Circles (before the router so "join" is not read as a circle id)
    path('circles/join/', CircleJoinAPIView.as_view(), name='api-circle-join'),
    path('circles/invite/<str:code>/', InvitationPreviewAPIView.as_view(), name='api-invite-preview'),
    path('circles/<int:pk>/members/', CircleMembersAPIView.as_view(), name='api-circle-members'),
    path('circles/<int:pk>/invitations/', CircleInvitationAPIView.as_view(), name='api-circle-invitations'),
    path('', include(router.urls)),
    # Messaging
    path('messages/', ConversationListAPIView.as_view(), name='api-messages'),
    path('messages/<int:user_id>/', MessageThreadAPIView.as_view(), name='api-message-thread'),
    # Activity
    path('feed/', ActivityFeedAPIView.as_view(), name='api-feed'),
    path('notifications/', NotificationListAPIView.as_view(), name='api-notifications'),
    # Badges
    path('badges/', BadgeListAPIView.as_view(), name='api-badges'),
    path('badges/check/', BadgeCheckAPIView.as_view(), name='api-badges-check'),
    path('badges/<int:pk>/feature/', BadgeFeatureAPIView.as_view(), name='api-badge-feature'),
    # AI coach
    path('ai/generate-workout/', GenerateWorkoutAPIView.as_view(), name='api-generate-workout'),
    path('ai/generate-workout/status/<int:pk>/', GenerationStatusAPIView.as_view(), name='api-generate-workout-status'),
    # Scheduled jobs
    path('cron/data-retention/', DataRetentionCronAPIView.as_view(), name='api-cron-data-retention'),
    # Schema
    path('schema/', SpectacularAPIView.as_view(), name='api-schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='api-schema'), name='api-docs'),
    path('redoc/', SpectacularRedocView.as_view(url_name='api-schema'), name='api-redoc'),
]
