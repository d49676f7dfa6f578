from rest_framework import serializers
from circles.models import Circle, CircleInvitation, CircleMember


class CircleMemberSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = CircleMember
        fields = ['id', 'user', 'email', 'display_name', 'role', 'joined_at']
        read_only_fields = fields


class CircleSerializer(serializers.ModelSerializer):
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Circle
        fields = ['id', 'name', 'description', 'is_private', 'owner', 'member_count', 'created_at']
        read_only_fields = ['id', 'owner', 'member_count', 'created_at']

    def get_member_count(self, obj):
        annotated = getattr(obj, 'num_members', None)
        return annotated if annotated is not None else obj.member_count


class CircleInvitationSerializer(serializers.ModelSerializer):
    class Meta:
        model = CircleInvitation
        fields = ['id', 'circle', 'code', 'role', 'email', 'max_uses', 'uses', 'expires_at', 'created_at']
        read_only_fields = ['id', 'circle', 'code', 'uses', 'created_at']

    def validate_max_uses(self, value):
        if value is not None and value < 1:
            raise serializers.ValidationError('max_uses must be at least 1')
        return value


class RedeemInvitationSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
