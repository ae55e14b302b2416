# users/views/me.py

"""
Current-user profile.

Identity comes from the bearer token; this endpoint only echoes the
local row (including the role the order permissions are checked against).
"""

from drf_spectacular.utils import extend_schema
from rest_framework import serializers
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.models import User


class MeSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "email", "name", "phone", "role"]
        read_only_fields = fields


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Auth"],
        responses={200: MeSerializer},
        description="Profile of the authenticated user",
    )
    def get(self, request):
        return Response(MeSerializer(request.user).data)
