"""
Custom permissions for role-based access
"""
from rest_framework import permissions


class IsAdmin(permissions.BasePermission):
    """Permission check for admin role"""

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role == 'admin'
        )


class IsParticipant(permissions.BasePermission):
    """Permission check for participant role (must have a participant profile)"""

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role == 'participant' and
            hasattr(request.user, 'participant_profile')
        )
