import time

from rest_framework import permissions


class IsClient(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.is_client


class IsFreelancer(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.is_freelancer


def timestamp_ms():
    """Milliseconds since the epoch, used to build external reference ids."""
    return int(time.time() * 1000)


def success_response_data(message, **data):
    return {'success': True, 'message': message, 'data': data}
