from rest_framework.permissions import BasePermission


class IsSuperuser(BasePermission):
    """Only platform superusers may review freelancers and waive commission."""
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_superuser)
