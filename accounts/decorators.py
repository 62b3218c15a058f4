from functools import wraps

from rest_framework.exceptions import NotAuthenticated, PermissionDenied
from rest_framework.permissions import BasePermission
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from accounts import roles
from accounts.models import role_of


def role_required(required_role):
    """
    Role-level decorator for function-based API views.
    Anonymous users get 401, authenticated users below the level get 403.
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            user_role = role_of(request.user)

            if required_role != roles.PUBLIC and user_role == roles.PUBLIC:
                raise NotAuthenticated("Authentication required")

            if not roles.has_role(user_role, required_role):
                raise PermissionDenied("Access denied")

            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


class HasPermission(BasePermission):
    """DRF permission backed by the role/permission matrix."""
    permission_name = None

    def has_permission(self, request, view):
        return roles.can(role_of(request.user), self.permission_name)


def permission_required(permission_name):
    """
    Build a DRF permission class for one entry of roles.PERMISSIONS,
    e.g. permission_classes = [permission_required('manage_donors')]
    """
    return type(
        f"Has_{permission_name}",
        (HasPermission,),
        {'permission_name': permission_name},
    )


# REST API Token serializer
class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['role'] = user.effective_role
        token['username'] = user.username
        return token
