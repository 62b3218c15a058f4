import logging

from django.contrib.auth import authenticate, get_user_model
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from accounts import roles
from accounts.decorators import role_required
from accounts.models import role_of

User = get_user_model()

logger = logging.getLogger(__name__)


# -----------------------------
# HELPER: JWT TOKEN GENERATOR
# -----------------------------
def get_tokens_for_user(user):
    """
    Generate JWT tokens and embed role in payload
    """
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.effective_role
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


# -----------------------------
# REGISTER API
# -----------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    Registers a donor account and returns JWT tokens.
    Admin accounts are only created through the Django admin.
    """
    username = request.data.get('username')
    password = request.data.get('password')
    email = request.data.get('email')

    if not all([username, password, email]):
        return Response({"error": "Username, email and password are required"}, status=400)

    if User.objects.filter(username=username).exists():
        return Response({"error": "Username already exists"}, status=400)

    if User.objects.filter(email__iexact=email).exists():
        return Response({"error": "Email already registered"}, status=400)

    user = User.objects.create_user(
        username=username,
        email=email,
        password=password,
        role=roles.DONOR,
    )
    logger.info(f"Registered donor account {user.username}")

    return Response(
        {
            "message": "Registration successful",
            "tokens": get_tokens_for_user(user),
            "role": user.effective_role,
        },
        status=status.HTTP_201_CREATED
    )


# -----------------------------
# LOGIN API
# -----------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    JWT login by username or email
    """
    username = request.data.get('username')
    password = request.data.get('password')

    user = authenticate(request, username=username, password=password)
    if user is None:
        logger.warning(f"Failed login for {username!r}")
        raise AuthenticationFailed("Invalid credentials")

    return Response({
        "message": "Login successful",
        "tokens": get_tokens_for_user(user),
        "role": user.effective_role,
    })


# -----------------------------
# CURRENT USER
# -----------------------------
@api_view(['GET'])
@permission_classes([AllowAny])
@role_required(roles.DONOR)
def me(request):
    role = role_of(request.user)
    return Response({
        "username": request.user.username,
        "email": request.user.email,
        "role": role,
        "role_display": roles.get_role_display_name(role),
        "permissions": roles.permissions_for(role),
    })
