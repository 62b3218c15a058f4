"""
Role-Based Access Control
Defines user roles and the permission matrix for LifeFlow
"""

SUPER_ADMIN = 'super_admin'        # Full system access
ADMIN = 'admin'                    # Manage donors, verify, moderate
VERIFIED_DONOR = 'verified_donor'  # Verified blood donor
DONOR = 'donor'                    # Registered donor (unverified)
PUBLIC = 'public'                  # Anonymous user

ROLE_CHOICES = (
    (SUPER_ADMIN, 'Super Admin'),
    (ADMIN, 'Administrator'),
    (VERIFIED_DONOR, 'Verified Donor'),
    (DONOR, 'Donor'),
    (PUBLIC, 'Guest'),
)

# Permission levels (higher = more access)
ROLE_LEVELS = {
    SUPER_ADMIN: 100,
    ADMIN: 80,
    VERIFIED_DONOR: 40,
    DONOR: 20,
    PUBLIC: 0,
}

# Permission -> minimum role
PERMISSIONS = {
    'manage_donors': ADMIN,
    'delete_donors': ADMIN,
    'verify_donors': ADMIN,
    'access_dashboard': ADMIN,
    'view_contact_details': PUBLIC,
    'create_emergency': ADMIN,
    'view_analytics': ADMIN,
    'edit_own_profile': DONOR,
    'manage_settings': SUPER_ADMIN,
}


def has_role(user_role, required_role):
    """
    Check if a role is at least as privileged as required_role.
    Unknown roles count as level 0.
    """
    return ROLE_LEVELS.get(user_role, 0) >= ROLE_LEVELS.get(required_role, 0)


def can(user_role, permission):
    """Check a named permission; unknown permissions are denied."""
    required = PERMISSIONS.get(permission)
    if required is None:
        return False
    return has_role(user_role, required)


def permissions_for(user_role):
    return sorted(name for name in PERMISSIONS if can(user_role, name))


def get_role_display_name(role):
    return dict(ROLE_CHOICES).get(role, 'Unknown')
