from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase, TestCase

from accounts import roles
from accounts.models import CustomUser, role_of


class RoleMatrixTests(SimpleTestCase):
    def test_levels_are_ordered(self):
        self.assertTrue(roles.has_role(roles.SUPER_ADMIN, roles.ADMIN))
        self.assertTrue(roles.has_role(roles.ADMIN, roles.ADMIN))
        self.assertFalse(roles.has_role(roles.DONOR, roles.VERIFIED_DONOR))
        self.assertTrue(roles.has_role(roles.PUBLIC, roles.PUBLIC))

    def test_unknown_roles_are_level_zero(self):
        self.assertFalse(roles.has_role('wizard', roles.DONOR))
        self.assertTrue(roles.has_role('wizard', roles.PUBLIC))

    def test_permissions(self):
        self.assertTrue(roles.can(roles.ADMIN, 'manage_donors'))
        self.assertFalse(roles.can(roles.VERIFIED_DONOR, 'manage_donors'))
        self.assertTrue(roles.can(roles.PUBLIC, 'view_contact_details'))
        self.assertFalse(roles.can(roles.ADMIN, 'manage_settings'))
        self.assertTrue(roles.can(roles.SUPER_ADMIN, 'manage_settings'))
        self.assertFalse(roles.can(roles.SUPER_ADMIN, 'launch_rockets'))

    def test_permissions_for(self):
        self.assertEqual(roles.permissions_for(roles.DONOR), ['edit_own_profile', 'view_contact_details'])
        self.assertEqual(len(roles.permissions_for(roles.SUPER_ADMIN)), len(roles.PERMISSIONS))

    def test_display_names(self):
        self.assertEqual(roles.get_role_display_name(roles.ADMIN), 'Administrator')
        self.assertEqual(roles.get_role_display_name('nope'), 'Unknown')


class UserRoleTests(TestCase):
    def test_superuser_acts_as_super_admin(self):
        user = CustomUser.objects.create_superuser(username='root', email='root@example.com', password='pw')
        self.assertEqual(user.effective_role, roles.SUPER_ADMIN)
        self.assertTrue(user.has_lifeflow_permission('manage_settings'))

    def test_role_of(self):
        user = CustomUser.objects.create_user(username='d', email='d@example.com', password='pw')
        self.assertEqual(role_of(user), roles.DONOR)
        self.assertEqual(role_of(AnonymousUser()), roles.PUBLIC)
        self.assertEqual(role_of(None), roles.PUBLIC)
