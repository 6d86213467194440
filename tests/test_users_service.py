"""Tests for app.services.users: profile, password, roles and status administration."""

import unittest
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from app.core.security import verify_password
from app.models import ROLE_ADMIN, ROLE_GUEST, ROLE_MANAGER, ROLE_USER, User
from app.schemas.users import UpdatePasswordRequest, UpdateUserRequest, to_users_page
from app.services import auth, users
from app.services.credential_store import CredentialStore
from app.services.errors import (
    AccountLockedError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    PasswordMismatchError,
    StoreUnavailableError,
)
from db_support import make_settings, make_store, register_body

SETTINGS = make_settings()


class UsersServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store, self.session = make_store()
        self.alice = auth.register_user(self.store, register_body(), SETTINGS)

    def tearDown(self) -> None:
        self.session.close()

    def refetch(self, user_id: int) -> User:
        self.session.expire_all()
        return users.get_user(self.store, user_id)


class TestUpdatePassword(UsersServiceTestCase):
    def test_mismatch_fails_before_touching_store(self) -> None:
        store = MagicMock(spec=CredentialStore)
        body = UpdatePasswordRequest(
            current_password="password123",
            new_password="newpassword1",
            confirm_password="newpassword2",
        )
        with self.assertRaises(PasswordMismatchError):
            users.update_password(store, 1, body, SETTINGS)
        self.assertEqual(store.method_calls, [])

    def test_wrong_current_password(self) -> None:
        body = UpdatePasswordRequest(
            current_password="not-the-password",
            new_password="newpassword1",
            confirm_password="newpassword1",
        )
        with self.assertRaises(InvalidCredentialsError):
            users.update_password(self.store, self.alice.id, body, SETTINGS)

    def test_changes_password(self) -> None:
        body = UpdatePasswordRequest(
            current_password="password123",
            new_password="newpassword1",
            confirm_password="newpassword1",
        )
        users.update_password(self.store, self.alice.id, body, SETTINGS)
        user = self.refetch(self.alice.id)
        self.assertTrue(verify_password("newpassword1", user.password_hash))
        self.assertFalse(verify_password("password123", user.password_hash))

    def test_unknown_user(self) -> None:
        body = UpdatePasswordRequest(
            current_password="password123",
            new_password="newpassword1",
            confirm_password="newpassword1",
        )
        with self.assertRaises(NotFoundError):
            users.update_password(self.store, 9999, body, SETTINGS)


class TestUpdateRoles(UsersServiceTestCase):
    def test_unknown_role_leaves_roles_unchanged(self) -> None:
        with self.assertRaises(NotFoundError):
            users.update_roles(self.store, self.alice.id, [999])
        self.assertEqual(self.refetch(self.alice.id).role_names, [ROLE_USER])

    def test_partially_unknown_list_is_not_applied(self) -> None:
        manager = self.store.find_role_by_name(ROLE_MANAGER)
        with self.assertRaises(NotFoundError):
            users.update_roles(self.store, self.alice.id, [manager.id, 999])
        self.assertEqual(self.refetch(self.alice.id).role_names, [ROLE_USER])

    def test_replaces_role_set(self) -> None:
        manager = self.store.find_role_by_name(ROLE_MANAGER)
        guest = self.store.find_role_by_name(ROLE_GUEST)
        users.update_roles(self.store, self.alice.id, [guest.id, manager.id, guest.id])
        self.assertEqual(
            sorted(self.refetch(self.alice.id).role_names), sorted([ROLE_MANAGER, ROLE_GUEST])
        )

    def test_empty_list_rejected(self) -> None:
        with self.assertRaises(InvalidInputError):
            users.update_roles(self.store, self.alice.id, [])

    def test_unknown_user(self) -> None:
        admin = self.store.find_role_by_name(ROLE_ADMIN)
        with self.assertRaises(NotFoundError):
            users.update_roles(self.store, 9999, [admin.id])


class TestLockAndActiveStatus(UsersServiceTestCase):
    def test_unlock_resets_counter_and_allows_login(self) -> None:
        for _ in range(5):
            with self.assertRaises(InvalidCredentialsError):
                auth.login(self.store, "alice", "wrongpass", SETTINGS)
        with self.assertRaises(AccountLockedError):
            auth.login(self.store, "alice", "password123", SETTINGS)

        user = users.set_lock_status(self.store, self.alice.id, locked=False)
        self.assertFalse(user.is_locked)
        self.assertEqual(user.failed_login_attempts, 0)
        self.assertEqual(auth.login(self.store, "alice", "password123", SETTINGS).username, "alice")

    def test_lock_keeps_counter(self) -> None:
        with self.assertRaises(InvalidCredentialsError):
            auth.login(self.store, "alice", "wrongpass", SETTINGS)
        user = users.set_lock_status(self.store, self.alice.id, locked=True)
        self.assertTrue(user.is_locked)
        self.assertEqual(user.failed_login_attempts, 1)

    def test_deactivate(self) -> None:
        user = users.set_active_status(self.store, self.alice.id, active=False)
        self.assertFalse(user.is_active)
        self.assertFalse(self.refetch(self.alice.id).is_enabled)

    def test_lock_change_reads_row_for_update(self) -> None:
        original = CredentialStore.find_by_id
        for locked in (True, False):
            with self.subTest(locked=locked):
                with patch.object(
                    CredentialStore, "find_by_id", autospec=True, side_effect=original
                ) as find:
                    users.set_lock_status(self.store, self.alice.id, locked=locked)
                find.assert_called_once_with(self.store, self.alice.id, for_update=True)

    def test_unknown_user(self) -> None:
        with self.assertRaises(NotFoundError):
            users.set_lock_status(self.store, 9999, locked=True)
        with self.assertRaises(NotFoundError):
            users.set_active_status(self.store, 9999, active=True)


class TestProfileAndListing(UsersServiceTestCase):
    def test_partial_update(self) -> None:
        users.update_user(
            self.store, self.alice.id, UpdateUserRequest(first_name="Alicia", phone_number="+4912345678")
        )
        user = self.refetch(self.alice.id)
        self.assertEqual(user.first_name, "Alicia")
        self.assertEqual(user.last_name, "Smith")
        self.assertEqual(user.phone_number, "+4912345678")

    def test_email_taken_by_someone_else(self) -> None:
        auth.register_user(
            self.store, register_body(username="bob", email="bob@x.com"), SETTINGS
        )
        with self.assertRaises(DuplicateIdentityError):
            users.update_user(
                self.store,
                self.alice.id,
                UpdateUserRequest(first_name="Changed", email="bob@x.com"),
            )
        user = self.refetch(self.alice.id)
        self.assertEqual(user.email, "alice@x.com")
        self.assertEqual(user.first_name, "Alice")

    def test_delete(self) -> None:
        users.delete_user(self.store, self.alice.id)
        with self.assertRaises(NotFoundError):
            users.get_user(self.store, self.alice.id)
        with self.assertRaises(NotFoundError):
            users.delete_user(self.store, self.alice.id)

    def test_paged_listing(self) -> None:
        for name in ("bob", "carol", "dave"):
            auth.register_user(
                self.store, register_body(username=name, email=f"{name}@x.com"), SETTINGS
            )
        page_users, total = users.list_users(self.store, page=1, size=3, sort_by="username")
        self.assertEqual(total, 4)
        self.assertEqual([u.username for u in page_users], ["dave"])
        page = to_users_page(page_users, page=1, size=3, total=total)
        self.assertEqual(page.total_pages, 2)
        self.assertFalse(page.first)
        self.assertTrue(page.last)

    def test_listing_descending(self) -> None:
        auth.register_user(self.store, register_body(username="zed", email="zed@x.com"), SETTINGS)
        page_users, _ = users.list_users(self.store, sort_by="username", sort_dir="desc")
        self.assertEqual([u.username for u in page_users], ["zed", "alice"])

    def test_listing_rejects_bad_arguments(self) -> None:
        with self.assertRaises(InvalidInputError):
            users.list_users(self.store, sort_by="password_hash")
        with self.assertRaises(InvalidInputError):
            users.list_users(self.store, size=0)
        with self.assertRaises(InvalidInputError):
            users.list_users(self.store, page=-1)
        with self.assertRaises(InvalidInputError):
            users.list_users(self.store, sort_dir="sideways")


class TestStoreFailures(unittest.TestCase):
    """Database failures surface as StoreUnavailableError, not raw SQLAlchemy errors."""

    def test_query_failure(self) -> None:
        session = MagicMock()
        session.query.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
        store = CredentialStore(session)
        with self.assertRaises(StoreUnavailableError):
            store.find_by_username("alice")
        session.rollback.assert_called_once()

    def test_login_surfaces_store_failure(self) -> None:
        session = MagicMock()
        session.query.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
        with self.assertRaises(StoreUnavailableError):
            auth.login(CredentialStore(session), "alice", "password123", SETTINGS)


if __name__ == "__main__":
    unittest.main()
