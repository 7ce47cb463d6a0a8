import pytest

from taskdesk.domain.errors import OperationNotAllowedError, UserNotFoundError, ValidationError
from taskdesk.domain.models import UserRole, UserStatus


def test_ensure_default_admin_is_idempotent(admin_service):
    first = admin_service.ensure_default_admin("Admin@Example.com", "AdminPass123")
    second = admin_service.ensure_default_admin("admin@example.com", "AdminPass123")
    assert first.id == second.id
    assert first.role is UserRole.ADMIN
    assert first.is_email_verified is True


def test_ensure_default_admin_skipped_without_credentials(admin_service):
    assert admin_service.ensure_default_admin(None, None) is None


def test_page_size_is_capped(admin_service):
    page = admin_service.list_users(page=0, limit=500)
    assert page.pagination.page == 1
    assert page.pagination.limit == 100
    assert page.pagination.total_pages == 0


def test_update_rejects_fields_outside_admin_scope(admin_service):
    user = admin_service.create_user(email="bob@example.com", password="Password123")
    with pytest.raises(ValidationError):
        admin_service.update_user(user.id, login_attempts=0)


def test_status_change_on_missing_user(admin_service):
    with pytest.raises(UserNotFoundError):
        admin_service.update_status(999, UserStatus.SUSPENDED)


def test_admin_accounts_are_protected(admin_service):
    admin = admin_service.ensure_default_admin("admin@example.com", "AdminPass123")
    with pytest.raises(OperationNotAllowedError):
        admin_service.update_role(admin.id, UserRole.USER)
    with pytest.raises(OperationNotAllowedError):
        admin_service.delete_user(admin.id)


def test_bulk_update_drops_credentials_and_rejects_other_fields(admin_service, persistence):
    user = admin_service.create_user(email="bob@example.com", password="Password123")
    result = admin_service.bulk_update([user.id, user.id], {"email": "x@example.com", "position": " Lead "})
    assert (result.matched_count, result.modified_count) == (1, 1)
    stored = persistence.get_user_by_id(user.id)
    assert stored.email == "bob@example.com"
    assert stored.position == "Lead"
    with pytest.raises(ValidationError):
        admin_service.bulk_update([user.id], {"login_attempts": 0})


def test_search_requires_a_term(admin_service):
    with pytest.raises(ValidationError):
        admin_service.search_users("   ")
