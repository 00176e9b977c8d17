import pytest

from app.models.user import Role
from app.services.permissions import (
    PERMISSIONS,
    has_any_permission,
    has_permission,
    permissions_for,
)


def test_admin_has_every_permission():
    assert permissions_for(Role.admin) == sorted(code for code, _ in PERMISSIONS)


@pytest.mark.parametrize(
    ("role", "permission", "expected"),
    [
        (Role.doctor, "odontogram", True),
        (Role.doctor, "budgets", True),
        (Role.doctor, "cash_register", False),
        (Role.receptionist, "odontogram", False),
        (Role.receptionist, "cash_register", True),
        (Role.auditor, "view_audit_logs", True),
        (Role.auditor, "patients", False),
        ("doctor", "treatments", True),
    ],
)
def test_role_permissions(role, permission: str, expected: bool):
    assert has_permission(role, permission) is expected


@pytest.mark.parametrize("role", [None, "", "dentist"])
def test_unknown_role_has_nothing(role):
    assert not has_permission(role, "patients")
    assert permissions_for(role) == []


def test_any_permission():
    assert has_any_permission(Role.auditor, ("odontogram", "view_patients"))
    assert not has_any_permission(Role.receptionist, ("odontogram", "view_audit_logs"))
