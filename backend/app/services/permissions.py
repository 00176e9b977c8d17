from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from app.models.user import Role

PERMISSIONS: list[tuple[str, str]] = [
    ("agenda", "View the appointment agenda"),
    ("patients", "Create and edit patients"),
    ("view_patients", "View patient records"),
    ("appointments", "Manage appointments"),
    ("treatments", "Manage the treatment catalogue"),
    ("prescriptions", "Write prescriptions"),
    ("odontogram", "Edit patient odontograms"),
    ("budgets", "Create treatment budgets"),
    ("cash_register", "Operate the cash register"),
    ("view_payments", "View payments"),
    ("view_cash_registers", "View cash register closings"),
    ("view_audit_logs", "View the audit trail"),
]

ROLE_PERMISSIONS: Mapping[Role, frozenset[str]] = MappingProxyType(
    {
        Role.receptionist: frozenset({"agenda", "patients", "appointments", "cash_register"}),
        Role.doctor: frozenset(
            {"agenda", "patients", "appointments", "treatments", "prescriptions", "odontogram", "budgets"}
        ),
        Role.auditor: frozenset(
            {"view_audit_logs", "view_patients", "view_payments", "view_cash_registers"}
        ),
    }
)

# Reading a chart is allowed with any of these.
ODONTOGRAM_READ_PERMISSIONS: tuple[str, ...] = ("odontogram", "patients", "view_patients")


def has_permission(role: Role | str | None, permission: str) -> bool:
    if role is None:
        return False
    try:
        role = Role(role)
    except ValueError:
        return False
    if role == Role.admin:
        return True
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def has_any_permission(role: Role | str | None, permissions: tuple[str, ...]) -> bool:
    return any(has_permission(role, permission) for permission in permissions)


def permissions_for(role: Role | str | None) -> list[str]:
    return sorted(code for code, _ in PERMISSIONS if has_permission(role, code))
