from app.models.base import Base
from app.models.user import Role, User
from app.models.audit_log import AuditLog
from app.models.patient import Patient
from app.models.treatment import Treatment
from app.models.odontogram import OdontogramTooth
from app.models.budget import Budget, BudgetItem, BudgetStatus

__all__ = [
    "Base",
    "Role",
    "User",
    "AuditLog",
    "Patient",
    "Treatment",
    "OdontogramTooth",
    "Budget",
    "BudgetItem",
    "BudgetStatus",
]
