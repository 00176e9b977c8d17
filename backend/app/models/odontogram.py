from __future__ import annotations

from sqlalchemy import JSON, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditMixin, Base
from app.services.odontogram import ToothCondition


class OdontogramTooth(Base, AuditMixin):
    __tablename__ = "odontograms"
    __table_args__ = (UniqueConstraint("patient_id", "tooth_number", name="uq_odontograms_patient_tooth"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    tooth_number: Mapped[int] = mapped_column(Integer, nullable=False)
    condition: Mapped[ToothCondition] = mapped_column(
        Enum(ToothCondition, name="tooth_condition"),
        default=ToothCondition.healthy,
        nullable=False,
    )
    surfaces: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    treatment_needed: Mapped[str | None] = mapped_column(String(200), nullable=True)
    treatment_id: Mapped[int | None] = mapped_column(ForeignKey("treatments.id"), nullable=True)

    patient = relationship("Patient", back_populates="teeth")
    treatment = relationship("Treatment", lazy="joined")
