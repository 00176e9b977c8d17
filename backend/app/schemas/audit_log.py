from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field

from app.schemas.user import ActorOut


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    action: str
    entity_type: str
    entity_id: str
    patient_id: Optional[int] = None
    actor: Optional[ActorOut] = None
    actor_email: Optional[str] = None
    request_id: Optional[str] = None
    before_json: Optional[dict] = None
    after_json: Optional[dict] = None

    @computed_field
    @property
    def changed_fields(self) -> list[str]:
        before = self.before_json or {}
        after = self.after_json or {}
        return sorted(key for key in before.keys() | after.keys() if before.get(key) != after.get(key))
