from fastapi import APIRouter, Depends

from app.deps import get_current_user
from app.models.user import User
from app.schemas.user import MeOut
from app.services.permissions import permissions_for

router = APIRouter(tags=["me"])


@router.get("/me", response_model=MeOut)
def read_me(user: User = Depends(get_current_user)):
    out = MeOut.model_validate(user)
    out.permissions = permissions_for(user.role)
    return out
