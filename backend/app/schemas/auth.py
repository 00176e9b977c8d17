from pydantic import BaseModel, EmailStr, Field, model_validator

from app.models.user import Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    role: Role
    must_change_password: bool = False


class ChangePasswordRequest(BaseModel):
    old_password: str | None = None
    new_password: str = Field(min_length=8, max_length=72)

    @model_validator(mode="after")
    def passwords_differ(self):
        if self.old_password and self.old_password == self.new_password:
            raise ValueError("New password must differ from the current one")
        return self


class ChangePasswordResponse(BaseModel):
    message: str
