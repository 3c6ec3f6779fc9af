from pydantic import BaseModel


class UserBrief(BaseModel):
    # renders stored user rows as-is; emails are not re-validated on the way out
    id: int
    email: str
    full_name: str | None = None

    class Config:
        from_attributes = True
