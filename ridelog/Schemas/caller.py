# ridelog/Schemas/caller.py
from pydantic import BaseModel, Field


class Caller(BaseModel):
    """
    Identity of the authenticated caller.

    Authentication happens upstream; this service only receives the resolved
    user id and whether the caller holds the administrative role.
    """
    user_id: int = Field(..., ge=1)
    is_admin: bool = False

    def can_act_for(self, owner_id: int) -> bool:
        return self.is_admin or self.user_id == owner_id
