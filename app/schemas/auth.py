from pydantic import BaseModel


class AccountOut(BaseModel):
    id: str
    external_id: str
    email: str
    role: str
