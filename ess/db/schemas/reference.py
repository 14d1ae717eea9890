import uuid
from pydantic import BaseModel, ConfigDict


class RegistrantSummary(BaseModel):
    id: uuid.UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    model_config = ConfigDict(from_attributes=True)
