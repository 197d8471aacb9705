from pydantic import BaseModel


class BusinessAgent(BaseModel):
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    registry_id: str | None = None


class StreetAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""


class AgentAddresses(BaseModel):
    mailing_address: StreetAddress | None = None
    property_address: StreetAddress | None = None


class PersonName(BaseModel):
    first_name: str = ""
    last_name: str = ""
