from pydantic import BaseModel


class OwnerDetails(BaseModel):
    owner_one_first_name: str = ""
    owner_one_last_name: str = ""
    owner_two_first_name: str = ""
    owner_two_last_name: str = ""

    @property
    def owner_one_name(self) -> str:
        return f"{self.owner_one_first_name} {self.owner_one_last_name}"

    @property
    def owner_two_name(self) -> str:
        return f"{self.owner_two_first_name} {self.owner_two_last_name}"


class RowFields(BaseModel):
    index: int
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    mailing_address: str = ""
    mailing_city: str = ""
    mailing_state: str = ""
