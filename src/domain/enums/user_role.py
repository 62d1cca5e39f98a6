from enum import Enum


class UserRole(str, Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"
    AGENT = "agent"

    @property
    def can_create_listings(self) -> bool:
        return self in (UserRole.LANDLORD, UserRole.AGENT)
