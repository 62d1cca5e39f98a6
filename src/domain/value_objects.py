from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.domain.enums.listing_attributes import PreferredAgentType, VideoPlatform
from src.domain.enums.user_role import UserRole


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as reported by the identity provider."""

    id: str
    role: UserRole


@dataclass(frozen=True)
class Creator:
    id: str
    role: UserRole


@dataclass(frozen=True)
class Photo:
    url: str
    is_cover: bool = False
    storage_id: str | None = None


@dataclass(frozen=True)
class VideoLink:
    url: str
    platform: VideoPlatform = VideoPlatform.OTHER
    title: str = ""


@dataclass(frozen=True)
class AgentInviteDetails:
    preferred_agent_type: PreferredAgentType = PreferredAgentType.ANY
    additional_requirements: str = ""
    commission_rate: Decimal | None = None


@dataclass(frozen=True)
class SelectedAgent:
    agent_id: str
    commission: Decimal
    selected_at: datetime
