"""
Pure normalisation and validation rules applied at the aggregate boundary.

None of these functions touch storage, so every create/update rule can be
exercised without a database.
"""
import math
import re
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from src.domain.enums.listing_attributes import (
    Availability,
    ListingPurpose,
    PaymentFrequency,
    PreferredAgentType,
)
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.user_role import UserRole
from src.domain.errors import ValidationError
from src.domain.policies.media import build_photo, build_video_link
from src.domain.value_objects import AgentInviteDetails

_NON_NUMERIC = re.compile(r"[^\d.]")
_LEADING_DECIMAL = re.compile(r"\d+(?:\.\d*)?|\.\d+")

MAX_ADDITIONAL_REQUIREMENTS = 500
MAX_COVER_LETTER = 1000
MAX_EXPERIENCE = 500

REQUIRED_TEXT_FIELDS = (
    "title",
    "state",
    "locality",
    "area",
    "street_estate_neighbourhood",
    "property_type",
    "description",
)

# name -> (enum, required on create)
ENUM_FIELDS: dict[str, tuple[type[Enum], bool]] = {
    "purpose": (ListingPurpose, True),
    "payment_frequency": (PaymentFrequency, True),
    "availability": (Availability, True),
    "status": (ListingStatus, False),
}

COUNT_RANGES: dict[str, tuple[int, int]] = {
    "bedrooms": (0, 20),
    "bathrooms": (0, 20),
    "toilets": (0, 20),
    "kitchens": (0, 10),
    "property_size": (1, 10000),
}

MUTABLE_FIELDS = frozenset(
    {
        *REQUIRED_TEXT_FIELDS,
        *ENUM_FIELDS,
        *COUNT_RANGES,
        "rent_amount",
        "facilities",
        "landlord_lives_in_compound",
        "images",
        "photo_notes",
        "video_links",
        "invite_agent_to_bid",
        "agent_invite_details",
    }
)


def field_label(name: str) -> str:
    """street_estate_neighbourhood -> streetEstateNeighbourhood"""
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def parse_amount(value: object) -> Decimal | None:
    """
    Coerce a money amount given as a number or a formatted string.

    Strings lose every character that is not a digit or a dot, then the
    longest leading decimal is parsed: "₦1,200.50" -> Decimal("1200.50").
    Returns None when nothing numeric is left.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_DECIMAL.match(_NON_NUMERIC.sub("", value))
        return Decimal(match.group()) if match else None
    return None


def normalize_agent_invite_details(
    raw: AgentInviteDetails | Mapping | None,
    existing: AgentInviteDetails | None = None,
) -> AgentInviteDetails | None:
    """
    Normalise invite details to {preferredAgentType, additionalRequirements,
    commissionRate?}. A commission rate that does not parse to a positive
    number is dropped rather than rejected.
    """
    if raw is None:
        return None
    if isinstance(raw, AgentInviteDetails):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(["agentInviteDetails must be an object"])

    errors: list[str] = []

    preferred: Any = raw.get("preferred_agent_type")
    if not preferred:
        preferred = existing.preferred_agent_type if existing else PreferredAgentType.ANY
    try:
        preferred = PreferredAgentType(preferred)
    except ValueError:
        errors.append(
            "agentInviteDetails.preferredAgentType must be one of "
            f"{[t.value for t in PreferredAgentType]}"
        )

    requirements = str(raw.get("additional_requirements") or "")
    if len(requirements) > MAX_ADDITIONAL_REQUIREMENTS:
        errors.append(
            "agentInviteDetails.additionalRequirements must be at most "
            f"{MAX_ADDITIONAL_REQUIREMENTS} characters"
        )

    commission = parse_amount(raw.get("commission_rate"))
    if commission is not None and commission <= 0:
        commission = None

    if errors:
        raise ValidationError(errors)

    return AgentInviteDetails(
        preferred_agent_type=preferred,
        additional_requirements=requirements,
        commission_rate=commission,
    )


def apply_invite_gating(
    creator_role: UserRole,
    invite_agent_to_bid: bool,
    agent_invite_details: AgentInviteDetails | None,
    *,
    bidding_closed: bool = False,
) -> tuple[bool, AgentInviteDetails | None]:
    """
    Only landlords may open bidding, and only while no agent is selected.
    Details never survive a closed invitation.
    """
    if creator_role is not UserRole.LANDLORD or bidding_closed or not invite_agent_to_bid:
        return False, None
    return True, agent_invite_details


def _clean_count(name: str, value: object, errors: list[str]) -> int | None:
    low, high = COUNT_RANGES[name]
    label = field_label(name)
    if isinstance(value, bool):
        errors.append(f"{label} must be a whole number")
        return None
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        errors.append(f"{label} must be a whole number")
        return None
    if isinstance(value, float) and not value.is_integer():
        errors.append(f"{label} must be a whole number")
        return None
    if not low <= number <= high:
        errors.append(f"{label} must be between {low} and {high}")
        return None
    return number


def clean_listing_fields(
    payload: Mapping[str, Any],
    *,
    partial: bool,
    existing_invite_details: AgentInviteDetails | None = None,
) -> dict[str, Any]:
    """
    Validate and coerce listing attributes.

    With partial=False every required field must be present (creation);
    with partial=True only the supplied keys are checked (update). Raises
    ValidationError carrying one message per offending field.
    """
    errors: list[str] = []
    cleaned: dict[str, Any] = {}

    for name in sorted(set(payload) - MUTABLE_FIELDS):
        errors.append(f"{field_label(name)} cannot be set")

    for name in REQUIRED_TEXT_FIELDS:
        if partial and name not in payload:
            continue
        value = payload.get(name)
        if value is None or not str(value).strip():
            errors.append(f"{field_label(name)} is required")
        else:
            cleaned[name] = str(value).strip()

    for name, (enum_cls, required) in ENUM_FIELDS.items():
        if name not in payload and (partial or not required):
            continue
        value = payload.get(name)
        if value is None:
            errors.append(f"{field_label(name)} is required")
            continue
        try:
            cleaned[name] = enum_cls(value)
        except ValueError:
            errors.append(f"{field_label(name)} must be one of {[e.value for e in enum_cls]}")

    for name in COUNT_RANGES:
        if payload.get(name) is None:
            if name in payload:
                cleaned[name] = None
            continue
        number = _clean_count(name, payload[name], errors)
        if number is not None:
            cleaned[name] = number

    if not partial or "rent_amount" in payload:
        raw_rent = payload.get("rent_amount")
        rent = parse_amount(raw_rent)
        if raw_rent is None or raw_rent == "":
            errors.append("rentAmount is required")
        elif rent is None:
            errors.append("rentAmount must be a number")
        elif rent <= 0:
            errors.append("rentAmount must be greater than 0")
        else:
            cleaned["rent_amount"] = rent

    if "facilities" in payload:
        facilities = payload["facilities"] or []
        if isinstance(facilities, (str, bytes)) or not isinstance(facilities, (list, tuple)):
            errors.append("facilities must be a list of strings")
        else:
            cleaned["facilities"] = [str(f).strip() for f in facilities if str(f).strip()]

    if "images" in payload:
        photos = [build_photo(raw, i, errors) for i, raw in enumerate(payload["images"] or [])]
        cleaned["images"] = [p for p in photos if p is not None]

    if "video_links" in payload:
        links = [
            build_video_link(raw, i, errors) for i, raw in enumerate(payload["video_links"] or [])
        ]
        cleaned["video_links"] = [v for v in links if v is not None]

    if "photo_notes" in payload:
        notes = payload["photo_notes"]
        cleaned["photo_notes"] = str(notes) if notes else None

    if "landlord_lives_in_compound" in payload:
        cleaned["landlord_lives_in_compound"] = bool(payload["landlord_lives_in_compound"])

    if "invite_agent_to_bid" in payload:
        cleaned["invite_agent_to_bid"] = bool(payload["invite_agent_to_bid"])

    if "agent_invite_details" in payload:
        try:
            cleaned["agent_invite_details"] = normalize_agent_invite_details(
                payload["agent_invite_details"], existing_invite_details
            )
        except ValidationError as exc:
            errors.extend(exc.errors)

    if errors:
        raise ValidationError(errors)
    return cleaned


def clean_bid_fields(
    proposed_commission: object,
    cover_letter: object,
    experience: object = None,
) -> tuple[Decimal, str, str | None]:
    errors: list[str] = []

    commission = parse_amount(proposed_commission)
    if commission is None:
        errors.append("proposedCommission is required")
    elif commission < 0:
        errors.append("proposedCommission must be at least 0")

    letter = str(cover_letter or "").strip()
    if not letter:
        errors.append("coverLetter is required")
    elif len(letter) > MAX_COVER_LETTER:
        errors.append(f"coverLetter must be at most {MAX_COVER_LETTER} characters")

    experience_text = str(experience).strip() if experience else None
    if experience_text and len(experience_text) > MAX_EXPERIENCE:
        errors.append(f"experience must be at most {MAX_EXPERIENCE} characters")

    if errors:
        raise ValidationError(errors)
    return commission, letter, experience_text  # type: ignore[return-value]
