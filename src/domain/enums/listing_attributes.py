from enum import Enum


class ListingPurpose(str, Enum):
    FOR_RENT = "For Rent"
    SHORT_LET = "Short Let"


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Availability(str, Enum):
    YES = "yes"
    NO = "no"


class PreferredAgentType(str, Enum):
    ANY = "any"
    LOCAL = "local"
    EXPERIENCED = "experienced"
    PREMIUM = "premium"


class VideoPlatform(str, Enum):
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    VIMEO = "vimeo"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    OTHER = "other"
