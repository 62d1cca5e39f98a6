"""Helpers for photo and video link payloads."""
from collections.abc import Mapping
from urllib.parse import urlparse

from src.domain.enums.listing_attributes import VideoPlatform
from src.domain.value_objects import Photo, VideoLink

# Checked in order; the first host fragment found in the URL wins
_PLATFORM_HOSTS: tuple[tuple[VideoPlatform, tuple[str, ...]], ...] = (
    (VideoPlatform.YOUTUBE, ("youtube.com", "youtu.be")),
    (VideoPlatform.TIKTOK, ("tiktok.com",)),
    (VideoPlatform.FACEBOOK, ("facebook.com", "fb.watch")),
    (VideoPlatform.INSTAGRAM, ("instagram.com",)),
    (VideoPlatform.VIMEO, ("vimeo.com",)),
    (VideoPlatform.TWITTER, ("twitter.com", "x.com")),
    (VideoPlatform.LINKEDIN, ("linkedin.com",)),
)


def detect_video_platform(url: str) -> VideoPlatform:
    lowered = url.lower()
    for platform, hosts in _PLATFORM_HOSTS:
        if any(host in lowered for host in hosts):
            return platform
    return VideoPlatform.OTHER


def is_valid_url(value: str) -> bool:
    """Only absolute http(s) URLs are accepted."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def build_photo(raw: Photo | Mapping, position: int, errors: list[str]) -> Photo | None:
    if isinstance(raw, Photo):
        return raw
    if not isinstance(raw, Mapping) or not raw.get("url"):
        errors.append(f"images[{position}].url is required")
        return None
    return Photo(
        url=str(raw["url"]),
        is_cover=bool(raw.get("is_cover", False)),
        storage_id=raw.get("storage_id"),
    )


def build_video_link(raw: VideoLink | Mapping, position: int, errors: list[str]) -> VideoLink | None:
    """Validate one video link, detecting its platform when none was given."""
    if isinstance(raw, VideoLink):
        return raw
    if not isinstance(raw, Mapping) or not raw.get("url"):
        errors.append(f"videoLinks[{position}].url is required")
        return None

    url = str(raw["url"]).strip()
    if not is_valid_url(url):
        errors.append(f"videoLinks[{position}].url must be a valid http(s) URL")
        return None

    platform = raw.get("platform")
    if platform:
        try:
            platform = VideoPlatform(platform)
        except ValueError:
            errors.append(
                f"videoLinks[{position}].platform must be one of "
                f"{[p.value for p in VideoPlatform]}"
            )
            return None
    else:
        platform = detect_video_platform(url)

    return VideoLink(url=url, platform=platform, title=str(raw.get("title") or ""))
