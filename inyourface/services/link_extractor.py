# inyourface/services/link_extractor.py
from __future__ import annotations

import re
from typing import Optional

from inyourface.schemas.meeting import MeetingPlatform

# Only calendar video hosts are recognised; ordinary links in a description
# must never be mistaken for a call.
VIDEO_LINK_PATTERN = re.compile(
    r"https?://"
    r"(?:us0[2-9]\.web\.|www\.|meet\.)?"
    r"(?:zoom\.us|google\.com|teams\.microsoft\.com|webex\.com)"
    r"/\S+"
)

# Checked in order; first hit wins.
_PLATFORM_MARKERS: tuple[tuple[str, MeetingPlatform], ...] = (
    ("zoom.us", MeetingPlatform.ZOOM),
    ("google.com", MeetingPlatform.GOOGLE_MEET),
    ("teams.microsoft", MeetingPlatform.MICROSOFT_TEAMS),
    ("webex", MeetingPlatform.WEBEX),
)


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def build_search_text(description: object, location: object, url: object) -> str:
    """
    Concatenate the fields a link may hide in.

    Description comes first so a link embedded there wins over one in the
    location or URL field.
    """
    return " ".join((_as_text(description), _as_text(location), _as_text(url)))


def extract_video_link(text: str | None) -> Optional[str]:
    """
    Return the first video-call URL found in `text`, verbatim, or None.
    """
    if not text:
        return None
    match = VIDEO_LINK_PATTERN.search(text)
    return match.group(0) if match else None


def classify_platform(link: str | None) -> MeetingPlatform:
    """
    Derive the provider from substring tests on the link, in fixed priority
    order: Zoom, Google, Microsoft Teams, Webex.
    """
    if not link:
        return MeetingPlatform.IN_PERSON_OR_OTHER
    for marker, platform in _PLATFORM_MARKERS:
        if marker in link:
            return platform
    return MeetingPlatform.VIDEO_CALL
