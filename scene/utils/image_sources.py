"""Classification of artist image URLs by origin.

Two rules decide which image wins when several sources disagree:

* **User uploads** (concert photos in the ``show-photos`` storage bucket or
  images hosted on the app's own domain) are never used as an artist's
  portrait, even though they live in the same ``artist_image_url`` column.
* **Premium sources** (Spotify's image CDN by default) override any other
  URL already recorded for the same artist.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlparse

DEFAULT_PREMIUM_HOSTS: frozenset[str] = frozenset(
    {"i.scdn.co", "mosaic.scdn.co", "image-cdn-ak.spotifycdn.com"}
)

_USER_UPLOAD_MARKERS = (
    "show-photos",
    "lovable.app/images/",
    "lovableproject.com/images/",
)


def is_user_uploaded_image(url: str | None) -> bool:
    """Return ``True`` if *url* points at a user-uploaded photo."""
    if not url:
        return False
    return any(marker in url for marker in _USER_UPLOAD_MARKERS)


def is_premium_image(url: str | None, premium_hosts: Iterable[str] = DEFAULT_PREMIUM_HOSTS) -> bool:
    """Return ``True`` if *url* is served from one of *premium_hosts*."""
    if not url:
        return False
    host = (urlparse(url).hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in premium_hosts)


def merge_image_url(
    target: dict[str, str],
    key: str,
    url: str | None,
    premium_hosts: Iterable[str] = DEFAULT_PREMIUM_HOSTS,
) -> bool:
    """Record *url* for *key* in *target* unless a better URL is already there.

    The first URL for a key wins, except that a premium URL replaces a
    non-premium one.  Returns ``True`` when *target* changed.
    """
    if not url:
        return False
    existing = target.get(key)
    if existing is None:
        target[key] = url
        return True
    hosts = tuple(premium_hosts)
    if is_premium_image(url, hosts) and not is_premium_image(existing, hosts):
        target[key] = url
        return True
    return False
