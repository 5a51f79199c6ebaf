"""Hostname to credential matching used for autofill offers.

The match is a substring heuristic, not a registrable-domain comparison.
Short platform names produce false positives: ``"git"`` matches
``"github.com"``.
"""
from typing import Iterable, Optional

from .models import VaultRecord

_WWW_PREFIX = "www."


def normalize_hostname(hostname: str) -> str:
    host = (hostname or "").strip().lower()
    if host.startswith(_WWW_PREFIX):
        host = host[len(_WWW_PREFIX):]
    return host


def _contains_either(a: str, b: str) -> bool:
    return a in b or b in a


def match_domain(
    entries: Iterable[VaultRecord],
    hostname: str
) -> Optional[VaultRecord]:
    """Return the first entry whose platform matches ``hostname``.

    Entries are tested in list order, so the earliest added wins.
    """
    host = normalize_hostname(hostname)
    if not host:
        return None
    for entry in entries:
        platform = entry.platform.strip().lower()
        if not platform:
            continue
        if _contains_either(platform, host):
            return entry
        if _contains_either(f"{platform}.com", host):
            return entry
    return None
