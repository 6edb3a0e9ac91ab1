"""
Validation of the configured service domains.
"""

from __future__ import annotations

from bucketd.common.config import Config
from bucketd.common.exceptions import InvalidDomainError, OverlappingDomainError

MAX_DOMAIN_LEN = 253
MAX_LABEL_LEN = 63

_HINT = f"Invalid {Config.ENV_DOMAIN} value in environment variable"


def is_domain_name(name: str) -> bool:
    """Check DNS name syntax: label and total lengths, no blanks."""
    if not name:
        return False
    if name == ".":
        return True
    if name.endswith("."):
        name = name[:-1]
    if len(name) > MAX_DOMAIN_LEN:
        return False
    for label in name.split("."):
        if not label or len(label) > MAX_LABEL_LEN:
            return False
        if any(ch.isspace() or not ch.isprintable() for ch in label):
            return False
    return True


def lcp_suffix(strs: list[str]) -> str:
    """Longest common suffix of all strings, "" for an empty list."""
    if not strs:
        return ""
    suffix = strs[0]
    for s in strs[1:]:
        n = 0
        limit = min(len(suffix), len(s))
        while n < limit and suffix[-1 - n] == s[-1 - n]:
            n += 1
        suffix = suffix[len(suffix) - n :]
        if not suffix:
            break
    return suffix


def validate_domains(
    raw: str, separator: str = Config.VALUE_SEPARATOR
) -> tuple[str, ...]:
    """
    Validate and sort a separator-delimited list of domains.

    Overlap detection is a whole-set check: it fails only when the common
    suffix of every domain is itself one of the domains, which catches
    "example.com" next to "eu.example.com" but not every pairwise overlap
    in sets of three or more.

    Raises:
        InvalidDomainError: a name fails the syntax check
        OverlappingDomainError: the common suffix equals a configured domain
    """
    if not raw:
        return ()

    domains: list[str] = []
    for name in raw.split(separator):
        if not is_domain_name(name):
            msg = f"Unknown value `{name}`"
            raise InvalidDomainError(msg, _HINT)
        domains.append(name)

    domains.sort()
    suffix = lcp_suffix(domains)
    if len(domains) > 1 and suffix in domains:
        msg = f"Overlapping domains `{domains}` not allowed"
        raise OverlappingDomainError(msg, _HINT)

    return tuple(domains)
