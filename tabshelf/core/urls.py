"""URL canonicalization for saved shortcuts.

Every tab stores a *minified* URL: the org host and the
``/lightning/setup/`` prefix are stripped so the same shortcut matches on
every org.  These links all collapse into ``SetupOneHome/home``::

    https://acme.my.salesforce-setup.com/lightning/setup/SetupOneHome/home/
    /lightning/setup/SetupOneHome/home
    lightning/setup/SetupOneHome/home
    SetupOneHome/home/

``/SetupOneHome/home`` does not collapse: a leading slash marks a
non-setup path.
"""

from __future__ import annotations

import re
from urllib.parse import unquote, urlsplit

from ..constants import (
    HTTPS,
    LIGHTNING_FORCE_COM,
    MY_SALESFORCE_COM,
    MY_SALESFORCE_SETUP_COM,
    SETUP_LIGHTNING,
    SUPPORTED_HOST_SUFFIXES,
)
from ..errors import InvalidOrgError, InvalidUrlError

_SETUP_LIGHTNING_RELATIVE = SETUP_LIGHTNING[1:]

# 15 or 18 alphanumeric characters delimited by a path or query boundary
_RECORD_ID = re.compile(r"(?:^|/|=)([0-9a-zA-Z]{15}(?:[0-9a-zA-Z]{3})?)(?=$|/|\?|&)")


def minify_url(url: str | None) -> str:
    """Return the canonical, host-less form of *url*.

    Raises:
        InvalidUrlError: If *url* is empty.
    """
    if not url:
        raise InvalidUrlError("Cannot minify an empty url")
    for suffix in (LIGHTNING_FORCE_COM, MY_SALESFORCE_SETUP_COM):
        if suffix in url:
            url = url[url.index(suffix) + len(suffix) :]
            break
    if SETUP_LIGHTNING in url:
        url = url[url.index(SETUP_LIGHTNING) + len(SETUP_LIGHTNING) :]
    elif _SETUP_LIGHTNING_RELATIVE in url:
        url = url[url.index(_SETUP_LIGHTNING_RELATIVE) + len(_SETUP_LIGHTNING_RELATIVE) :]
    if url.endswith("/"):
        url = url[:-1]
    return url or "/"


def extract_org_name(url: str | None) -> str:
    """Return the org identifier for a host or URL.

    ``https://acme--dev.sandbox.my.salesforce-setup.com/x`` and
    ``acme--dev.sandbox.lightning.force.com`` both yield
    ``acme--dev.sandbox``.  Values that are already an org name pass
    through unchanged.

    Raises:
        InvalidOrgError: If *url* is empty or has no host.
    """
    if not url:
        raise InvalidOrgError("Cannot extract an org from an empty value")
    full = url if "://" in url else f"{HTTPS}{url}"
    try:
        host = urlsplit(full).hostname or ""
    except ValueError as exc:
        raise InvalidOrgError(f"Invalid org: {url!r}") from exc
    if not host:
        raise InvalidOrgError(f"Invalid org: {url!r}")
    for suffix in (LIGHTNING_FORCE_COM, MY_SALESFORCE_SETUP_COM, MY_SALESFORCE_COM):
        if host.endswith(suffix):
            host = host[: -len(suffix)]
    return host


def expand_url(url: str | None, base_url: str | None, org: str | None = None) -> str:
    """Undo :func:`minify_url`, prefixing the host of *base_url*.

    When *org* is given and differs from the org of *base_url*, the host is
    rewritten to point at *org* instead.  Absolute links to foreign hosts are
    returned untouched.

    Raises:
        InvalidUrlError: If *base_url* is not an https URL or *url* is empty.
    """
    if not base_url or not base_url.startswith(HTTPS):
        raise InvalidUrlError(f"Base url must start with {HTTPS}: {base_url!r}")
    if not url:
        raise InvalidUrlError("Cannot expand an empty url")
    parts = urlsplit(base_url)
    origin = f"{parts.scheme}://{parts.netloc}"
    old_org = extract_org_name(origin)
    swap_org = bool(org) and old_org != org
    if url.startswith(HTTPS) and not any(s in url for s in SUPPORTED_HOST_SUFFIXES):
        return url.replace(old_org, org, 1) if swap_org else url
    url = minify_url(url)
    is_setup_link = not url.startswith("/")
    host = origin.replace(old_org, org, 1) if swap_org else origin
    return f"{host}{SETUP_LIGHTNING if is_setup_link else ''}{url}"


def contains_record_id(url: str | None) -> bool:
    """True if *url* (possibly percent-encoded) carries a 15/18-char record id.

    Raises:
        InvalidUrlError: If *url* is None.
    """
    if url is None:
        raise InvalidUrlError("No url to inspect")
    for match in _RECORD_ID.finditer(unquote(url)):
        if any(ch.isdigit() for ch in match.group(1)):
            return True
    return False
