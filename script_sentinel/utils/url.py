"""
URL and host utility functions for script classification.
"""

from __future__ import annotations

from urllib import parse

_WEB_SCHEMES = frozenset(["http", "https"])


def extract_host(url: str) -> str | None:
    """Extract the lower-cased hostname from a URL string.

    Returns:
        The hostname, or ``None`` when the URL has no parseable host.
    """
    try:
        parsed = parse.urlparse(url)
        host = parsed.hostname
    except (ValueError, TypeError):
        return None
    return host or None


def strip_www(host: str) -> str:
    """Lower-case *host* and remove one leading ``www.`` label."""
    return host.lower().removeprefix("www.")


def is_related_host(script_host: str, page_host: str) -> bool:
    """Whether two hosts belong to the same site.

    Both hosts are compared after stripping ``www.``.  They are
    related when they are equal or when either one is a subdomain
    of the other (``cdn.shop.example.com`` vs ``shop.example.com``,
    and the reverse).
    """
    script_base = strip_www(script_host)
    page_base = strip_www(page_host)
    if not script_base or not page_base:
        return False
    return (
        script_base == page_base
        or script_base.endswith("." + page_base)
        or page_base.endswith("." + script_base)
    )


def host_contains_domain(host: str, domain: str) -> bool:
    """Whether the registered *domain* key occurs anywhere in *host*.

    Case-insensitive containment, so ``js.stripe.com`` and
    ``stripe.com.cdn.example`` both carry ``stripe.com``.
    """
    return domain.lower() in strip_www(host)


def is_web_url(url: str) -> bool:
    """Whether *url* is an absolute http(s) URL with a host."""
    try:
        parsed = parse.urlparse(url.strip())
    except (ValueError, TypeError, AttributeError):
        return False
    return parsed.scheme.lower() in _WEB_SCHEMES and bool(parsed.hostname)
