"""
Known third-party services keyed by the domain that serves their scripts.

An ordered table of ``KnownService`` entries.  ``lookup()`` picks the
entry with the longest domain key contained in the script host, so
``connect.facebook.net`` wins over ``facebook.net`` for the Facebook SDK
host.  Domains are unique across the table, so the longest match is
unambiguous.
"""

from __future__ import annotations

import dataclasses

from script_sentinel.models import analysis
from script_sentinel.utils import url as url_mod


@dataclasses.dataclass(frozen=True)
class KnownService:
    """Template verdict for one recognised service.

    Attributes:
        domain: Registrable domain or host serving the scripts.
        name: Human-readable service name.
        purpose: What the service is used for.
        data_collected: Kinds of data the service receives.
        risk_level: Risk tier assigned to the service.
        recommendation: Advisory action.
        reasoning: Optional justification for the tier.
    """

    domain: str
    name: str
    purpose: str
    data_collected: tuple[str, ...]
    risk_level: analysis.RiskLevel
    recommendation: analysis.Recommendation
    reasoning: str | None = None


# ============================================================================
# Registry
# ============================================================================

KNOWN_SERVICES: tuple[KnownService, ...] = (
    # ── Payment gateways ────────────────────────────────────────
    KnownService(
        "razorpay.com", "Razorpay Payment Gateway",
        "Secure payment processing for Indian market",
        ("payment details", "transaction data", "contact info"),
        "LOW", "ALLOW",
        "Legitimate payment gateway used by thousands of businesses",
    ),
    KnownService(
        "stripe.com", "Stripe Payment Gateway", "Payment processing",
        ("payment details", "transaction data"), "LOW", "ALLOW",
    ),
    KnownService(
        "paypal.com", "PayPal", "Payment processing",
        ("payment details", "transaction data"), "LOW", "ALLOW",
    ),
    KnownService(
        "paypalobjects.com", "PayPal", "Payment buttons and checkout assets",
        ("basic request data",), "LOW", "ALLOW",
    ),
    # ── Analytics ───────────────────────────────────────────────
    KnownService(
        "google-analytics.com", "Google Analytics", "Website analytics and tracking",
        ("page views", "user behavior", "device info"), "LOW", "ALLOW",
    ),
    KnownService(
        "googletagmanager.com", "Google Tag Manager", "Tag management system",
        ("page views", "events", "user interactions"), "LOW", "ALLOW",
    ),
    KnownService(
        "mixpanel.com", "Mixpanel", "Product analytics",
        ("events", "user behavior", "device info"), "LOW", "ALLOW",
    ),
    KnownService(
        "segment.com", "Segment", "Customer data collection and routing",
        ("events", "user identifiers", "device info"), "MEDIUM", "MONITOR",
        "Forwards collected events to many downstream vendors",
    ),
    KnownService(
        "clarity.ms", "Microsoft Clarity", "Session recording and heatmaps",
        ("mouse movements", "clicks", "scroll behavior", "page content"),
        "HIGH", "MONITOR",
        "Session replay can capture personal data typed or shown on the page",
    ),
    KnownService(
        "hotjar.com", "Hotjar", "Session recording and heatmaps",
        ("mouse movements", "clicks", "form interactions"), "HIGH", "MONITOR",
        "Session replay can capture personal data typed or shown on the page",
    ),
    KnownService(
        "fullstory.com", "FullStory", "Session recording and product analytics",
        ("mouse movements", "clicks", "form interactions", "page content"),
        "HIGH", "MONITOR",
        "Session replay can capture personal data typed or shown on the page",
    ),
    # ── Social media ────────────────────────────────────────────
    KnownService(
        "facebook.net", "Facebook Pixel", "Advertising and conversion tracking",
        ("page views", "events", "user behavior"), "MEDIUM", "MONITOR",
        "Tracks user behavior for advertising purposes",
    ),
    KnownService(
        "connect.facebook.net", "Facebook SDK", "Social login and sharing",
        ("profile data", "social interactions"), "MEDIUM", "MONITOR",
    ),
    KnownService(
        "platform.twitter.com", "X (Twitter) Widgets", "Embedded posts and share buttons",
        ("page views", "social interactions"), "MEDIUM", "MONITOR",
    ),
    KnownService(
        "licdn.com", "LinkedIn Insight Tag", "Advertising conversion tracking",
        ("page views", "professional profile matching"), "MEDIUM", "MONITOR",
    ),
    KnownService(
        "analytics.tiktok.com", "TikTok Pixel", "Advertising conversion tracking",
        ("page views", "events", "device info"), "MEDIUM", "MONITOR",
    ),
    # ── Advertising ─────────────────────────────────────────────
    KnownService(
        "doubleclick.net", "Google DoubleClick", "Ad serving and tracking",
        ("browsing behavior", "ad interactions"), "MEDIUM", "MONITOR",
    ),
    KnownService(
        "googlesyndication.com", "Google AdSense", "Display advertisements",
        ("browsing context", "ad performance"), "MEDIUM", "MONITOR",
    ),
    KnownService(
        "googleadservices.com", "Google Ads", "Ad conversion tracking",
        ("conversions", "ad interactions"), "MEDIUM", "MONITOR",
    ),
    KnownService(
        "criteo.net", "Criteo", "Retargeting advertisements",
        ("browsing behavior", "product views", "device identifiers"),
        "MEDIUM", "MONITOR",
    ),
    KnownService(
        "adsrvr.org", "The Trade Desk", "Programmatic ad buying and identity resolution",
        ("browsing behavior", "cross-site identifiers"), "HIGH", "MONITOR",
        "Links visitors across sites for ad targeting",
    ),
    # ── CDNs and libraries ──────────────────────────────────────
    KnownService(
        "ajax.googleapis.com", "Google CDN", "Content delivery (libraries)",
        ("basic request data",), "LOW", "ALLOW",
    ),
    KnownService(
        "cdn.jsdelivr.net", "jsDelivr CDN", "Content delivery network",
        ("basic request data",), "LOW", "ALLOW",
    ),
    KnownService(
        "cdnjs.cloudflare.com", "Cloudflare CDN", "Content delivery network",
        ("basic request data",), "LOW", "ALLOW",
    ),
    KnownService(
        "unpkg.com", "UNPKG CDN", "NPM package CDN",
        ("basic request data",), "LOW", "ALLOW",
    ),
    KnownService(
        "code.jquery.com", "jQuery CDN", "JavaScript library delivery",
        ("basic request data",), "LOW", "ALLOW",
    ),
    KnownService(
        "gstatic.com", "Google Static Content", "Static assets for Google services",
        ("basic request data",), "LOW", "ALLOW",
    ),
    # ── Support, security and embeds ────────────────────────────
    KnownService(
        "recaptcha.net", "Google reCAPTCHA", "Bot and abuse protection",
        ("device info", "interaction signals"), "LOW", "ALLOW",
    ),
    KnownService(
        "intercom.io", "Intercom", "Customer support chat widget",
        ("contact info", "chat messages", "page views"), "MEDIUM", "MONITOR",
    ),
    KnownService(
        "youtube.com", "YouTube Embed", "Embedded video playback",
        ("viewing behavior", "device info"), "MEDIUM", "MONITOR",
    ),
)


def _check_unique(services: tuple[KnownService, ...]) -> None:
    seen: set[str] = set()
    for service in services:
        domain = service.domain.lower()
        if domain in seen:
            raise ValueError(f"Duplicate known-service domain: {domain}")
        seen.add(domain)


_check_unique(KNOWN_SERVICES)


def lookup(
    host: str,
    services: tuple[KnownService, ...] = KNOWN_SERVICES,
) -> KnownService | None:
    """Find the service whose domain key occurs in *host*, longest key first.

    Args:
        host: Script host, e.g. ``"js.stripe.com"``.
        services: Table to search; defaults to ``KNOWN_SERVICES``.

    Returns:
        The matching entry with the longest domain, or ``None``.
    """
    best: KnownService | None = None
    for service in services:
        if not url_mod.host_contains_domain(host, service.domain):
            continue
        if best is None or len(service.domain) > len(best.domain):
            best = service
    return best
