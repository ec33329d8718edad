"""Classification resolver: one script URL in, one risk verdict out.

Tiers are evaluated in order and the first match wins:

1. First-party — the script host is the page host or a related
   sub/parent domain.
2. Known framework — the URL carries a bundler or runtime marker.
3. Registry — longest domain key contained in the host (``known_services``).
4. Oracle — the ``ScriptClassificationAgent`` classifies the URL.

``resolve()`` never raises.  Any failure, including a malformed
script URL or an unusable oracle answer, produces the conservative
MEDIUM / MONITOR record from ``unrecognized_record()``.
"""

from __future__ import annotations

from script_sentinel import agents
from script_sentinel.agents import script_classification_agent
from script_sentinel.analysis import known_services
from script_sentinel.models import analysis
from script_sentinel.utils import errors, logger
from script_sentinel.utils import url as url_mod

log = logger.create_logger("Classifier")

# Path and filename markers of bundler output and framework runtimes.
FRAMEWORK_MARKERS: tuple[str, ...] = (
    "/_next/static/",  # Next.js
    "/_nuxt/",  # Nuxt.js
    "/webpack",
    "/react",
    "/vue",
    "chunk",
    "runtime",
)

UNRECOGNIZED_SCRIPT_NAME = "Unrecognized Third-Party Script"


# ============================================================================
# Tier predicates
# ============================================================================


def is_known_framework(script_url: str) -> bool:
    """Whether the URL looks like a framework or build-chunk asset."""
    return any(marker in script_url for marker in FRAMEWORK_MARKERS)


# ============================================================================
# Record builders
# ============================================================================


def first_party_record(script_url: str, script_host: str, page_host: str) -> analysis.AnalysisRecord:
    """Fixed LOW / ALLOW verdict for a same-site script."""
    return analysis.AnalysisRecord(
        script_url=script_url,
        script_name="First-Party Script",
        purpose="Part of the website's core functionality",
        data_collected=["Website functionality data only"],
        destinations=[script_host],
        risk_level="LOW",
        reasoning="Same-origin asset: hosted on the same site as the page",
        recommendation="ALLOW",
        user_friendly_explanation=(
            f"This script is part of {page_host}'s own code and is necessary"
            " for the website to work properly. It's safe."
        ),
    )


def framework_record(script_url: str, script_host: str) -> analysis.AnalysisRecord:
    """Fixed LOW / ALLOW verdict for a framework or bundler asset."""
    return analysis.AnalysisRecord(
        script_url=script_url,
        script_name="Web Framework Component",
        purpose="Powers website features and interactivity",
        data_collected=["Browser compatibility data"],
        destinations=[script_host],
        risk_level="LOW",
        reasoning="Standard framework asset (Next.js/Nuxt/React/Vue/webpack build output)",
        recommendation="ALLOW",
        user_friendly_explanation=(
            "This is a framework file that helps the website function."
            " It's a standard component and safe."
        ),
    )


def _registry_explanation(service: known_services.KnownService) -> str:
    base = f"This is {service.name}, commonly used for {service.purpose.lower()}."
    if service.risk_level == "LOW":
        return f"{base} It's generally safe."
    if service.risk_level == "MEDIUM":
        return f"{base} Monitor for privacy concerns."
    return f"{base} It can collect sensitive data, so review whether you need it."


def registry_record(
    script_url: str,
    script_host: str,
    service: known_services.KnownService,
) -> analysis.AnalysisRecord:
    """Verdict built from a registry template."""
    return analysis.AnalysisRecord(
        script_url=script_url,
        script_name=service.name,
        purpose=service.purpose,
        data_collected=list(service.data_collected),
        destinations=[script_host],
        risk_level=service.risk_level,
        reasoning=service.reasoning or "Recognized third-party service",
        recommendation=service.recommendation,
        user_friendly_explanation=_registry_explanation(service),
    )


def unrecognized_record(script_url: str, script_host: str | None) -> analysis.AnalysisRecord:
    """Conservative MEDIUM / MONITOR verdict used whenever classification fails."""
    where = script_host or "an unknown host"
    return analysis.AnalysisRecord(
        script_url=script_url,
        script_name=UNRECOGNIZED_SCRIPT_NAME,
        purpose="Unknown - requires manual review",
        data_collected=["Unknown - should be investigated"],
        destinations=[script_host] if script_host else [],
        risk_level="MEDIUM",
        reasoning="Unfamiliar domain, requires manual review by a developer",
        recommendation="MONITOR",
        user_friendly_explanation=(
            f"This script is from {where}, which is not in our database of known"
            " services. We recommend reviewing what this script does before allowing it."
        ),
    )


# ============================================================================
# Resolver
# ============================================================================


class ScriptClassifier:
    """Runs the tiered decision chain for individual scripts.

    Args:
        oracle: Agent for the last tier.  Defaults to the shared
            ``ScriptClassificationAgent`` singleton, fetched on
            first use.
        services: Registry table; defaults to ``KNOWN_SERVICES``.
    """

    def __init__(
        self,
        oracle: script_classification_agent.ScriptClassificationAgent | None = None,
        services: tuple[known_services.KnownService, ...] = known_services.KNOWN_SERVICES,
    ) -> None:
        self._oracle = oracle
        self._services = services

    def _get_oracle(self) -> script_classification_agent.ScriptClassificationAgent:
        if self._oracle is None:
            self._oracle = agents.get_script_classification_agent()
        return self._oracle

    async def resolve(self, script_url: str, page_host: str) -> analysis.AnalysisRecord:
        """Produce exactly one verdict for *script_url*.

        Args:
            script_url: Script URL as observed by the renderer.
            page_host: Host of the analyzed page.

        Returns:
            The verdict from the first matching tier, or the
            unrecognized-script fallback.
        """
        script_host = url_mod.extract_host(script_url)
        try:
            if script_host is None:
                raise errors.ClassificationDegraded(f"No host in script URL: {script_url!r}")

            if url_mod.is_related_host(script_host, page_host):
                return first_party_record(script_url, script_host, page_host)

            if is_known_framework(script_url):
                return framework_record(script_url, script_host)

            service = known_services.lookup(script_host, self._services)
            if service is not None:
                log.debug("Matched known service", {"host": script_host, "service": service.name})
                return registry_record(script_url, script_host, service)

            return await self._classify_with_oracle(script_url, script_host)
        except errors.ClassificationDegraded as degraded:
            log.warn(
                "Classification degraded to manual review",
                {"url": script_url, "reason": errors.get_error_message(degraded)},
            )
        except Exception as error:
            log.error(
                "Unexpected classification failure",
                {"url": script_url, "error": errors.get_error_message(error)},
            )
        return unrecognized_record(script_url, script_host)

    async def _classify_with_oracle(self, script_url: str, script_host: str) -> analysis.AnalysisRecord:
        """Ask the oracle; raise ``ClassificationDegraded`` when it cannot answer."""
        oracle = self._get_oracle()
        if not oracle.is_configured:
            raise errors.ClassificationDegraded("Oracle is not configured")

        log.info("Classifying unknown script with oracle", {"url": script_url})
        record = await oracle.classify(script_url, script_host)
        if record is None:
            raise errors.ClassificationDegraded("Oracle returned no usable verdict")
        return record
