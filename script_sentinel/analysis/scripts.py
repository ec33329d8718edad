"""Batch analysis of the scripts observed on one page.

Process:
1. Partition scripts into first-party and third-party by host.
   Scripts without a parseable host are dropped.
2. Keep the first ``max_scripts`` third-party scripts in discovery
   order; the rest are counted but not classified.
3. Classify the kept scripts concurrently.
4. Join on all of them and reassemble verdicts in input order.
"""

from __future__ import annotations

import asyncio
import dataclasses

from script_sentinel.analysis import classifier as classifier_mod
from script_sentinel.models import analysis
from script_sentinel.utils import logger
from script_sentinel.utils import url as url_mod

log = logger.create_logger("Script-Analysis")

# Default bound on classifications per page.
MAX_THIRD_PARTY_SCRIPTS = 10


@dataclasses.dataclass(frozen=True)
class PartitionedScripts:
    """Scripts split by origin relative to the page host."""

    first_party: list[analysis.ScriptRecord]
    third_party: list[analysis.ScriptRecord]
    dropped: int


def partition_scripts(
    scripts: list[analysis.ScriptRecord],
    page_host: str,
) -> PartitionedScripts:
    """Split *scripts* by exact (case-insensitive) host comparison.

    Related sub/parent domains land in ``third_party`` here; the
    classifier's first-party tier resolves them to LOW / ALLOW.
    """
    page = page_host.lower()
    first: list[analysis.ScriptRecord] = []
    third: list[analysis.ScriptRecord] = []
    dropped = 0
    for script in scripts:
        host = url_mod.extract_host(script.url)
        if host is None:
            dropped += 1
        elif host == page:
            first.append(script)
        else:
            third.append(script)
    return PartitionedScripts(first_party=first, third_party=third, dropped=dropped)


async def analyze_scripts(
    page_url: str,
    page_host: str,
    scripts: list[analysis.ScriptRecord],
    *,
    classifier: classifier_mod.ScriptClassifier,
    max_scripts: int = MAX_THIRD_PARTY_SCRIPTS,
) -> analysis.AnalysisResult:
    """Classify the third-party scripts of one page.

    Args:
        page_url: URL that was analyzed.
        page_host: Host of the page after rendering.
        scripts: Every script the renderer observed.
        classifier: Resolver used for each script.
        max_scripts: How many third-party scripts to classify.

    Returns:
        An ``AnalysisResult`` whose ``scripts`` and ``analyses``
        correspond index by index.
    """
    parts = partition_scripts(scripts, page_host)
    selected = parts.third_party[:max_scripts]
    skipped = len(parts.third_party) - len(selected)

    log.info(
        "Partitioned scripts",
        {
            "total": len(scripts),
            "firstParty": len(parts.first_party),
            "thirdParty": len(parts.third_party),
            "dropped": parts.dropped,
            "selected": len(selected),
        },
    )
    if skipped:
        log.warn(
            "Third-party scripts beyond the batch bound were not analyzed",
            {"skipped": skipped, "limit": max_scripts},
        )

    log.start_timer("classify-batch")
    analyses = await asyncio.gather(
        *(classifier.resolve(script.url, page_host) for script in selected)
    )
    log.end_timer("classify-batch", f"Classified {len(analyses)} scripts")

    return analysis.AnalysisResult(
        url=page_url,
        total_scripts=len(scripts),
        third_party_script_count=len(parts.third_party),
        scripts=selected,
        analyses=list(analyses),
        unanalyzed_script_count=skipped,
    )
