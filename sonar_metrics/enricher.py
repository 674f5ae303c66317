"""Line-level detail for flagged files.

``DetailEnricher`` issues the follow-up queries for one file at a time:
source lines for uncovered-line detail, duplication groups plus the source
of every duplicated block. Every request is paced by a ``RateLimiter`` and
every failure is contained to the file (or block) it belongs to.
"""

import logging

from sonar_metrics.client import MetricsClient, MetricsClientError
from sonar_metrics.markup import strip_markup
from sonar_metrics.models import BlockLine, DuplicateBlock, UncoveredLineDetail
from sonar_metrics.throttle import RateLimiter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def extract_uncovered(sources: list[dict]) -> list[UncoveredLineDetail]:
    """Return the lines with ``lineHits == 0``, in source order.

    Lines without a ``lineHits`` entry are not executable and are skipped.
    """
    return [
        UncoveredLineDetail(
            line_number=ln["line"],
            code=strip_markup(ln.get("code")),
            line_hits=0,
            unit_test_hits=ln.get("utLineHits") or 0,
            integration_test_hits=ln.get("itLineHits") or 0,
            conditions=ln.get("conditions") or 0,
            covered_conditions=ln.get("coveredConditions") or 0,
        )
        for ln in sources
        if isinstance(ln, dict) and ln.get("lineHits") == 0 and "line" in ln
    ]


def slice_block(sources: list[dict], from_line: int, to_line: int) -> list[BlockLine]:
    """Return lines ``from_line..to_line`` (inclusive) of *sources*."""
    return [
        BlockLine(line_number=ln["line"], code=strip_markup(ln.get("code")))
        for ln in sources
        if isinstance(ln, dict) and "line" in ln and from_line <= ln["line"] <= to_line
    ]


def resolve_block_origin(ref: str | None, files: dict, component_key: str) -> str:
    """Return the component key a duplication block lives in.

    ``_ref`` points into the response's ``files`` map; a block without a
    reference belongs to the file being analysed.
    """
    if not ref:
        return component_key
    info = files.get(ref)
    if isinstance(info, dict) and info.get("key"):
        return info["key"]
    return ref


# ---------------------------------------------------------------------------
# Enricher
# ---------------------------------------------------------------------------

class DetailEnricher:
    """Fetch uncovered-line and duplicated-block detail for single files."""

    def __init__(self, client: MetricsClient, limiter: RateLimiter | None = None) -> None:
        self.client = client
        self.limiter = limiter or RateLimiter()

    def enrich_uncovered(self, component_key: str) -> list[UncoveredLineDetail]:
        """Return the uncovered lines of *component_key*, or ``[]`` if the fetch fails."""
        try:
            with self.limiter:
                sources = self.client.fetch_source_lines(component_key)
        except MetricsClientError as exc:
            logger.warning("Error fetching source for %s: %s", component_key, exc)
            return []
        return extract_uncovered(sources)

    def enrich_duplicates(self, component_key: str) -> list[DuplicateBlock]:
        """Return every duplicated block reported for *component_key*.

        A block whose source cannot be fetched is kept with empty code.
        Entries of the wrong shape are skipped.
        """
        try:
            with self.limiter:
                data = self.client.fetch_duplications(component_key)
        except MetricsClientError as exc:
            logger.warning("Error fetching duplications for %s: %s", component_key, exc)
            return []

        groups = data.get("duplications")
        if not isinstance(groups, list):
            groups = []
        files = data.get("files")
        if not isinstance(files, dict):
            files = {}
        blocks: list[DuplicateBlock] = []

        for dup_index, group in enumerate(groups):
            members = group.get("blocks") if isinstance(group, dict) else None
            if not isinstance(members, list):
                logger.warning(
                    "Skipping malformed duplication group %d of %s: %s",
                    dup_index, component_key, group,
                )
                continue
            for block_index, raw in enumerate(members):
                if (
                    not isinstance(raw, dict)
                    or not isinstance(raw.get("from"), int)
                    or not isinstance(raw.get("size"), int)
                ):
                    logger.warning(
                        "Skipping malformed duplication block %d-%d of %s: %s",
                        dup_index, block_index, component_key, raw,
                    )
                    continue

                ref = raw.get("_ref")
                source_file = resolve_block_origin(
                    ref if isinstance(ref, str) else None, files, component_key,
                )
                block = DuplicateBlock(
                    block_id=f"{dup_index}-{block_index}",
                    from_line=raw["from"],
                    size=raw["size"],
                    duplicate_id=dup_index + 1,
                    total_duplicates=len(members),
                    source_file=source_file,
                    is_current_file=source_file == component_key,
                )
                block.block_code = self._fetch_block_code(block)
                blocks.append(block)

        return blocks

    def _fetch_block_code(self, block: DuplicateBlock) -> list[BlockLine]:
        try:
            with self.limiter:
                sources = self.client.fetch_source_lines(block.source_file)
        except MetricsClientError as exc:
            logger.warning(
                "Could not fetch source for duplicate block %s in %s: %s",
                block.block_id, block.source_file, exc,
            )
            return []
        return slice_block(sources, block.from_line, block.to_line)
