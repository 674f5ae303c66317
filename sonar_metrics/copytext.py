"""Plain-text transcripts of a report, for pasting into tickets or chats.

Usage:
    text = format_copy_text(report, Granularity.ALL_COVERAGE)
    text = format_copy_text(report, Granularity.SINGLE_FILE, file_index=0)

The output depends only on the report: the "Analysis Date" line shows the
report's own ``generated_at``.
"""

from enum import Enum
from urllib.parse import quote

from sonar_metrics.client import SOURCE_LINES_TO
from sonar_metrics.models import FileReport, Report


class Granularity(str, Enum):
    SINGLE_FILE = "single-file"
    ALL_COVERAGE = "all-coverage"
    ALL_DUPLICATION = "all-duplication"
    ALL_COMBINED = "all-combined"


_TITLES = {
    Granularity.ALL_COVERAGE: "SonarQube Coverage Analysis",
    Granularity.ALL_DUPLICATION: "SonarQube Duplication Analysis",
    Granularity.ALL_COMBINED: "SonarQube Complete Analysis",
}

_INDENT = "   "
_DETAIL_INDENT = "     "
_CODE_INDENT = "       "


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_copy_text(
    report: Report,
    granularity: Granularity | str,
    *,
    file_index: int | None = None,
) -> str:
    """Serialise *report* (or one file of it) to plain text.

    Raises:
        ValueError: the granularity needs a section the report does not carry,
                    or SINGLE_FILE was requested without *file_index*
        IndexError: *file_index* is out of range
    """
    granularity = Granularity(granularity)

    if granularity is Granularity.SINGLE_FILE:
        if file_index is None:
            raise ValueError("file_index is required for single-file text")
        if not 0 <= file_index < len(report.files):
            raise IndexError(f"file_index {file_index} out of range (0..{len(report.files) - 1})")
        return _single_file(report, report.files[file_index])

    coverage = granularity in (Granularity.ALL_COVERAGE, Granularity.ALL_COMBINED)
    duplication = granularity in (Granularity.ALL_DUPLICATION, Granularity.ALL_COMBINED)
    if coverage and not report.has_coverage:
        raise ValueError(f"'{granularity.value}' text needs a coverage or combined report")
    if duplication and not report.has_duplication:
        raise ValueError(f"'{granularity.value}' text needs a duplication or combined report")

    out = [
        f"=== {_TITLES[granularity]} ===",
        f"Total Files: {len(report.files)}",
        f"Analysis Date: {_timestamp(report)}",
        "",
    ]
    for n, item in enumerate(report.files, start=1):
        out.append(f"{n}. File: {item.file_name}")
        out.append(f"{_INDENT}Path: {item.file_path}")
        out.append(f"{_INDENT}Component Key: {item.component_key}")
        if coverage:
            out.append(f"{_INDENT}Coverage: {_pct(item.coverage)}%")
            out.append(f"{_INDENT}Uncovered Lines Count: {item.uncovered_lines or 0}")
        if duplication:
            out.extend(_duplication_scalars(item, _INDENT))
        if coverage and item.uncovered_line_details:
            out.extend(_uncovered_entry(report, item))
        if duplication and item.duplicated_block_details:
            out.extend(_duplication_entry(report, item))
        out.append("")

    return "\n".join(out) + "\n"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def _uncovered_entry(report: Report, item: FileReport) -> list[str]:
    out = [
        f"{_INDENT}Uncovered Line Numbers: {_join(item.uncovered_line_numbers())}",
        f"{_INDENT}API URL: {sources_url(report.base_url, item.component_key)}",
        f"{_INDENT}Uncovered Lines Detail:",
    ]
    out.extend(
        f"{_DETAIL_INDENT}Line {line.line_number}: {line.code}"
        for line in item.uncovered_line_details
    )
    return out


def _duplication_entry(report: Report, item: FileReport) -> list[str]:
    out = [
        f"{_INDENT}Duplicated Line Numbers: {_join(item.duplicated_line_numbers())}",
        f"{_INDENT}Duplications API URL: {duplications_url(report.base_url, item.component_key)}",
        f"{_INDENT}Duplicated Blocks Detail:",
    ]
    for block in item.duplicated_block_details:
        out.append(f"{_DETAIL_INDENT}{_block_title(block)}")
        out.append(f"{_DETAIL_INDENT}Source: {block.source_file}")
        out.append(f"{_DETAIL_INDENT}Lines: {_join(block.line_numbers())}")
        out.extend(f"{_CODE_INDENT}Line {line.line_number}: {line.code}" for line in block.block_code)
        out.append("")
    return out


def _single_file(report: Report, item: FileReport) -> str:
    out = [
        f"File: {item.file_name}",
        f"Path: {item.file_path}",
        f"Component Key: {item.component_key}",
    ]
    if item.has_coverage:
        out.append(f"Coverage: {_pct(item.coverage)}%")
        out.append(f"Uncovered Lines Count: {item.uncovered_lines or 0}")
        if item.uncovered_line_details:
            out.append(f"Uncovered Line Numbers: {_join(item.uncovered_line_numbers())}")
    if item.has_duplication:
        out.extend(_duplication_scalars(item, ""))

    if item.uncovered_line_details:
        out.append("")
        out.append("Uncovered Lines Detail:")
        out.extend(f"Line {line.line_number}: {line.code}" for line in item.uncovered_line_details)

    if item.duplicated_block_details:
        out.append("")
        out.append("Duplicated Blocks Detail:")
        out.append(f"Duplicated Line Numbers: {_join(item.duplicated_line_numbers())}")
        for block in item.duplicated_block_details:
            out.append("")
            out.append(_block_title(block))
            out.append(f"Source: {block.source_file}")
            out.append(f"Lines: {_join(block.line_numbers())}")
            out.extend(f"Line {line.line_number}: {line.code}" for line in block.block_code)

    return "\n".join(out) + "\n"


def _duplication_scalars(item: FileReport, indent: str) -> list[str]:
    return [
        f"{indent}Duplicated Lines: {item.duplicated_lines or 0}",
        f"{indent}Duplicated Blocks: {item.duplicated_blocks or 0}",
        f"{indent}Duplication Density: {_pct(item.duplicated_density)}%",
    ]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def sources_url(base_url: str, component_key: str) -> str:
    return f"{base_url}/api/sources/lines?key={_encode(component_key)}&from=1&to={SOURCE_LINES_TO}"


def duplications_url(base_url: str, component_key: str) -> str:
    return f"{base_url}/api/duplications/show?key={_encode(component_key)}"


def _encode(value: str) -> str:
    # Same character set as JavaScript's encodeURIComponent
    return quote(value, safe="!~*'()")


def _block_title(block) -> str:
    return (
        f"Duplicate Block {block.duplicate_id} "
        f"(Lines {block.from_line}-{block.to_line}, Size: {block.size})"
    )


def _pct(value: float | None) -> str:
    return f"{value or 0.0:.1f}"


def _join(numbers: list[int]) -> str:
    return ", ".join(str(n) for n in numbers)


def _timestamp(report: Report) -> str:
    return report.generated_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
