"""Data models for metrics reports.

Contains dataclasses used to structure and serialize the JSON output:
    - ComponentSummary     one leaf file as listed by component_tree
    - UncoveredLineDetail  one source line with zero hits
    - BlockLine            one line of a duplicated block
    - DuplicateBlock       one member of a duplication group
    - FileReport           per-file result (coverage and/or duplication)
    - Report               one analysis run
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

REPORT_TYPES = ("coverage", "duplication", "combined")


@dataclass
class ComponentSummary:
    key: str
    name: str
    path: str
    measures: dict[str, dict] = field(default_factory=dict)


@dataclass
class UncoveredLineDetail:
    line_number: int
    code: str
    line_hits: int = 0
    unit_test_hits: int = 0
    integration_test_hits: int = 0
    conditions: int = 0
    covered_conditions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_number": self.line_number,
            "code": self.code,
            "line_hits": self.line_hits,
            "unit_test_hits": self.unit_test_hits,
            "integration_test_hits": self.integration_test_hits,
            "conditions": self.conditions,
            "covered_conditions": self.covered_conditions,
        }


@dataclass
class BlockLine:
    line_number: int
    code: str

    def to_dict(self) -> dict[str, Any]:
        return {"line_number": self.line_number, "code": self.code}


@dataclass
class DuplicateBlock:
    """A duplicated line range ``from_line..to_line`` inside ``source_file``."""

    block_id: str
    from_line: int
    size: int
    duplicate_id: int
    total_duplicates: int
    source_file: str
    is_current_file: bool
    block_code: list[BlockLine] = field(default_factory=list)

    @property
    def to_line(self) -> int:
        return self.from_line + self.size - 1

    def line_numbers(self) -> list[int]:
        return list(range(self.from_line, self.to_line + 1))

    def to_dict(self) -> dict[str, Any]:
        return {
            "block_id": self.block_id,
            "from": self.from_line,
            "size": self.size,
            "to": self.to_line,
            "duplicate_id": self.duplicate_id,
            "total_duplicates": self.total_duplicates,
            "source_file": self.source_file,
            "is_current_file": self.is_current_file,
            "block_code": [line.to_dict() for line in self.block_code],
        }


@dataclass
class FileReport:
    """Per-file result.

    The coverage fields are ``None`` on a duplication report and the
    duplication fields are ``None`` on a coverage report; a combined report
    fills both.
    """

    file_name: str
    file_path: str
    component_key: str
    coverage: float | None = None
    uncovered_lines: int | None = None
    uncovered_line_details: list[UncoveredLineDetail] = field(default_factory=list)
    duplicated_lines: int | None = None
    duplicated_blocks: int | None = None
    duplicated_density: float | None = None
    duplicated_block_details: list[DuplicateBlock] = field(default_factory=list)

    @property
    def has_coverage(self) -> bool:
        return self.coverage is not None

    @property
    def has_duplication(self) -> bool:
        return self.duplicated_density is not None

    def uncovered_line_numbers(self) -> list[int]:
        return [line.line_number for line in self.uncovered_line_details]

    def duplicated_line_numbers(self) -> list[int]:
        """Every line covered by any block of this file, de-duplicated and sorted."""
        lines: set[int] = set()
        for block in self.duplicated_block_details:
            lines.update(block.line_numbers())
        return sorted(lines)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "file_name": self.file_name,
            "file_path": self.file_path,
            "component_key": self.component_key,
        }
        if self.has_coverage:
            data["coverage"] = self.coverage
            data["uncovered_lines"] = self.uncovered_lines
            data["uncovered_line_details"] = [d.to_dict() for d in self.uncovered_line_details]
        if self.has_duplication:
            data["duplicated_lines"] = self.duplicated_lines
            data["duplicated_blocks"] = self.duplicated_blocks
            data["duplicated_density"] = self.duplicated_density
            data["duplicated_block_details"] = [b.to_dict() for b in self.duplicated_block_details]
        return data


@dataclass
class Report:
    report_type: str
    project_key: str
    base_url: str
    files: list[FileReport] = field(default_factory=list)
    new_code: bool = False
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.report_type not in REPORT_TYPES:
            raise ValueError(f"Unknown report type '{self.report_type}'")

    @property
    def has_coverage(self) -> bool:
        return self.report_type in ("coverage", "combined")

    @property
    def has_duplication(self) -> bool:
        return self.report_type in ("duplication", "combined")

    def summary(self) -> dict[str, Any]:
        s: dict[str, Any] = {"files": len(self.files)}
        if self.has_coverage:
            s["total_uncovered_lines"] = sum(f.uncovered_lines or 0 for f in self.files)
        if self.has_duplication:
            s["total_duplicated_lines"] = sum(f.duplicated_lines or 0 for f in self.files)
            s["total_duplicated_blocks"] = sum(f.duplicated_blocks or 0 for f in self.files)
        return s

    def to_dict(self) -> dict[str, Any]:
        return {
            "report_type": self.report_type,
            "project_key": self.project_key,
            "base_url": self.base_url,
            "new_code": self.new_code,
            "generated_at": self.generated_at.isoformat(),
            "summary": self.summary(),
            "files": [f.to_dict() for f in self.files],
        }
