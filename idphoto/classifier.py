"""Aggregation of check results into a single verdict.

Precedence: any critical failure rejects the photo, no matter how many other
checks pass. Otherwise any warning makes the verdict a warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from idphoto.interfaces import CheckResult, CheckStatus


@dataclass(frozen=True)
class Verdict:
    """Ordered check results plus the aggregate status.

    Attributes:
        results: Check results in battery order
        overall: FAIL if any critical failure, else WARN if any warning, else PASS
        summary: Counts keyed total / critical / failures / warnings / passes
    """

    results: Tuple[CheckResult, ...]
    overall: CheckStatus
    summary: Mapping[str, int]

    def __post_init__(self) -> None:
        object.__setattr__(self, "results", tuple(self.results))
        object.__setattr__(self, "summary", MappingProxyType(dict(self.summary)))

    @property
    def has_critical_issues(self) -> bool:
        return self.summary["critical"] > 0

    @property
    def has_failures(self) -> bool:
        return self.summary["failures"] > 0

    @property
    def has_warnings(self) -> bool:
        return self.summary["warnings"] > 0

    @property
    def is_valid(self) -> bool:
        return not self.has_critical_issues and not self.has_failures

    def __repr__(self) -> str:
        return f"Verdict(overall={self.overall.value}, summary={dict(self.summary)})"


class ResultClassifier:
    """Turn an ordered list of check results into a Verdict."""

    def aggregate(self, results: Iterable[CheckResult]) -> Verdict:
        ordered = tuple(results)

        critical = sum(1 for r in ordered if r.critical and r.status is CheckStatus.FAIL)
        failures = sum(1 for r in ordered if r.status is CheckStatus.FAIL)
        warnings = sum(1 for r in ordered if r.status is CheckStatus.WARN)
        passes = sum(1 for r in ordered if r.status is CheckStatus.PASS)

        if critical:
            overall = CheckStatus.FAIL
        elif warnings:
            overall = CheckStatus.WARN
        else:
            overall = CheckStatus.PASS

        return Verdict(
            results=ordered,
            overall=overall,
            summary={
                "total": len(ordered),
                "critical": critical,
                "failures": failures,
                "warnings": warnings,
                "passes": passes,
            },
        )


def aggregate(results: Iterable[CheckResult]) -> Verdict:
    """Module-level shortcut for ResultClassifier().aggregate()."""
    return ResultClassifier().aggregate(results)
