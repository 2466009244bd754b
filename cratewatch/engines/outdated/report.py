"""Group findings per package and render them."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import asdict

from cratewatch.engines.outdated.models import OutdatedFinding, OutdatedReport

UP_TO_DATE_MESSAGE = "All dependencies are up-to-date!"

_BRANCH = "├──"
_LAST_BRANCH = "└──"


def aggregate(
    findings: Iterable[tuple[str, OutdatedFinding]],
    skipped: int = 0,
) -> OutdatedReport:
    report = OutdatedReport(skipped=skipped)
    for package, finding in findings:
        report.add(package, finding)
    return report


def render_tree(report: OutdatedReport) -> str:
    """Render the report as a box-drawing tree, one block per package."""
    if report.is_empty():
        return UP_TO_DATE_MESSAGE

    lines: list[str] = []
    for package, findings in report.outdated.items():
        lines.append(package)
        for i, f in enumerate(findings):
            branch = _LAST_BRANCH if i == len(findings) - 1 else _BRANCH
            lines.append(
                f"\t{branch} {f.dependency_name}: {f.declared_requirement} -> {f.latest_version}"
            )
    return "\n".join(lines)


def render_json(report: OutdatedReport) -> str:
    rows = {
        package: [
            {k: v for k, v in asdict(f).items() if k != "owning_package"} for f in findings
        ]
        for package, findings in report.outdated.items()
    }
    return json.dumps({"outdated": rows, "skipped": report.skipped}, indent=2)
