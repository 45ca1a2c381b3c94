from __future__ import annotations

from ..models.sync_plan import ChangeReport

"""Change report rendering.

render_report() produces the human-readable markdown report;
render_summary_line() produces the single SUMMARY line:

    SUMMARY mode=<preview|write> overrides=<confirmed>/<candidates> new=<n>
    generated=<n> conflicts=<n> written=<n> blocked=<true|false>

Both are pure functions of a ChangeReport, so preview and write runs
render the same sections and differ only in the mode line.
"""

__all__ = [
    "render_report",
    "render_summary_line",
]


def _mode_label(report: ChangeReport) -> str:
    return "preview" if report.dry_run else "write"


def render_summary_line(report: ChangeReport, written_files: int = 0) -> str:
    """Render the SUMMARY line for a report.

    Examples:
        >>> from catalog_sync.models.sync_plan import ChangeReport
        >>> report = ChangeReport(
        ...     dry_run=True, write_blocked=False, override_candidates=[],
        ...     confirmed_overrides=[], new_entries=["home.title"],
        ...     generated_keys=[], conflicts=[],
        ... )
        >>> render_summary_line(report)
        'SUMMARY mode=preview overrides=0/0 new=1 generated=0 conflicts=0 written=0 blocked=false'
    """
    counts = report.counts
    return (
        f"SUMMARY mode={_mode_label(report)} "
        f"overrides={counts['confirmed_overrides']}/{counts['override_candidates']} "
        f"new={counts['new_entries']} "
        f"generated={counts['generated_keys']} "
        f"conflicts={counts['mapping_conflicts']} "
        f"written={written_files} "
        f"blocked={'true' if report.write_blocked else 'false'}"
    )


def render_report(report: ChangeReport) -> str:
    counts = report.counts
    confirmed = set(report.confirmed_overrides)
    lines: list[str] = []
    lines.append("## Translation sync report")
    lines.append("")
    lines.append("| Type | Count | Notes |")
    lines.append("| --- | ---: | --- |")
    lines.append(
        f"| Override candidates | {counts['override_candidates']} | {counts['confirmed_overrides']} confirmed |"
    )
    lines.append(f"| New entries | {counts['new_entries']} | missing locales filled per fallback policy |")
    lines.append(f"| Generated keys | {counts['generated_keys']} | rows without a usable key |")
    lines.append(f"| Mapping conflicts | {counts['mapping_conflicts']} | locales sharing one spreadsheet column |")
    lines.append("")
    lines.append(f"- Mode: {'preview (nothing written)' if report.dry_run else 'write'}")
    if report.write_blocked:
        lines.append("- Write status: blocked by mapping conflicts, fix the mapping and re-run")
    lines.append("")

    if report.conflicts:
        lines.append("### Mapping conflicts")
        for conflict in report.conflicts:
            lines.append(f"- column `{conflict.column}` <- locales: {', '.join(conflict.locales)}")
        lines.append("")

    lines.append("### Override candidates")
    if not report.override_candidates:
        lines.append("- none")
    else:
        for index, item in enumerate(report.override_candidates):
            marker = "[x]" if index in confirmed else "[ ]"
            lines.append(f"{index + 1}. {marker} `{item.key}` ({', '.join(item.changed_locales)})")
    lines.append("")

    lines.append("### New entries")
    if not report.new_entries:
        lines.append("- none")
    else:
        for key in sorted(report.new_entries):
            lines.append(f"- `{key}`")
    lines.append("")

    lines.append("### Generated keys")
    if not report.generated_keys:
        lines.append("- none")
    else:
        for item in report.generated_keys:
            suffix = f' (from "{item.from_key}")' if item.from_key else ""
            lines.append(f'- `{item.key}` from "{item.en}"{suffix}')

    return "\n".join(lines)
