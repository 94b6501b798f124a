"""Human-readable renderings of a scan verdict."""

from __future__ import annotations

from .models.verdict import ScanVerdict

RULE = "━" * 40


def render_text(verdict: ScanVerdict) -> str:
    """Return the final terminal report."""
    lines = [RULE]
    if verdict.malicious:
        lines.append("")
        lines.append("MALICIOUS PACKAGES DETECTED!")
        lines.append("")
        for finding in verdict.findings:
            lines.append(f"• {finding.spec}")
            lines.append(f"  Location: {finding.manifest}")
            lines.append(f"  {finding.advisory_id}: {finding.summary}")
        lines.append("")
        lines.append("Remove these packages immediately!")
    else:
        lines.append("")
        lines.append("All clear - no malicious packages found")

    if verdict.skipped:
        lines.append("")
        lines.append(f"{len(verdict.skipped)} manifest(s) could not be checked:")
        for skip in verdict.skipped:
            lines.append(f"- {skip.manifest}: {skip.reason}")

    return "\n".join(lines) + "\n"


def render_markdown(verdict: ScanVerdict) -> str:
    """Return a Markdown string with totals and a table of malicious packages."""
    totals = verdict.totals

    lines = []
    lines.append("# npm-malscan Summary")
    lines.append("")
    lines.append(
        f"Manifests scanned: {totals['manifests']} | Skipped: {totals['skipped']}"
        f" | Findings: {totals['findings']}"
    )
    lines.append("")
    lines.append("| Manifest | Package | Version | Advisory | Summary |")
    lines.append("| --- | --- | --- | --- | --- |")

    if not verdict.findings:
        lines.append("| (all manifests) | No malicious packages | n/a | n/a | n/a |")

    for finding in verdict.findings:
        summary = finding.summary.replace("|", "\\|")
        lines.append(
            f"| {finding.manifest} | {finding.package} | {finding.version}"
            f" | {finding.advisory_id} | {summary} |"
        )

    if verdict.skipped:
        lines.append("")
        lines.append("## Skipped manifests")
        lines.append("")
        for skip in verdict.skipped:
            lines.append(f"- `{skip.manifest}`: {skip.reason}")

    return "\n".join(lines) + "\n"
