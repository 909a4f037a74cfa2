"""
Markdown rendering of an analysis result.
"""

from microphenom.core.models import AnalysisResult
from microphenom.core.utils import format_duration


def _cell(text: str) -> str:
    """Make text safe inside a Markdown table cell."""
    return " ".join(text.split()).replace("|", "\\|")


def _bullets(items) -> list[str]:
    return [f"- {item}" for item in items] or ["_None._"]


def render_markdown(
    result: AnalysisResult,
    title: str = "Interview Analysis",
    duration_seconds: int | None = None,
) -> str:
    """Render a result as a Markdown report.

    Args:
        result: The validated analysis.
        title: Top-level heading.
        duration_seconds: Recording length, shown under the title if given.

    Returns:
        The report text, ending with a newline.
    """
    lines = [f"# {title}", ""]
    if duration_seconds is not None:
        lines += [f"Duration: {format_duration(duration_seconds)}", ""]

    lines += ["## Summary", "", result.summary or "_No summary._", ""]

    lines += ["## Diachronic Structure", ""]
    if result.diachronic_structure:
        for i, phase in enumerate(result.diachronic_structure, start=1):
            when = f" ({phase.timestamp_estimate})" if phase.timestamp_estimate else ""
            lines.append(f"{i}. **{phase.phase}**{when}: {phase.description}")
    else:
        lines.append("_None._")
    lines.append("")

    lines += ["## Synchronic Structure", ""]
    if result.synchronic_structure:
        lines += ["| Modality | Submodality | Description |", "|---|---|---|"]
        for entry in result.synchronic_structure:
            cells = (entry.modality, entry.submodality, entry.description)
            lines.append("| " + " | ".join(_cell(c) for c in cells) + " |")
    else:
        lines.append("_None._")
    lines.append("")

    lines += ["## Satellites", "", *_bullets(result.satellites), ""]
    lines += ["## Suggested Follow-up Questions", "", *_bullets(result.suggestions), ""]

    lines += ["## Transcript", ""]
    if result.transcript_segments:
        for seg in result.transcript_segments:
            lines.append(f"**[{seg.timestamp}] {seg.speaker}:** {seg.text}")
            lines.append("")
    else:
        lines += ["_Empty transcript._", ""]

    return "\n".join(lines).rstrip() + "\n"
