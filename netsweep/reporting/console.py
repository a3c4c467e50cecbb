"""Terminal rendering of scan events as rich markup."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from rich.markup import escape

from ..core.models import ScanEvent, ScanSummary, Severity, Verdict


@dataclass(frozen=True)
class ConsoleStyle:
    """Colors and tags used when rendering events."""

    severity_styles: Mapping[Severity, str] = field(
        default_factory=lambda: {
            Severity.INFO: "cyan",
            Severity.WARNING: "bold yellow",
            Severity.FATAL: "bold red",
        }
    )
    verdict_styles: Mapping[Verdict, str] = field(
        default_factory=lambda: {
            Verdict.ALIVE: "bold green",
            Verdict.OPEN: "bold green",
            Verdict.DOWN: "red",
            Verdict.CLOSED: "red",
            Verdict.UNKNOWN: "yellow",
        }
    )
    tags: Mapping[Severity, str] = field(
        default_factory=lambda: {
            Severity.INFO: "[*]",
            Severity.WARNING: "[!]",
            Severity.FATAL: "[x]",
        }
    )
    positive_tag: str = "[+]"
    negative_tag: str = "[-]"
    color: bool = True


DEFAULT_STYLE = ConsoleStyle()
PLAIN_STYLE = ConsoleStyle(color=False)

_VERDICT_LABELS = {
    Verdict.ALIVE: "is alive",
    Verdict.DOWN: "is down",
    Verdict.OPEN: "open",
    Verdict.CLOSED: "closed",
    Verdict.UNKNOWN: "closed or filtered",
}


def _paint(text: str, style_name: str | None, style: ConsoleStyle) -> str:
    text = escape(text)
    if not style.color or not style_name:
        return text
    return f"[{style_name}]{text}[/{style_name}]"


def format_message(level: Severity, message: str, style: ConsoleStyle = DEFAULT_STYLE) -> str:
    """Render a tagged line for ``level``; the result is rich markup."""

    tag = style.tags.get(level, "[*]")
    return f"{_paint(tag, style.severity_styles.get(level), style)} {escape(message)}"


def format_event(event: ScanEvent, style: ConsoleStyle = DEFAULT_STYLE) -> str:
    result = event.result
    if result is None:
        return format_message(event.severity, event.message, style)
    tag = style.positive_tag if result.is_positive else style.negative_tag
    verdict_style = style.verdict_styles.get(result.verdict)
    if result.port is None:
        line = f"Host {escape(result.address)} {_paint(_VERDICT_LABELS[result.verdict], verdict_style, style)}"
    else:
        line = (
            f"{escape(result.address)} {result.protocol.value.upper()} port {result.port} "
            f"{_paint(_VERDICT_LABELS[result.verdict], verdict_style, style)}"
        )
    return f"{_paint(tag, verdict_style, style)} {line}"


def format_summary(summary: ScanSummary, style: ConsoleStyle = DEFAULT_STYLE) -> str:
    parts = [
        f"{verdict.value.lower()}: {count}"
        for verdict, count in summary.counts.items()
        if count
    ]
    breakdown = f" ({', '.join(parts)})" if parts else ""
    message = f"{summary.total} probe(s) in {summary.duration:.2f}s{breakdown}"
    return format_message(Severity.INFO, message, style)


__all__ = [
    "ConsoleStyle",
    "DEFAULT_STYLE",
    "PLAIN_STYLE",
    "format_event",
    "format_message",
    "format_summary",
]
