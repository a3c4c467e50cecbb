"""Reporting helpers."""

from .console import DEFAULT_STYLE, PLAIN_STYLE, ConsoleStyle, format_event, format_message, format_summary

__all__ = [
    "ConsoleStyle",
    "DEFAULT_STYLE",
    "PLAIN_STYLE",
    "format_event",
    "format_message",
    "format_summary",
]
