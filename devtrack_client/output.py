"""
Output formatting utilities for the devtrack CLI tool.

This module provides consistent output formatting across all CLI commands,
supporting table, JSON, and YAML formats.
"""

import json
import sys
from typing import Any, Dict, List, Optional, Sequence

import yaml
from pydantic import BaseModel
from tabulate import tabulate  # type: ignore[import-untyped]

COLORS = {
    "green": "\033[32m",
    "red": "\033[31m",
    "yellow": "\033[33m",
    "dim": "\033[2m",
}
RESET = "\033[0m"

STATUS_GLYPHS = {
    "SUCCESS": ("✓", "green"),
    "FAILURE": ("✗", "red"),
}
UNKNOWN_STATUS = ("?", "yellow")


def colorize(text: str, color: str, enabled: Optional[bool] = None) -> str:
    """Wrap ``text`` in an ANSI color when stdout is a terminal."""
    if enabled is None:
        enabled = sys.stdout.isatty()
    if not enabled or color not in COLORS:
        return text
    return f"{COLORS[color]}{text}{RESET}"


def status_glyph(status: Optional[str], colors: Optional[bool] = None) -> str:
    glyph, color = STATUS_GLYPHS.get(status or "", UNKNOWN_STATUS)
    return colorize(glyph, color, colors)


def to_plain(data: Any) -> Any:
    """Convert models (and containers of them) into JSON-compatible data."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(data, (list, tuple)):
        return [to_plain(item) for item in data]
    if isinstance(data, dict):
        return {key: to_plain(value) for key, value in data.items()}
    return data


class OutputFormatterImpl:
    """Renders command results as table, JSON or YAML."""

    def format_table(self, data: List[Dict[str, Any]], columns: Optional[List[str]] = None) -> str:
        """
        Format data as a table using tabulate.

        Args:
            data: List of dictionaries to format
            columns: Optional list of column names to include (defaults to all keys)

        Returns:
            Formatted table string
        """
        if not data:
            return "No data available."

        if columns is None:
            columns = list(data[0].keys())

        table_data = []
        for item in data:
            row = []
            for col in columns:
                value = item.get(col)
                if value is None:
                    row.append("")
                elif isinstance(value, (dict, list)):
                    row.append(json.dumps(value))
                else:
                    row.append(str(value))
            table_data.append(row)

        result: str = tabulate(table_data, headers=columns, tablefmt="simple")
        return result

    def format_rows(self, rows: Sequence[Sequence[Any]], headers: Sequence[str]) -> str:
        """Format prebuilt rows, keeping embedded newlines as multi-line cells."""
        if not rows:
            return "No data available."
        result: str = tabulate(rows, headers=headers, tablefmt="plain")
        return result

    def format_json(self, data: Any) -> str:
        if data is None:
            return "{}"
        return json.dumps(to_plain(data), indent=2, default=str, ensure_ascii=False)

    def format_yaml(self, data: Any) -> str:
        if data is None:
            return "{}"
        return yaml.safe_dump(
            to_plain(data), default_flow_style=False, sort_keys=False, allow_unicode=True
        )

    def format_output(self, data: Any, format: str, columns: Optional[List[str]] = None) -> str:
        """
        Format output based on format string.

        Args:
            data: Data to format
            format: Output format ('table', 'json', or 'yaml')
            columns: Optional list of columns for table format

        Returns:
            Formatted output string

        Raises:
            ValueError: If format is not recognized
        """
        format = format.lower()

        if format == "json":
            return self.format_json(data)
        elif format == "yaml":
            return self.format_yaml(data)
        elif format == "table":
            plain = to_plain(data)
            if isinstance(plain, dict):
                plain = [{"key": k, "value": v} for k, v in plain.items()]
                columns = columns or ["key", "value"]
            elif not isinstance(plain, list):
                plain = [{"value": plain}]
            return self.format_table(plain, columns)
        else:
            raise ValueError(f"Unknown format: {format}. Use 'table', 'json', or 'yaml'.")


# Create default instance for easy importing
formatter = OutputFormatterImpl()
