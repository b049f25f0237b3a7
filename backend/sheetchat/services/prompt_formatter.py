"""Render a sheet grid as a Markdown table for AI prompts"""
from typing import Any, List, Optional

NO_DATA_SENTINEL = "No data available."


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _line(cells: List[Any]) -> str:
    return "| " + " | ".join(_cell(cell) for cell in cells) + " |\n"


def format_sheet_for_prompt(grid: Optional[List[List[Any]]]) -> str:
    """
    Convert a grid to a Markdown table

    Row 0 is the header and gets a "---" separator row beneath it. Rows are
    emitted as-is: ragged rows are not padded and "|" inside a cell is not
    escaped.

    Args:
        grid: Rows of cell values, or None

    Returns:
        Markdown table, or NO_DATA_SENTINEL for an empty grid
    """
    if not grid:
        return NO_DATA_SENTINEL

    header = grid[0]
    table = _line(header)
    table += _line(["---"] * len(header))
    for row in grid[1:]:
        table += _line(row)

    return table
