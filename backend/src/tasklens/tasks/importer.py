"""Bulk task import from CSV."""

import csv
import io

from tasklens.tasks.schemas import TaskCreate

KNOWN_COLUMNS = ("name", "description", "tags", "category")
TAG_SEPARATOR = ";"


class CSVImportError(ValueError):
    """Raised when a CSV file cannot be imported at all."""

    pass


def parse_tasks_csv(text: str) -> tuple[list[TaskCreate], list[str]]:
    """Parse tasks from CSV text.

    The header must contain a ``name`` column; ``description``, ``tags``
    (semicolon separated) and ``category`` are optional. Blank lines and rows
    without a name are skipped.

    Args:
        text: CSV content including the header row.

    Returns:
        Tuple of (tasks to create, human-readable reasons for skipped rows).

    Raises:
        CSVImportError: If the header is missing or has no ``name`` column.
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise CSVImportError("CSV file is empty")

    reader.fieldnames = [column.strip().lower() for column in reader.fieldnames]
    if "name" not in reader.fieldnames:
        raise CSVImportError(f"CSV header must include a 'name' column, got: {reader.fieldnames}")

    tasks: list[TaskCreate] = []
    skipped: list[str] = []
    for row in reader:
        # Line 1 is the header
        line = reader.line_num
        values = {key: (row.get(key) or "").strip() for key in KNOWN_COLUMNS}
        if not any(values.values()):
            continue
        if not values["name"]:
            skipped.append(f"line {line}: missing name")
            continue

        tags = [tag.strip() for tag in values["tags"].split(TAG_SEPARATOR) if tag.strip()]
        tasks.append(
            TaskCreate(
                name=values["name"],
                description=values["description"] or None,
                tags=tags,
                category=values["category"],
            )
        )

    return tasks, skipped
