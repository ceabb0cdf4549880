"""
Rule Set Schema

Rule-set artifacts are typed rule tables stored as JSON documents. This module
parses and validates them (parse-or-fail), serializes them deterministically,
and applies structured patches.
"""

import copy
import json
import re
from dataclasses import dataclass, field

from rule_tuner.domain.value_objects import RulePatch

TABLE_KINDS = ("keywords", "patterns", "thresholds")

REQUIRED_FIELDS = ["artifact_id", "kind", "version", "entries"]

_VALID_PATTERN_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


class ArtifactValidationError(ValueError):
    """Artifact content does not satisfy its schema"""

    def __init__(self, artifact_id: str | None, reason: str):
        label = artifact_id or "<unknown artifact>"
        super().__init__(f"{label}: {reason}")
        self.artifact_id = artifact_id
        self.reason = reason


@dataclass
class RuleTable:
    """Typed rule table (one artifact)"""
    artifact_id: str
    kind: str
    version: int
    entries: list[dict]
    description: str = ""

    def to_dict(self) -> dict:
        data = {
            "artifact_id": self.artifact_id,
            "kind": self.kind,
            "version": self.version,
        }
        if self.description:
            data["description"] = self.description
        data["entries"] = self.entries
        return data

    def keys(self) -> set:
        return {row_key(self.kind, row) for row in self.entries}

    def keywords(self, label: str | None = None) -> list[str]:
        """Keywords in table order, optionally restricted to one label"""
        return [
            row["keyword"]
            for row in self.entries
            if label is None or row.get("label") == label
        ]

    def labels(self) -> list[str]:
        """Distinct labels in first-seen order"""
        seen: list[str] = []
        for row in self.entries:
            label = row.get("label")
            if label and label not in seen:
                seen.append(label)
        return seen

    def threshold(self, name: str, default: float | None = None) -> float | None:
        for row in self.entries:
            if row.get("name") == name:
                return row["value"]
        return default

    def compiled_patterns(self) -> list[re.Pattern]:
        return [
            re.compile(row["pattern"], _pattern_flags(row.get("flags", "")))
            for row in self.entries
        ]


def row_key(kind: str, row: dict, artifact_id: str | None = None) -> tuple:
    """
    Uniqueness key of a row for the given table kind

    Raises:
        ArtifactValidationError: If the row is not an object or lacks the key field
    """
    if not isinstance(row, dict):
        raise ArtifactValidationError(artifact_id, f"row {row!r} is not an object")
    field_name = {"keywords": "keyword", "patterns": "pattern"}.get(kind, "name")
    if field_name not in row:
        raise ArtifactValidationError(artifact_id, f"row {row!r} has no {field_name}")
    if kind == "keywords":
        return (str(row.get("label", "")).lower(), str(row["keyword"]).lower())
    return (row[field_name],)


def _pattern_flags(flags: str) -> int:
    value = 0
    for ch in flags:
        value |= _VALID_PATTERN_FLAGS[ch]
    return value


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_row(artifact_id: str, kind: str, index: int, row) -> None:
    where = f"entry {index}"
    if not isinstance(row, dict):
        raise ArtifactValidationError(artifact_id, f"{where} is not an object")

    if kind == "keywords":
        keyword = row.get("keyword")
        if not isinstance(keyword, str) or not keyword.strip():
            raise ArtifactValidationError(artifact_id, f"{where} has no keyword")
        if "label" in row and not isinstance(row["label"], str):
            raise ArtifactValidationError(artifact_id, f"{where} label must be a string")

    elif kind == "patterns":
        pattern = row.get("pattern")
        if not isinstance(pattern, str) or not pattern:
            raise ArtifactValidationError(artifact_id, f"{where} has no pattern")
        flags = row.get("flags", "")
        if not isinstance(flags, str) or any(ch not in _VALID_PATTERN_FLAGS for ch in flags):
            raise ArtifactValidationError(artifact_id, f"{where} has invalid flags: {flags!r}")
        try:
            re.compile(pattern, _pattern_flags(flags))
        except re.error as e:
            raise ArtifactValidationError(
                artifact_id, f"{where} pattern {pattern!r} does not compile: {e}"
            )

    elif kind == "thresholds":
        name = row.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ArtifactValidationError(artifact_id, f"{where} has no name")
        value = row.get("value")
        if not _is_number(value):
            raise ArtifactValidationError(artifact_id, f"{where} ({name}) value must be a number")
        for bound in ("min", "max"):
            if bound in row and not _is_number(row[bound]):
                raise ArtifactValidationError(artifact_id, f"{where} ({name}) {bound} must be a number")
        if "min" in row and value < row["min"]:
            raise ArtifactValidationError(artifact_id, f"{where} ({name}) value {value} is below min {row['min']}")
        if "max" in row and value > row["max"]:
            raise ArtifactValidationError(artifact_id, f"{where} ({name}) value {value} is above max {row['max']}")


def validate_rule_table(table: RuleTable) -> None:
    """
    Structural validity check on an in-memory rule table

    Raises:
        ArtifactValidationError: If the table violates its schema
    """
    artifact_id = table.artifact_id
    if not isinstance(artifact_id, str) or not artifact_id:
        raise ArtifactValidationError(None, "artifact_id must be a non-empty string")
    if table.kind not in TABLE_KINDS:
        raise ArtifactValidationError(
            artifact_id, f"unknown kind {table.kind!r} (available: {list(TABLE_KINDS)})"
        )
    if not isinstance(table.version, int) or isinstance(table.version, bool) or table.version < 1:
        raise ArtifactValidationError(artifact_id, f"version must be a positive integer, got {table.version!r}")
    if not isinstance(table.entries, list):
        raise ArtifactValidationError(artifact_id, "entries must be a list")
    if not table.entries:
        raise ArtifactValidationError(artifact_id, "table has no entries")

    seen: set = set()
    for index, row in enumerate(table.entries):
        _validate_row(artifact_id, table.kind, index, row)
        key = row_key(table.kind, row)
        if key in seen:
            raise ArtifactValidationError(artifact_id, f"entry {index} duplicates key {key}")
        seen.add(key)


def parse_rule_table(content: bytes, artifact_id: str | None = None) -> RuleTable:
    """
    Parse artifact content into a RuleTable (parse-or-fail)

    Args:
        content: Raw artifact bytes (UTF-8 JSON)
        artifact_id: Expected artifact ID (checked against the document when given)

    Returns:
        RuleTable: Validated rule table

    Raises:
        ArtifactValidationError: If the content does not decode or violates the schema
    """
    try:
        data = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ArtifactValidationError(artifact_id, f"content is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise ArtifactValidationError(artifact_id, "content is not a JSON object")

    for field_name in REQUIRED_FIELDS:
        if field_name not in data:
            raise ArtifactValidationError(artifact_id, f"required field '{field_name}' is missing")

    if artifact_id is not None and data["artifact_id"] != artifact_id:
        raise ArtifactValidationError(
            artifact_id, f"document declares artifact_id {data['artifact_id']!r}"
        )

    table = RuleTable(
        artifact_id=data["artifact_id"],
        kind=data["kind"],
        version=data["version"],
        entries=data["entries"],
        description=data.get("description", ""),
    )
    validate_rule_table(table)
    return table


def serialize_rule_table(table: RuleTable) -> bytes:
    """Deterministic JSON encoding of a rule table"""
    return (json.dumps(table.to_dict(), indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def _matches(row: dict, match: dict) -> bool:
    return all(row.get(k) == v for k, v in match.items())


def _apply_change(row: dict, field_name: str, change) -> None:
    if isinstance(change, dict) and "delta" in change:
        current = row.get(field_name)
        if not _is_number(current):
            raise ArtifactValidationError(None, f"cannot apply delta to non-numeric field '{field_name}'")
        if not _is_number(change["delta"]):
            raise ArtifactValidationError(None, f"delta for '{field_name}' must be a number, got {change['delta']!r}")
        value = current + change["delta"]
        if "min" in row:
            value = max(row["min"], value)
        if "max" in row:
            value = min(row["max"], value)
        if isinstance(current, int) and isinstance(change["delta"], int):
            row[field_name] = int(value)
        else:
            row[field_name] = round(value, 6)
    else:
        row[field_name] = change


def apply_patch(table: RuleTable, patch: RulePatch) -> RuleTable:
    """
    Apply a structured patch and return a new table

    The input table is never modified. The version is bumped when entries change.
    The result is NOT validated here; callers run validate_rule_table on it.

    Args:
        table: Current rule table
        patch: Structured edit

    Returns:
        RuleTable: New rule table
    """
    entries = copy.deepcopy(table.entries)

    if patch.op == "insert":
        existing = {row_key(table.kind, row) for row in entries if isinstance(row, dict)}
        for row in patch.rows:
            key = row_key(table.kind, row, table.artifact_id)
            new_row = dict(row)
            if key in existing:
                continue
            entries.append(new_row)
            existing.add(key)

    elif patch.op == "update":
        for row in entries:
            if _matches(row, patch.match):
                for field_name, change in patch.changes.items():
                    _apply_change(row, field_name, change)

    elif patch.op == "delete":
        doomed = {row_key(table.kind, row, table.artifact_id) for row in patch.rows}
        entries = [
            row for row in entries
            if not (patch.match and _matches(row, patch.match))
            and row_key(table.kind, row, table.artifact_id) not in doomed
        ]

    changed = entries != table.entries
    return RuleTable(
        artifact_id=table.artifact_id,
        kind=table.kind,
        version=table.version + 1 if changed else table.version,
        entries=entries,
        description=table.description,
    )
