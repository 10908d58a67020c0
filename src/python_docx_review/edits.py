"""
Edit request types and edit-file loading.

Edits address one paragraph by index and name literal text inside it. They
can be built directly, from dictionaries (snake_case or the camelCase keys
produced by review models), from a grouped review payload, or loaded from a
YAML or JSON file.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import EditValidationError

logger = logging.getLogger(__name__)


@dataclass
class Deletion:
    """Strike `original_text` from a paragraph as a tracked deletion."""

    paragraph_index: int
    original_text: str
    reason: str | None = None

    edit_type = "delete"


@dataclass
class Insertion:
    """Insert `new_text` right after `after_text` as a tracked insertion.

    An empty `after_text` inserts at the start of the paragraph.
    """

    paragraph_index: int
    after_text: str
    new_text: str
    reason: str | None = None

    edit_type = "insert"


@dataclass
class Replacement:
    """Replace `original_text` with `new_text` as a deletion plus an insertion."""

    paragraph_index: int
    original_text: str
    new_text: str
    reason: str | None = None

    edit_type = "replace"


@dataclass
class Comment:
    """Attach a comment to `target_text`."""

    paragraph_index: int
    target_text: str
    comment_body: str

    edit_type = "comment"

    @property
    def reason(self) -> None:
        return None


Edit = Deletion | Insertion | Replacement | Comment

EDIT_TYPES: dict[str, type] = {
    "delete": Deletion,
    "deletion": Deletion,
    "insert": Insertion,
    "insertion": Insertion,
    "replace": Replacement,
    "replacement": Replacement,
    "comment": Comment,
}

# camelCase payload keys -> dataclass field names
_KEY_ALIASES = {
    "paragraphIndex": "paragraph_index",
    "originalText": "original_text",
    "afterText": "after_text",
    "newText": "new_text",
    "targetText": "target_text",
    "comment": "comment_body",
    "commentBody": "comment_body",
    "body": "comment_body",
}

# Keys of the grouped review form, in the order edits are applied
GROUP_ORDER = (
    ("replacements", Replacement),
    ("deletions", Deletion),
    ("insertions", Insertion),
    ("comments", Comment),
)


def _build_edit(edit_class: type, data: dict[str, Any], where: str) -> Edit:
    """Create an edit of a given class from a payload dictionary."""
    fields = {}
    for key, value in data.items():
        if key == "type":
            continue
        fields[_KEY_ALIASES.get(key, key)] = value

    required = {
        Deletion: ("paragraph_index", "original_text"),
        Insertion: ("paragraph_index", "after_text", "new_text"),
        Replacement: ("paragraph_index", "original_text", "new_text"),
        Comment: ("paragraph_index", "target_text", "comment_body"),
    }[edit_class]
    allowed = set(edit_class.__dataclass_fields__)

    missing = [name for name in required if fields.get(name) is None]
    if missing:
        raise EditValidationError(f"{where}: missing required field(s): {', '.join(missing)}")

    index = fields["paragraph_index"]
    if isinstance(index, bool) or not isinstance(index, int):
        try:
            index = int(index)
        except (TypeError, ValueError) as e:
            raise EditValidationError(
                f"{where}: paragraph index must be an integer, got {fields['paragraph_index']!r}"
            ) from e
    fields["paragraph_index"] = index

    for name in required[1:]:
        if not isinstance(fields[name], str):
            raise EditValidationError(f"{where}: '{name}' must be a string")

    unknown = set(fields) - allowed
    if unknown:
        logger.debug(f"{where}: ignoring unknown field(s) {sorted(unknown)}")

    return edit_class(**{k: v for k, v in fields.items() if k in allowed})


def edit_from_dict(data: dict[str, Any]) -> Edit:
    """Create an edit from a dictionary with a 'type' key.

    Example:
        >>> edit_from_dict({"type": "replace", "paragraphIndex": 2,
        ...                 "originalText": "30 days", "newText": "60 days"})
        Replacement(paragraph_index=2, original_text='30 days', new_text='60 days', reason=None)

    Raises:
        EditValidationError: If the type is unknown or a required field is missing
    """
    if not isinstance(data, dict):
        raise EditValidationError(f"Edit must be a dictionary, got {type(data).__name__}")

    edit_type = data.get("type")
    if not edit_type:
        raise EditValidationError("Edit is missing the 'type' field")

    edit_class = EDIT_TYPES.get(str(edit_type).lower())
    if edit_class is None:
        raise EditValidationError(
            f"Unknown edit type: {edit_type!r} (expected one of: delete, insert, replace, comment)"
        )

    return _build_edit(edit_class, data, f"{edit_type} edit")


@dataclass
class ReviewEdits:
    """A batch of edits in the grouped review form.

    Attributes:
        deletions: Tracked deletions
        insertions: Tracked insertions
        replacements: Tracked replacements
        comments: Comments
        summary: Free-text summary of the review (never written to the document)
    """

    deletions: list[Deletion] = field(default_factory=list)
    insertions: list[Insertion] = field(default_factory=list)
    replacements: list[Replacement] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    summary: str = ""

    def ordered(self) -> list[Edit]:
        """Flatten the groups: replacements, deletions, insertions, then comments."""
        return [*self.replacements, *self.deletions, *self.insertions, *self.comments]

    def __len__(self) -> int:
        return (
            len(self.deletions) + len(self.insertions) + len(self.replacements) + len(self.comments)
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReviewEdits:
        """Build from the grouped form.

        Missing or non-list groups are treated as empty.

        Raises:
            EditValidationError: If an entry in a group is malformed
        """
        if not isinstance(data, dict):
            raise EditValidationError("Review edits must be a dictionary/object")

        groups: dict[str, list[Edit]] = {}
        for key, edit_class in GROUP_ORDER:
            entries = data.get(key)
            if not isinstance(entries, list):
                entries = []
            built = []
            for i, entry in enumerate(entries):
                if not isinstance(entry, dict):
                    raise EditValidationError(f"{key}[{i}]: entry must be a dictionary/object")
                built.append(_build_edit(edit_class, entry, f"{key}[{i}]"))
            groups[key] = built

        summary = data.get("summary") or ""
        return cls(summary=str(summary), **groups)

    @classmethod
    def from_json(cls, text: str) -> ReviewEdits:
        """Extract and parse the JSON object embedded in a model response.

        The outermost {...} is used. If it does not parse, trailing commas
        are removed and raw newlines, carriage returns and tabs inside string
        values are escaped before a second attempt.

        Raises:
            EditValidationError: If no object is found or it cannot be repaired
        """
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            raise EditValidationError("No JSON object found in response")

        candidate = match.group(0)
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            logger.debug("Response JSON did not parse, attempting repair")
            try:
                data = json.loads(repair_json(candidate))
            except json.JSONDecodeError as e:
                raise EditValidationError(f"Could not parse JSON in response: {e}") from e

        return cls.from_dict(data)


def repair_json(text: str) -> str:
    """Fix the two mistakes models make most often in JSON output.

    - trailing commas before a closing bracket or brace
    - raw control characters inside string values
    """
    text = re.sub(r",\s*([\]}])", r"\1", text)

    def escape(match: re.Match[str]) -> str:
        return (
            match.group(0).replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
        )

    return re.sub(r'"(?:[^"\\]|\\.)*"', escape, text, flags=re.DOTALL)


def load_edit_file(path: str | Path) -> list[Edit]:
    """Load edits from a YAML or JSON file.

    The format is chosen by suffix (.json is JSON, anything else YAML). The
    file may hold either an 'edits' list of typed edit dictionaries, or the
    grouped review form (deletions/insertions/replacements/comments).

    Example YAML file:
        ```yaml
        edits:
          - type: replace
            paragraph_index: 3
            original_text: "thirty (30) days"
            new_text: "sixty (60) days"
            reason: "Align with master agreement"
          - type: comment
            paragraph_index: 5
            target_text: "Licensee"
            comment_body: "Define this term."
        ```

    Returns:
        Edits in the order they should be applied

    Raises:
        EditValidationError: If the file cannot be parsed or has an invalid layout
        FileNotFoundError: If the file does not exist
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Edit file not found: {path}")

    try:
        with open(file_path, encoding="utf-8") as f:
            if file_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise EditValidationError(f"Failed to parse YAML file: {e}") from e
    except json.JSONDecodeError as e:
        raise EditValidationError(f"Failed to parse JSON file: {e}") from e

    if not isinstance(data, dict):
        raise EditValidationError("Edit file must contain a dictionary/object")

    if "edits" in data:
        edits = data["edits"]
        if not isinstance(edits, list):
            raise EditValidationError("'edits' must be a list")
        return [edit_from_dict(edit) for edit in edits]

    if any(key in data for key, _ in GROUP_ORDER):
        return ReviewEdits.from_dict(data).ordered()

    raise EditValidationError(
        "Edit file must contain an 'edits' list or deletions/insertions/replacements/comments"
    )
