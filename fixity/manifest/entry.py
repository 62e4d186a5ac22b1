"""
Manifest entry schema.

One record per file: enough to tell whether the file changed and what its
content digest was when last reconciled.
"""

from __future__ import annotations

from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fixity.core.json_canonical import canonical_json_dumps, canonical_json_loads


class EntryDecodeError(ValueError):
    """A manifest line is not a valid entry record."""

    pass


class ManifestEntry(BaseModel):
    """
    Integrity record for a single file.

    The record is encoded as one canonical JSON object per line. Encoding the
    whole record (instead of splitting on a delimiter) keeps filenames with
    spaces, quotes or newlines unambiguous.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    filename: str = Field(min_length=1, description="Name within the directory")
    size: int = Field(ge=0, description="Size in bytes")
    last_modified: int = Field(description="Modification time, epoch milliseconds")
    digest: str = Field(min_length=1, description="Content digest from the hash oracle")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode="json")

    def serialize(self) -> str:
        """Encode as a single manifest line, without the trailing newline."""
        return canonical_json_dumps(self.to_dict())

    @classmethod
    def deserialize(cls, line: str) -> ManifestEntry:
        """
        Decode a manifest line.

        Raises:
            EntryDecodeError: If the line is not JSON or not a valid record.
        """
        try:
            data = canonical_json_loads(line)
        except orjson.JSONDecodeError as e:
            raise EntryDecodeError(f"not a JSON record: {e}") from e

        if not isinstance(data, dict):
            raise EntryDecodeError(f"expected an object, got {type(data).__name__}")

        try:
            return cls.model_validate(data, strict=True)
        except ValidationError as e:
            raise EntryDecodeError(str(e)) from e
