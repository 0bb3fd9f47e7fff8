"""
Module: files

Purpose:
    Provides the FileRef dataclass - an immutable handle to one uploaded
    binary (question fragment, mark scheme fragment, PDF resource).
    Every staging component consumes FileRefs by name; only enrichment
    and commit ever look at the bytes.

Key Functions:
    - FileRef.from_path(): Read a file from disk
    - FileRef.from_data_url(): Decode a base64 data URL
    - FileRef.to_data_url(): Encode for JSON persistence
    - FileRef.to_dict() / FileRef.from_dict(): Serialization

Used By:
    - exam_atlas.staging: Pairing and staging rows
    - exam_atlas.core.models.records: Persisted question images
    - exam_atlas.services.attachments: Model attachments
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
from dataclasses import dataclass
from pathlib import Path

PDF_MIME = "application/pdf"
DEFAULT_IMAGE_MIME = "image/png"


@dataclass(frozen=True)
class FileRef:
    """
    Immutable handle to one uploaded file.

    Attributes:
        name: Original filename, e.g. "2.1-plus.png". Pairing rules match
            against this string only.
        data: Raw file bytes.

    Example:
        >>> ref = FileRef("m1.2.png", b"...")
        >>> ref.mime_type
        'image/png'
    """
    name: str
    data: bytes = b""

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return f"FileRef({self.name!r}, {len(self.data)} bytes)"

    @property
    def mime_type(self) -> str:
        """MIME type inferred from the filename suffix."""
        if self.name.lower().endswith(".pdf"):
            return PDF_MIME
        guessed, _ = mimetypes.guess_type(self.name)
        if guessed and guessed.startswith("image/"):
            return guessed
        return DEFAULT_IMAGE_MIME

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME

    @property
    def b64(self) -> str:
        """Base64 payload without a data URL header."""
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.b64}"

    @classmethod
    def from_path(cls, path: Path) -> FileRef:
        """
        Read a file from disk.

        Args:
            path: File to read

        Returns:
            FileRef named after the file's basename
        """
        path = Path(path)
        return cls(name=path.name, data=path.read_bytes())

    @classmethod
    def from_data_url(cls, name: str, value: str) -> FileRef:
        """
        Decode a base64 payload, with or without a ``data:...;base64,`` header.

        Raises:
            ValueError: If the payload is not valid base64
        """
        payload = value.split(",", 1)[1] if value.startswith("data:") and "," in value else value
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 payload for {name!r}: {e}") from e
        return cls(name=name, data=data)

    def to_dict(self) -> dict:
        return {"name": self.name, "data": self.to_data_url()}

    @classmethod
    def from_dict(cls, data: dict) -> FileRef:
        """
        Raises:
            ValueError: If the payload is not a ``{"name", "data"}`` object of
                strings, or the data is not valid base64
        """
        if not isinstance(data, dict):
            raise ValueError(f"File payload must be an object, got {type(data).__name__}")
        name = data.get("name", "")
        value = data.get("data", "")
        if not isinstance(name, str) or not isinstance(value, str):
            raise ValueError(f"File payload for {name!r} must have string 'name' and 'data'")
        return cls.from_data_url(name, value)
