"""
Module: resources

Purpose:
    Paper-level resources uploaded through the studio: global mark scheme
    PDFs, supplementary sheets (formula sheets) and topic schema CSVs.

Key Functions:
    - resource_key(): Storage key for a paper resource
    - schema_resource_key(): Storage key for an uploaded topic schema
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .files import FileRef

SCHEME_RESOURCE = "scheme"
SUPPLEMENTARY_RESOURCE = "supplementary"
SCHEMA_RESOURCE = "schema"
RESOURCE_TYPES = (SCHEME_RESOURCE, SUPPLEMENTARY_RESOURCE, SCHEMA_RESOURCE)


def resource_key(board: str, subject: str, year: int, paper: str, kind: str) -> str:
    """
    Build the storage key for a paper resource.

    Example:
        >>> resource_key("AQA", "PHYSICS", 2019, "P1", "scheme")
        'AQA-PHYSICS-2019-P1-scheme'
    """
    return f"{board}-{subject}-{year}-{paper}-{kind}"


def schema_resource_key(file_name: str) -> str:
    return f"SCHEMA-FILE-{file_name}"


@dataclass(frozen=True)
class Resource:
    """
    Uploaded paper resource.

    Attributes:
        key: Storage key (see resource_key / schema_resource_key)
        file_name: Original filename
        type: One of "scheme", "supplementary", "schema"
        board: Board code, "ALL" for schema uploads
        subject, year, paper: Paper coordinates, unset for schema uploads
        file: File contents, unset for schema uploads (the parsed topics are
            stored separately)
        page_count: Number of pages for PDF resources
    """
    key: str
    file_name: str
    type: str
    board: str
    subject: Optional[str] = None
    year: Optional[int] = None
    paper: Optional[str] = None
    file: Optional[FileRef] = None
    page_count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.type not in RESOURCE_TYPES:
            raise ValueError(f"type must be one of {RESOURCE_TYPES}: {self.type!r}")

    def to_dict(self) -> dict:
        d = {
            "file_name": self.file_name,
            "type": self.type,
            "board": self.board,
        }
        if self.subject is not None:
            d["subject"] = self.subject
        if self.year is not None:
            d["year"] = self.year
        if self.paper is not None:
            d["paper"] = self.paper
        if self.file is not None:
            d["file"] = self.file.to_dict()
        if self.page_count is not None:
            d["page_count"] = self.page_count
        return d

    @classmethod
    def from_dict(cls, key: str, data: dict) -> Resource:
        return cls(
            key=key,
            file_name=data.get("file_name", ""),
            type=data["type"],
            board=data.get("board", "ALL"),
            subject=data.get("subject"),
            year=data.get("year"),
            paper=data.get("paper"),
            file=FileRef.from_dict(data["file"]) if data.get("file") else None,
            page_count=data.get("page_count"),
        )
