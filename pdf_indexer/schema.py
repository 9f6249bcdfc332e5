"""Pydantic models for indexing configuration and extraction results."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import ConfigurationError


class MethodId(str, Enum):
    """Closed set of extraction methods."""

    DISABLED = "disabled"
    PYMUPDF = "pymupdf"
    PDFTOTEXT = "pdftotext"

    @classmethod
    def parse(cls, value: str | MethodId | None) -> MethodId:
        if value is None or value == "":
            return cls.DISABLED
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unknown indexing method: {value!r}") from exc


# Legacy settings values (no / yes / yes_if) -> policy
_LEGACY_DISCARD_VALUES = {
    "no": "append",
    "yes": "discardAlways",
    "yes_if": "discardIfExtracted",
}


class DiscardPolicy(str, Enum):
    """How the builtin index value is combined with extracted text."""

    APPEND = "append"
    DISCARD_ALWAYS = "discardAlways"
    DISCARD_IF_EXTRACTED = "discardIfExtracted"

    @classmethod
    def parse(cls, value: str | DiscardPolicy | None) -> DiscardPolicy:
        if value is None or value == "":
            return cls.APPEND
        if isinstance(value, cls):
            return value
        raw = str(value).strip()
        raw = _LEGACY_DISCARD_VALUES.get(raw.lower(), raw)
        for member in cls:
            if member.value.lower() == raw.lower():
                return member
        raise ConfigurationError(f"Unknown discard policy: {value!r}")


class FailureReason(str, Enum):
    BACKEND_UNAVAILABLE = "backend_unavailable"
    TIMEOUT = "timeout"
    MEMORY_EXCEEDED = "memory_exceeded"
    BACKEND_ERROR = "backend_error"
    UNREADABLE = "unreadable"


class ExtractionMethod(BaseModel):
    """Capability descriptor for one extraction method."""

    model_config = ConfigDict(frozen=True)

    id: MethodId
    label: str
    enabled: bool
    in_process: bool = False
    notes: str | None = None


class IndexingConfig(BaseModel):
    """User-editable indexing settings."""

    file_extensions: str = "pdf"  # space separated, e.g. "pdf ai"
    indexing_method: MethodId = MethodId.DISABLED
    pymupdf_memory_limit: int | None = None  # bytes
    pdftotext_timeout: int | None = 60  # seconds, capped by host limit
    pdftotext_path: str | None = None
    pdftotext_options: List[str] = Field(default_factory=lambda: ["nopgbrk"])
    max_file_size: int | None = None  # bytes
    discard_builtin_index: DiscardPolicy = DiscardPolicy.APPEND

    @field_validator("indexing_method", mode="before")
    @classmethod
    def _parse_method(cls, value):
        return MethodId.parse(value)

    @field_validator("discard_builtin_index", mode="before")
    @classmethod
    def _parse_policy(cls, value):
        return DiscardPolicy.parse(value)

    @field_validator("pymupdf_memory_limit", "pdftotext_timeout", "max_file_size")
    @classmethod
    def _non_positive_is_unset(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            return None
        return value


class FileRef(BaseModel):
    """Reference to a document file supplied by the host indexer."""

    model_config = ConfigDict(frozen=True)

    path: Path
    ext: str
    size: int

    @classmethod
    def from_path(cls, path: str | Path) -> FileRef:
        file_path = Path(path)
        try:
            size = file_path.stat().st_size
        except OSError:
            size = 0
        return cls(path=file_path, ext=file_path.suffix.lstrip("."), size=size)


class ExtractionFailure(BaseModel):
    reason: FailureReason
    message: str = ""


class ExtractionResult(BaseModel):
    """Outcome of one extraction attempt: text or a classified failure."""

    text: str | None = None
    failure: ExtractionFailure | None = None

    @classmethod
    def ok(cls, text: str) -> ExtractionResult:
        return cls(text=text)

    @classmethod
    def failed(cls, reason: FailureReason, message: str = "") -> ExtractionResult:
        return cls(failure=ExtractionFailure(reason=reason, message=message))

    @property
    def succeeded(self) -> bool:
        return self.failure is None
