from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator

_RESERVED_FILE_NAMES = {".", ".."}
_FORBIDDEN_NAME_CHARS = ("/", "\\", "\x00")


class DTOBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class FailureKind(StrEnum):
    NO_LOCATOR = "no_locator"
    MALFORMED_URL = "malformed_url"
    NETWORK_FAILURE = "network_failure"
    LOCAL_READ_FAILURE = "local_read_failure"
    LOCAL_WRITE_FAILURE = "local_write_failure"
    NOT_FOUND = "not_found"


class ImageSource(StrEnum):
    CACHE = "cache"
    NETWORK = "network"


class FetchOptions(DTOBase):
    """Per-call options for fetching, saving and deleting images.

    ``custom_file_name`` names the local file only when no remote URL is
    given; with a URL the cache key is always derived from the URL.
    """

    store_in_caches: bool = True
    allow_local_storage: bool = True
    custom_file_name: str | None = None

    @field_validator("custom_file_name")
    @classmethod
    def validate_custom_file_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            return None
        if any(char in normalized for char in _FORBIDDEN_NAME_CHARS) or (
            normalized in _RESERVED_FILE_NAMES
        ):
            raise ValueError("custom_file_name must be a single file name")
        return normalized


def resolve_options(options: FetchOptions | None) -> FetchOptions:
    return options if options is not None else FetchOptions()


@dataclass(slots=True, frozen=True)
class FetchOutcome:
    data: bytes | None
    source: ImageSource | None = None
    failure: FailureKind | None = None
    detail: str = ""
    stored: bool = False
    store_failure: str = ""

    @property
    def ok(self) -> bool:
        return self.data is not None

    @classmethod
    def failed(cls, failure: FailureKind, detail: str = "") -> FetchOutcome:
        return cls(data=None, failure=failure, detail=detail)


@dataclass(slots=True, frozen=True)
class OperationResult:
    ok: bool
    failure: FailureKind | None = None
    detail: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def succeeded(cls) -> OperationResult:
        return cls(ok=True)

    @classmethod
    def failed(cls, failure: FailureKind, detail: str = "") -> OperationResult:
        return cls(ok=False, failure=failure, detail=detail)
