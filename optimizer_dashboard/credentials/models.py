"""
Result types for service account credential resolution.

Every resolution call produces exactly one of:
- CredentialSuccess: validated credential, project id and provenance label
- CredentialFailure: machine-readable kind plus operator-facing remediation

Design decisions:
- Failures are returned as data, never raised, so HTTP handlers can map
  them to responses without an extra catch layer
- Frozen pydantic models so a result cannot be altered after construction
- to_dict() mirrors the exception to_dict() used by the API error handlers
"""

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class CredentialErrorKind(str, Enum):
    """
    Failure taxonomy for credential resolution.

    Ordered roughly by how far the value got through the pipeline:
    - MISSING: no candidate source had any value
    - INVALID_ENCODING: base64 decoding was attempted and failed outright
    - INVALID_STRUCTURED_DATA: some decode path produced text that is not JSON
    - INVALID_SHAPE: parsed, but not an object or not a service account
    - MISSING_FIELDS: service account object without all mandatory keys
    """

    MISSING = "missing"
    INVALID_ENCODING = "invalid-encoding"
    INVALID_STRUCTURED_DATA = "invalid-structured-data"
    INVALID_SHAPE = "invalid-shape"
    MISSING_FIELDS = "missing-fields"


class FormatKind(str, Enum):
    """Classification of a raw credential string before decoding."""

    RAW_STRUCTURED = "raw-structured"
    URL_ENCODED = "url-encoded"
    BINARY_ENCODED = "binary-encoded"
    FILE_PATH = "file-path"
    PLAIN_TEXT = "plain-text"


class DecodeKind(str, Enum):
    """Decode path that produced a parsed payload."""

    RAW_STRUCTURED = "raw-structured"
    URL_DECODED = "url-decoded"
    BINARY_DECODED = "binary-decoded"


class DecodeAttempt(BaseModel):
    """Outcome of a single transformation tried by the decoder chain."""

    model_config = ConfigDict(frozen=True)

    path: DecodeKind
    succeeded: bool
    error: str | None = None
    decoded_length: int | None = None
    preview: str | None = None

    def describe(self) -> str:
        if self.succeeded:
            return f"{self.path.value}: parsed successfully"
        text = f"{self.path.value}: {self.error}"
        if self.decoded_length is not None:
            text += f" (decoded length {self.decoded_length})"
        return text


class CredentialSuccess(BaseModel):
    """Validated service account credential plus provenance."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    credentials: dict[str, Any]
    project_id: str
    source: str

    @property
    def client_email(self) -> str:
        return self.credentials["client_email"]

    def to_dict(self) -> dict[str, Any]:
        """Non-sensitive summary; never includes key material."""
        return {
            "success": True,
            "project_id": self.project_id,
            "source": self.source,
            "client_email": self.client_email,
        }


class CredentialFailure(BaseModel):
    """
    Resolution failure with everything an operator needs to fix it.

    Attributes:
        kind: Failure category (see CredentialErrorKind)
        message: One-line summary
        details: Which variable was checked and what went wrong
        remediation: Ordered, complete list of steps; never truncate
        source: Environment variable (or label) that produced the failure
        attempts: Decode paths tried, in order
    """

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    kind: CredentialErrorKind
    message: str
    details: str
    remediation: tuple[str, ...] = Field(default_factory=tuple)
    source: str | None = None
    attempts: tuple[DecodeAttempt, ...] = Field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": {
                "type": self.kind.value,
                "message": self.message,
                "details": self.details,
                "troubleshooting": list(self.remediation),
            },
            "source": self.source,
            "attempts": [attempt.describe() for attempt in self.attempts],
        }


ResolutionResult = Union[CredentialSuccess, CredentialFailure]
