"""Pydantic models for the link matrix."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Document(BaseModel):
    """A linkable document at a fixed position in the shared ordering."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    path: str
    display_name: str


class FolderSquare(BaseModel):
    """Contiguous run of documents sharing a folder prefix at ``depth``."""
    model_config = ConfigDict(frozen=True)

    depth: int = Field(ge=1)
    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "FolderSquare":
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")
        return self

    @property
    def size(self) -> int:
        return self.end - self.start + 1


# --- Interaction ---


class PointerButton(str, Enum):
    NONE = "none"
    PRIMARY = "primary"
    SECONDARY = "secondary"


class PointerEvent(BaseModel):
    """Immutable snapshot of one pointer event, in screen coordinates."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    button: PointerButton = PointerButton.NONE
    primary_held: bool = False
    wheel_notches: float = 0.0
    timestamp: float = 0.0  # seconds, monotonic


class HoverState(BaseModel):
    model_config = ConfigDict(frozen=True)

    visible: bool
    label: str = ""
    source: int | None = None
    target: int | None = None
    tooltip_x: float = 0.0
    tooltip_y: float = 0.0

    @classmethod
    def hidden(cls) -> "HoverState":
        return cls(visible=False)


class NavigationRequest(BaseModel):
    """Request to open a document; always the source side of a link."""
    model_config = ConfigDict(frozen=True)

    document: Document
