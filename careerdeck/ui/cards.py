from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Generic, Literal, Optional, TypeVar

from careerdeck.schemas.career import InterviewPrepData, JobCardData

PanelKind = Literal["interview_prep", "cover_letter"]
CardPanel = Literal["closed", "interview_prep", "cover_letter"]
ContentStatus = Literal["empty", "loading", "ready", "error"]

T = TypeVar("T")


def toggle_panel(current: CardPanel, requested: PanelKind) -> CardPanel:
    """Opening a panel closes the other one; requesting the open panel closes it."""
    if current == requested:
        return "closed"
    return requested


@dataclass(frozen=True)
class PanelContent(Generic[T]):
    status: ContentStatus = "empty"
    data: Optional[T] = None
    error: str | None = None

    @property
    def needs_fetch(self) -> bool:
        return self.status in ("empty", "error")

    def loading(self) -> "PanelContent[T]":
        return PanelContent(status="loading")

    def ready(self, data: T) -> "PanelContent[T]":
        return PanelContent(status="ready", data=data)

    def failed(self, message: str) -> "PanelContent[T]":
        return PanelContent(status="error", error=message)


@dataclass(frozen=True)
class CardView:
    index: int
    card: JobCardData
    panel: CardPanel = "closed"
    expanded: bool = False
    interview_prep: PanelContent[InterviewPrepData] = field(default_factory=PanelContent)
    cover_letter: PanelContent[str] = field(default_factory=PanelContent)

    def content_for(self, kind: PanelKind) -> PanelContent:
        return self.interview_prep if kind == "interview_prep" else self.cover_letter

    def with_panel(self, kind: PanelKind) -> "CardView":
        return replace(self, panel=toggle_panel(self.panel, kind))

    def with_content(self, kind: PanelKind, content: PanelContent) -> "CardView":
        if kind == "interview_prep":
            return replace(self, interview_prep=content)
        return replace(self, cover_letter=content)

    def toggled_expanded(self) -> "CardView":
        return replace(self, expanded=not self.expanded)
