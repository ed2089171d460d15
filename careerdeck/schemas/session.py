from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from careerdeck.schemas.career import AnalysisMode, GroundingUrl, InterviewPrepData, JobCardData

ViewStateName = Literal["IDLE", "ANALYZING", "RESULTS", "ERROR"]


class InputView(BaseModel):
    resume_text: str
    city: str
    experience_level: str
    years_experience: str
    mode: AnalysisMode
    more_roles: bool
    has_image: bool
    image_mime_type: str | None = None
    image_preview: str | None = None
    resume_length: int = Field(ge=0)
    max_resume_length: int = Field(ge=1)
    truncation_notice: bool = False


class PanelContentView(BaseModel):
    status: Literal["empty", "loading", "ready", "error"]
    error: str | None = None


class InterviewPrepPanelView(PanelContentView):
    data: InterviewPrepData | None = None


class CoverLetterPanelView(PanelContentView):
    data: str | None = None


class CardView(BaseModel):
    index: int = Field(ge=0)
    expanded: bool
    panel: Literal["closed", "interview_prep", "cover_letter"]
    card: JobCardData
    linkedin_search_url: str
    interview_prep: InterviewPrepPanelView
    cover_letter: CoverLetterPanelView


class AuditView(BaseModel):
    ats_compatibility_score: int
    displayed_score: int
    revealing: bool
    score_label: str
    formatting_issues: list[str]
    content_improvements: list[str]
    key_strengths: list[str]


class SortView(BaseModel):
    key: Literal["match", "demand"]
    order: Literal["asc", "desc"]


class SessionView(BaseModel):
    session_id: str
    state: ViewStateName
    generation: int
    error_message: str = ""
    loading_message: str | None = None
    extracting: bool = False
    autofilling: bool = False
    theme: Literal["light", "dark"] = "light"
    user_email: str | None = None
    input: InputView
    query_params: dict[str, str] = Field(default_factory=dict)
    sort: SortView
    active_tab: Literal["jobs", "resume"] = "jobs"
    summary_of_profile: str = ""
    overall_advice: str = ""
    disclaimer: str = ""
    grounding_urls: list[GroundingUrl] = Field(default_factory=list)
    demand_mix: dict[str, dict[str, Any]] = Field(default_factory=dict)
    cards: list[CardView] = Field(default_factory=list)
    resume_audit: AuditView | None = None


class InputUpdateRequest(BaseModel):
    resume_text: str | None = None
    city: str | None = Field(default=None, max_length=120)
    experience_level: str | None = Field(default=None, max_length=40)
    years_experience: str | None = Field(default=None, max_length=20)
    mode: AnalysisMode | None = None
    more_roles: bool | None = None


class SortRequest(BaseModel):
    key: Literal["match", "demand"] = "match"
    order: Literal["asc", "desc"] = "desc"


class TabRequest(BaseModel):
    tab: Literal["jobs", "resume"]


class UploadResponse(BaseModel):
    kind: Literal["image", "pdf", "text"]
    characters: int = Field(ge=0)
    truncated: bool
    autofill_started: bool
    session: SessionView


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)


class ThemeRequest(BaseModel):
    theme: Literal["light", "dark"]


class ThemeResponse(BaseModel):
    theme: Literal["light", "dark"]
