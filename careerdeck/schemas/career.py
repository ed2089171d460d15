from __future__ import annotations

from typing import Any, Literal
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator

AnalysisMode = Literal["fast", "search", "deep"]
DemandLevel = Literal["High", "Medium", "Low"]
QuestionType = Literal["Technical", "Behavioral"]

FORM_EXPERIENCE_LEVELS: dict[str, str] = {
    "student": "Student / Intern",
    "fresher": "Fresher (0-1 Years)",
    "early-career": "Early Career (1-3 Years)",
    "mid-career": "Mid Career (3-5 Years)",
    "career-switcher": "Career Switcher",
}
EXTRACTED_EXPERIENCE_LEVELS = (
    "student",
    "fresher",
    "1-3_years",
    "3-5_years",
    "5_plus_years",
    "career-switcher",
)
DEFAULT_EXPERIENCE_LEVEL = "fresher"
DEMAND_ORDINALS: dict[str, int] = {"High": 3, "Medium": 2, "Low": 1}


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _clamp_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, score))


class UserInput(BaseModel):
    resume_text: str = ""
    city: str = ""
    experience_level: str = DEFAULT_EXPERIENCE_LEVEL
    years_experience: str = ""
    mode: AnalysisMode = "fast"
    more_roles: bool = False
    image_data: str | None = None
    image_mime_type: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_data and self.image_mime_type)

    def is_submittable(self) -> bool:
        return bool(self.resume_text.strip()) or self.has_image


class GroundingUrl(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    title: str | None = None


class JobCardData(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_title: str = ""
    demand_level: DemandLevel = "Medium"
    match_score: int = Field(default=0, ge=0, le=100)
    experience_target: str = ""
    why_it_matches: str = ""
    what_you_do_in_this_job: list[str] = Field(default_factory=list)
    skills_you_already_have: list[str] = Field(default_factory=list)
    skills_to_build_next: list[str] = Field(default_factory=list)
    first_steps_to_get_started: list[str] = Field(default_factory=list)
    estimated_salary_expectation: str = ""
    recommended_certifications: list[str] = Field(default_factory=list)
    google_job_search_query: str = ""
    google_job_search_url: str = ""
    risk_or_caution_note: str = ""

    @field_validator("demand_level", mode="before")
    @classmethod
    def _normalize_demand(cls, value: Any) -> str:
        text = _as_text(value).capitalize()
        return text if text in DEMAND_ORDINALS else "Medium"

    @field_validator("match_score", mode="before")
    @classmethod
    def _normalize_score(cls, value: Any) -> int:
        return _clamp_score(value)

    @field_validator(
        "job_title",
        "experience_target",
        "why_it_matches",
        "estimated_salary_expectation",
        "google_job_search_query",
        "google_job_search_url",
        "risk_or_caution_note",
        mode="before",
    )
    @classmethod
    def _normalize_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator(
        "what_you_do_in_this_job",
        "skills_you_already_have",
        "skills_to_build_next",
        "first_steps_to_get_started",
        "recommended_certifications",
        mode="before",
    )
    @classmethod
    def _normalize_lists(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @property
    def demand_ordinal(self) -> int:
        return DEMAND_ORDINALS.get(self.demand_level, 2)

    @property
    def linkedin_search_url(self) -> str:
        query = self.google_job_search_query or self.job_title
        return f"https://www.linkedin.com/jobs/search/?keywords={quote(query, safe='')}"


class ResumeAudit(BaseModel):
    model_config = ConfigDict(frozen=True)

    ats_compatibility_score: int = Field(default=0, ge=0, le=100)
    formatting_issues: list[str] = Field(default_factory=list)
    content_improvements: list[str] = Field(default_factory=list)
    key_strengths: list[str] = Field(default_factory=list)

    @field_validator("ats_compatibility_score", mode="before")
    @classmethod
    def _normalize_score(cls, value: Any) -> int:
        return _clamp_score(value)

    @field_validator("formatting_issues", "content_improvements", "key_strengths", mode="before")
    @classmethod
    def _normalize_lists(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @property
    def score_label(self) -> str:
        if self.ats_compatibility_score >= 80:
            return "Excellent"
        if self.ats_compatibility_score >= 60:
            return "Good"
        return "Needs Work"


class CareerAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary_of_profile: str = ""
    flashcards: list[JobCardData] = Field(default_factory=list)
    overall_advice: str = ""
    disclaimer: str = ""
    grounding_urls: list[GroundingUrl] = Field(default_factory=list)
    resume_audit: ResumeAudit | None = None

    @field_validator("summary_of_profile", "overall_advice", "disclaimer", mode="before")
    @classmethod
    def _normalize_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("flashcards", mode="before")
    @classmethod
    def _normalize_cards(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, JobCardData))]

    @field_validator("grounding_urls", mode="before")
    @classmethod
    def _normalize_grounding(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return value

    @field_validator("resume_audit", mode="before")
    @classmethod
    def _normalize_audit(cls, value: Any) -> Any:
        if isinstance(value, (dict, ResumeAudit)):
            return value
        return None


class InterviewQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    type: QuestionType = "Technical"
    tip: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> str:
        text = _as_text(value).lower()
        if text.startswith("behav") or text == "hr":
            return "Behavioral"
        return "Technical"

    @field_validator("question", "tip", mode="before")
    @classmethod
    def _normalize_text(cls, value: Any) -> str:
        return _as_text(value)


class InterviewPrepData(BaseModel):
    model_config = ConfigDict(frozen=True)

    questions: list[InterviewQuestion] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)

    @field_validator("questions", mode="before")
    @classmethod
    def _normalize_questions(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict) and _as_text(item.get("question"))]

    @field_validator("missing_keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value: Any) -> list[str]:
        return _as_str_list(value)


class ProfileMetadata(BaseModel):
    city: str = ""
    experience_level: str = ""
    years_experience: str = ""

    def is_empty(self) -> bool:
        return not (self.city or self.experience_level or self.years_experience)
