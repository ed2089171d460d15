from .career import (
    AnalysisMode,
    CareerAnalysis,
    DemandLevel,
    GroundingUrl,
    InterviewPrepData,
    InterviewQuestion,
    JobCardData,
    ProfileMetadata,
    ResumeAudit,
    UserInput,
)

__all__ = [
    "AnalysisMode",
    "CareerAnalysis",
    "DemandLevel",
    "GroundingUrl",
    "InterviewPrepData",
    "InterviewQuestion",
    "JobCardData",
    "ProfileMetadata",
    "ResumeAudit",
    "UserInput",
]
