from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# reference corpus categories and rubric sub-types
CATEGORY_JOB_DESCRIPTION = "job_description"
CATEGORY_CASE_STUDY = "case_study"
CATEGORY_RUBRIC = "rubric"
RUBRIC_CV = "cv_evaluation"
RUBRIC_PROJECT = "project_evaluation"


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class InputRefs(BaseModel):
    profile_id: str
    deliverable_id: str
    title: str


class EvaluationResult(BaseModel):
    profile_match_score: float = Field(..., ge=0.0, le=1.0)
    profile_feedback: str
    deliverable_score: float = Field(..., ge=1.0, le=5.0)
    deliverable_feedback: str
    summary: str


def _require_number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    return value


class ProfileEvaluation(BaseModel):
    profile_match_score: float = Field(..., ge=0.0, le=1.0)
    profile_feedback: str = Field(..., min_length=1)

    @field_validator("profile_match_score", mode="before")
    @classmethod
    def _score_is_number(cls, value):
        return _require_number(value)

    @field_validator("profile_feedback", mode="before")
    @classmethod
    def _non_empty_text(cls, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("profile_feedback must be a non-empty string")
        return value.strip()


class DeliverableEvaluation(BaseModel):
    deliverable_score: float = Field(..., ge=1.0, le=5.0)
    deliverable_feedback: str

    @field_validator("deliverable_score", mode="before")
    @classmethod
    def _score_is_number(cls, value):
        return _require_number(value)

    @field_validator("deliverable_feedback", mode="before")
    @classmethod
    def _text(cls, value):
        if not isinstance(value, str):
            raise ValueError("deliverable_feedback must be a string")
        return value.strip()



class Job(BaseModel):
    id: str
    input_refs: InputRefs
    status: JobStatus
    result: Optional[EvaluationResult] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExtractedText(BaseModel):
    text: str
    page_count: int


class ContextResult(BaseModel):
    documents: List[str] = Field(default_factory=list)
    scores: List[float] = Field(default_factory=list)

    def joined(self, sep: str = "\n---\n") -> str:
        return sep.join(self.documents)


class UploadResponse(BaseModel):
    cv_id: Optional[str] = None
    report_id: Optional[str] = None


class EvaluateRequest(BaseModel):
    job_title: str = Field(..., min_length=1)
    cv_id: str = Field(..., min_length=1)
    report_id: str = Field(..., min_length=1)


class JobStatusResponse(BaseModel):
    id: str
    status: JobStatus
    message: Optional[str] = None
    result: Optional[EvaluationResult] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
