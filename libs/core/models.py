from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RequestKind(str, Enum):
    summarize = "summarize"
    ats_scan = "ats-scan"
    summary = "summary"
    skills = "skills"
    improve = "improve"
    experience_description = "experience-description"
    education_degree = "education-degree"
    education_institution = "education-institution"
    education_description = "education-description"
    education_dates = "education-dates"
    full_resume = "full-resume"

    @property
    def education_field(self) -> Optional[str]:
        if self.value.startswith("education-"):
            return self.value[len("education-") :]
        return None


BULLET_KINDS = frozenset(
    {
        RequestKind.summarize,
        RequestKind.summary,
        RequestKind.improve,
        RequestKind.experience_description,
    }
)

JSON_KINDS = frozenset({RequestKind.ats_scan, RequestKind.skills, RequestKind.full_resume})


class EducationContext(BaseModel):
    model_config = ConfigDict(extra="ignore")

    institution: Optional[str] = None
    degree: Optional[str] = None
    field: Optional[str] = None
    level: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None


class ExperienceContext(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    description: Optional[str] = None


class EnhanceRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    kind: RequestKind = Field(validation_alias=AliasChoices("type", "kind"))
    text: Optional[str] = None
    linkedinData: Optional[Dict[str, Any]] = None
    resumeTemplate: str = "modern"
    experience: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    description: Optional[str] = None
    educationContext: EducationContext = Field(default_factory=EducationContext)
    experienceContext: ExperienceContext = Field(default_factory=ExperienceContext)
    preserveUserContent: bool = False
