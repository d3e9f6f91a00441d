"""
Submission Schemas.

Pydantic models for the persisted waitlist submission and the stats report.

Key Models:
    - WaitlistSubmission: A normalized, validated submission as stored
    - WaitlistStats: Histogram report returned by /api/waitlist/stats

Note:
    Incoming payloads are not parsed with these models. Field checks run in a
    fixed order through pure validator functions (see
    devcompass.utils.validators) so the first failing rule decides the error
    message. The models describe data that has already passed validation.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WaitlistSubmission(BaseModel):
    """A validated and normalized waitlist submission.

    `id` and `created_at` stay None until the store inserts the record.
    Field aliases match the camelCase keys used by the frontend and the store.
    """

    id: Optional[str] = None
    email: str
    preferred_name: Optional[str] = Field(None, alias="preferredName")
    linkedin_profile: Optional[str] = Field(None, alias="linkedinProfile")
    years_of_experience: float = Field(..., ge=0, alias="yearsOfExperience")
    employment_status: str = Field(..., alias="employmentStatus")

    # Technical skills
    cloud_platforms: List[str] = Field(default_factory=list, alias="cloudPlatforms")
    devops_tools: List[str] = Field(default_factory=list, alias="devopsTools")
    programming_languages: List[str] = Field(
        default_factory=list, alias="programmingLanguages"
    )
    monitoring_tools: List[str] = Field(default_factory=list, alias="monitoringTools")
    databases: List[str] = Field(default_factory=list)

    # Experience & role
    experience_level: str = Field(..., alias="experienceLevel")
    role_focus: str = Field(..., alias="roleFocus")

    # Location & compensation
    location: str
    current_salary_range: str = Field(..., alias="currentSalaryRange")
    desired_salary_range: Optional[str] = Field(None, alias="desiredSalaryRange")

    # Metadata
    created_at: Optional[str] = Field(None, alias="createdAt")
    submitted_at: str = Field(..., alias="submittedAt")

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
    )

    def to_record(self) -> Dict:
        """Dump the submission with camelCase keys."""
        return self.model_dump(by_alias=True)


class TopSkills(BaseModel):
    """Per-item counts within the reported skill sets."""

    cloud_platforms: Dict[str, int] = Field(
        default_factory=dict, alias="cloudPlatforms"
    )
    devops_tools: Dict[str, int] = Field(default_factory=dict, alias="devopsTools")
    programming_languages: Dict[str, int] = Field(
        default_factory=dict, alias="programmingLanguages"
    )

    model_config = ConfigDict(populate_by_name=True)


class WaitlistStats(BaseModel):
    """Aggregate histograms over every stored submission."""

    total: int = 0
    by_role: Dict[str, int] = Field(default_factory=dict, alias="byRole")
    by_location: Dict[str, int] = Field(default_factory=dict, alias="byLocation")
    by_experience_level: Dict[str, int] = Field(
        default_factory=dict, alias="byExperienceLevel"
    )
    by_salary_range: Dict[str, int] = Field(
        default_factory=dict, alias="bySalaryRange"
    )
    top_skills: TopSkills = Field(default_factory=TopSkills, alias="topSkills")
    employment_status: Dict[str, int] = Field(
        default_factory=dict, alias="employmentStatus"
    )

    model_config = ConfigDict(populate_by_name=True)
