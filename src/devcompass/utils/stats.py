"""
Waitlist Statistics.

Folds stored submissions into category histograms for the operator dashboard.
Nothing is cached; the report is rebuilt from the store on every call.
"""

from collections import Counter
from typing import Any, Dict, Iterable

from devcompass.config.submission_schemas import TopSkills, WaitlistStats
from devcompass.config.validation_constants import TOP_SKILL_FIELDS

# Bucket for records that lack a categorical field
UNKNOWN = "Unknown"

# Histogram name -> submission field
CATEGORY_FIELDS = {
    "byRole": "roleFocus",
    "byLocation": "location",
    "byExperienceLevel": "experienceLevel",
    "bySalaryRange": "currentSalaryRange",
    "employmentStatus": "employmentStatus",
}


def build_stats(submissions: Iterable[Dict[str, Any]]) -> WaitlistStats:
    """Build histograms over submissions.

    Every categorical histogram sums to the number of submissions: a record
    missing the field is counted under "Unknown". Skill histograms count each
    selected item, so they sum to the number of selections instead.

    Args:
        submissions: Stored submission records with camelCase keys.

    Returns:
        WaitlistStats with per-category and per-skill counts.
    """
    total = 0
    categories = {name: Counter() for name in CATEGORY_FIELDS}
    skills = {field: Counter() for field in TOP_SKILL_FIELDS}

    for submission in submissions:
        total += 1
        for name, field in CATEGORY_FIELDS.items():
            categories[name][submission.get(field) or UNKNOWN] += 1
        for field in TOP_SKILL_FIELDS:
            skills[field].update(submission.get(field) or [])

    return WaitlistStats(
        total=total,
        by_role=dict(categories["byRole"]),
        by_location=dict(categories["byLocation"]),
        by_experience_level=dict(categories["byExperienceLevel"]),
        by_salary_range=dict(categories["bySalaryRange"]),
        employment_status=dict(categories["employmentStatus"]),
        top_skills=TopSkills(
            cloud_platforms=dict(skills["cloudPlatforms"]),
            devops_tools=dict(skills["devopsTools"]),
            programming_languages=dict(skills["programmingLanguages"]),
        ),
    )
