"""
Configuration Module for DevCompass.

Re-exports the schema registry and submission models so callers can write:
    from devcompass.config import WaitlistSubmission, VALID_LOCATIONS

- validation_constants.py: Field vocabularies, bounds and the field registry
- submission_schemas.py: WaitlistSubmission and WaitlistStats models
- settings.py: Environment-driven runtime settings
"""

from devcompass.config.submission_schemas import (
    WaitlistSubmission,
    WaitlistStats,
    TopSkills,
)

from devcompass.config.validation_constants import (
    FIELD_REGISTRY,
    FieldSpec,
    SKILL_FIELDS,
    TOP_SKILL_FIELDS,
    VALID_EMPLOYMENT_STATUSES,
    VALID_EXPERIENCE_LEVELS,
    VALID_ROLE_FOCUSES,
    VALID_LOCATIONS,
    VALID_SALARY_RANGES,
    VALID_CLOUD_PLATFORMS,
    VALID_DEVOPS_TOOLS,
    VALID_PROGRAMMING_LANGUAGES,
    VALID_MONITORING_TOOLS,
    VALID_DATABASES,
    get_field_spec,
    get_vocabulary,
    registry_as_dict,
)

__all__ = [
    # Submission schemas
    "WaitlistSubmission",
    "WaitlistStats",
    "TopSkills",
    # Registry
    "FIELD_REGISTRY",
    "FieldSpec",
    "SKILL_FIELDS",
    "TOP_SKILL_FIELDS",
    "get_field_spec",
    "get_vocabulary",
    "registry_as_dict",
    # Vocabularies
    "VALID_EMPLOYMENT_STATUSES",
    "VALID_EXPERIENCE_LEVELS",
    "VALID_ROLE_FOCUSES",
    "VALID_LOCATIONS",
    "VALID_SALARY_RANGES",
    "VALID_CLOUD_PLATFORMS",
    "VALID_DEVOPS_TOOLS",
    "VALID_PROGRAMMING_LANGUAGES",
    "VALID_MONITORING_TOOLS",
    "VALID_DATABASES",
]
