"""
Validation Constants for Waitlist Submissions.

This module is the schema registry for the waitlist form. It holds the closed
vocabulary of every categorical field and the length bounds of every string
and skill collection. The validators, the stats reporter and the /api/schema
endpoint all read from here, so the frontend can render its options from the
same source the backend validates against.

Vocabularies only change by redeploying; stored submissions are never migrated.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

# Valid employment statuses
VALID_EMPLOYMENT_STATUSES = ("Employed", "Looking", "Freelancing")

# Valid experience levels
VALID_EXPERIENCE_LEVELS = (
    "Junior (0-2 years)",
    "Mid-level (3-5 years)",
    "Senior (6-8 years)",
    "Lead/Principal (9+ years)",
    "Engineering Manager",
    "Director/VP",
)

# Valid role focuses
VALID_ROLE_FOCUSES = (
    "DevOps Engineer",
    "Cloud Engineer",
    "SRE",
    "Platform Engineer",
    "Infrastructure Engineer",
    "Security Engineer",
)

# Valid locations
VALID_LOCATIONS = (
    "Metro Manila",
    "Cebu",
    "Davao",
    "Remote - Philippines",
    "Remote - International",
    "Other",
)

# Valid monthly salary bands (PHP), shared by current and desired salary
VALID_SALARY_RANGES = (
    "Below 50,000",
    "50,000 - 80,000",
    "80,000 - 120,000",
    "120,000 - 160,000",
    "160,000 - 200,000",
    "200,000 - 250,000",
    "250,000 - 300,000",
    "Above 300,000",
)

# Valid skill options, one vocabulary per skill set
VALID_CLOUD_PLATFORMS = (
    "AWS",
    "Google Cloud Platform (GCP)",
    "Microsoft Azure",
    "Alibaba Cloud",
    "DigitalOcean",
    "Oracle Cloud",
    "IBM Cloud",
)

VALID_DEVOPS_TOOLS = (
    "Docker",
    "Kubernetes",
    "Terraform",
    "Ansible",
    "Jenkins",
    "GitLab CI",
    "GitHub Actions",
    "CircleCI",
    "ArgoCD",
    "Helm",
    "Vagrant",
    "Puppet",
    "Chef",
)

VALID_PROGRAMMING_LANGUAGES = (
    "Python",
    "JavaScript",
    "Go",
    "Java",
    "Ruby",
    "Bash/Shell",
    "PowerShell",
    "TypeScript",
    "C#",
    "PHP",
    "Rust",
)

VALID_MONITORING_TOOLS = (
    "Prometheus",
    "Grafana",
    "Datadog",
    "New Relic",
    "ELK Stack",
    "Splunk",
    "Nagios",
    "Zabbix",
    "CloudWatch",
    "PagerDuty",
)

VALID_DATABASES = (
    "PostgreSQL",
    "MySQL",
    "MongoDB",
    "Redis",
    "Elasticsearch",
    "DynamoDB",
    "Cassandra",
    "Microsoft SQL Server",
    "Oracle Database",
    "MariaDB",
)

# Default bound for a string collection when its field declares none
DEFAULT_MAX_ITEMS = 50

# Bound for every skill set
MAX_SKILL_ITEMS = 20

# Skill sets in validation order
SKILL_FIELDS = (
    "cloudPlatforms",
    "devopsTools",
    "programmingLanguages",
    "monitoringTools",
    "databases",
)

# Skill sets reported by the stats endpoint
TOP_SKILL_FIELDS = ("cloudPlatforms", "devopsTools", "programmingLanguages")


@dataclass(frozen=True)
class FieldSpec:
    """Registry entry for a single submission field.

    Attributes:
        name: Wire name of the field (camelCase).
        label: Human-readable name used in validation messages.
        options: Closed vocabulary, or None for free-text fields.
        max_length: Maximum string length, or None if unbounded.
        max_items: Maximum collection length, or None for scalar fields.
        required: Whether the field must be present.
    """

    name: str
    label: str
    options: Optional[Tuple[str, ...]] = None
    max_length: Optional[int] = None
    max_items: Optional[int] = None
    required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"label": self.label, "required": self.required}
        if self.options is not None:
            data["options"] = list(self.options)
        if self.max_length is not None:
            data["maxLength"] = self.max_length
        if self.max_items is not None:
            data["maxItems"] = self.max_items
        return data


FIELD_REGISTRY: Dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec("email", "Email address", required=True),
        FieldSpec("preferredName", "Preferred name", max_length=100),
        FieldSpec("linkedinProfile", "LinkedIn URL", max_length=200),
        FieldSpec("yearsOfExperience", "Years of experience", required=True),
        FieldSpec(
            "employmentStatus",
            "employment status",
            options=VALID_EMPLOYMENT_STATUSES,
            required=True,
        ),
        FieldSpec(
            "cloudPlatforms",
            "cloud platforms",
            options=VALID_CLOUD_PLATFORMS,
            max_items=MAX_SKILL_ITEMS,
        ),
        FieldSpec(
            "devopsTools",
            "DevOps tools",
            options=VALID_DEVOPS_TOOLS,
            max_items=MAX_SKILL_ITEMS,
        ),
        FieldSpec(
            "programmingLanguages",
            "programming languages",
            options=VALID_PROGRAMMING_LANGUAGES,
            max_items=MAX_SKILL_ITEMS,
        ),
        FieldSpec(
            "monitoringTools",
            "monitoring tools",
            options=VALID_MONITORING_TOOLS,
            max_items=MAX_SKILL_ITEMS,
        ),
        FieldSpec(
            "databases",
            "databases",
            options=VALID_DATABASES,
            max_items=MAX_SKILL_ITEMS,
        ),
        FieldSpec(
            "experienceLevel",
            "experience level",
            options=VALID_EXPERIENCE_LEVELS,
            required=True,
        ),
        FieldSpec(
            "roleFocus", "role focus", options=VALID_ROLE_FOCUSES, required=True
        ),
        FieldSpec("location", "location", options=VALID_LOCATIONS, required=True),
        FieldSpec(
            "currentSalaryRange",
            "current salary range",
            options=VALID_SALARY_RANGES,
            required=True,
        ),
        FieldSpec(
            "desiredSalaryRange", "desired salary range", options=VALID_SALARY_RANGES
        ),
    )
}


def get_field_spec(field: str) -> FieldSpec:
    """Return the registry entry for a field.

    Raises:
        KeyError: If the field is not registered. Callers pass literal field
            names, so an unknown name is a programming error.
    """
    return FIELD_REGISTRY[field]


def get_vocabulary(field: str) -> Tuple[str, ...]:
    """Return the closed vocabulary of a categorical field."""
    options = get_field_spec(field).options
    if options is None:
        raise KeyError(f"Field '{field}' has no vocabulary")
    return options


def registry_as_dict() -> Dict[str, Dict[str, Any]]:
    """Serialize the registry for the /api/schema endpoint."""
    return {name: spec.to_dict() for name, spec in FIELD_REGISTRY.items()}
