# ---------- SHARED TEST FIXTURES ----------

import copy

import pytest
from fastapi.testclient import TestClient

from devcompass.api.server import app
from devcompass.utils.rate_limiter import InMemoryCounterStore, RateLimiter
from devcompass.utils.submission_store import InMemorySubmissionStore


# Minimal valid submission
VALID_PAYLOAD = {
    "email": "a@b.com",
    "yearsOfExperience": 4,
    "employmentStatus": "Employed",
    "cloudPlatforms": ["AWS"],
    "experienceLevel": "Mid-level (3-5 years)",
    "roleFocus": "SRE",
    "location": "Cebu",
    "currentSalaryRange": "80,000 - 120,000",
}


@pytest.fixture
def valid_payload():
    """A fresh copy of a minimal valid submission."""
    return copy.deepcopy(VALID_PAYLOAD)


@pytest.fixture
def memory_store():
    return InMemorySubmissionStore()


@pytest.fixture
def client(memory_store):
    """TestClient with an in-memory store and fresh development rate limits."""
    original_store = app.state.store
    original_limiter = app.state.rate_limiter

    app.state.store = memory_store
    app.state.rate_limiter = RateLimiter(store=InMemoryCounterStore())

    yield TestClient(app)

    app.state.store = original_store
    app.state.rate_limiter = original_limiter
