# ---------- SETTINGS ----------

# Runtime settings for the waitlist API, read once from the environment.
# A local .env file is honoured for development.

import os

from dotenv import load_dotenv

load_dotenv()

# "production" tightens rate limits, hides error details and disables dev-mode submissions
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

SERVICE_NAME = "DevCompass Waitlist API"
SERVICE_VERSION = "1.0.0"

# Submission store
# Leave SUBMISSIONS_TABLE_NAME unset to run without a database (development only)
STORE_BACKEND = os.environ.get("STORE_BACKEND", "dynamodb").lower()
SUBMISSIONS_TABLE_NAME = os.environ.get("SUBMISSIONS_TABLE_NAME", "")

# Rate limiting
RATE_LIMIT_ENABLED = os.environ.get("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_BACKEND = os.environ.get("RATE_LIMIT_BACKEND", "memory").lower()
RATE_LIMIT_TABLE_NAME = os.environ.get("RATE_LIMIT_TABLE_NAME", "devcompass-rate-limits")

# Reverse proxies in front of the app whose X-Forwarded-For entries are trusted
# 0 keys rate limits on the connection's peer address
TRUSTED_PROXY_HOPS = int(os.environ.get("TRUSTED_PROXY_HOPS", "0"))

SUBMISSION_WINDOW_SECONDS = 15 * 60
GENERAL_WINDOW_SECONDS = 60
GENERAL_MAX_REQUESTS = 20

# JSON payload size limit (10 KiB)
MAX_BODY_BYTES = int(os.environ.get("MAX_BODY_BYTES", "10240"))

# CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]
