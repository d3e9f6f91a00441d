"""
AWS Lambda Handler for the DevCompass Waitlist API.

Wraps the FastAPI application with Mangum so it can serve API Gateway and
Lambda Function URL requests.

Lambda Configuration:
    Handler: lambda_handler.handler
    Runtime: Python 3.12
    Timeout: 29 seconds (API Gateway limit)

Environment Variables:
    ENVIRONMENT: "production" for strict rate limits and hidden error details
    SUBMISSIONS_TABLE_NAME: DynamoDB table for submissions
    RATE_LIMIT_BACKEND: "dynamodb" to share rate-limit counters across containers
    RATE_LIMIT_TABLE_NAME: DynamoDB table for rate-limit counters
    TRUSTED_PROXY_HOPS: Proxies whose X-Forwarded-For entries are trusted (leave 0
        on Lambda; Mangum takes the client address from the request context)
    ALLOWED_ORIGINS: Comma-separated frontend origins for CORS
"""

from mangum import Mangum

from devcompass.api.server import app
from devcompass.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

api_handler = Mangum(
    app,
    lifespan="off",
    text_mime_types=["application/json", "text/plain"],
)


def handler(event, context):
    """Main Lambda handler.

    Reconfigures logging with the invocation's Lambda context so every record
    carries the function name and AWS request ID, then hands the event to
    the FastAPI app.

    Args:
        event: API Gateway or Function URL event.
        context: Lambda context object providing runtime information.

    Returns:
        dict: Mangum-formatted response with statusCode, headers and body.
    """
    configure_logging(context)
    logger.debug("Routing to API handler")
    return api_handler(event, context)
