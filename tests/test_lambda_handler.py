# ---------- TESTS FOR LAMBDA HANDLER ----------

from types import SimpleNamespace
from unittest.mock import patch

import lambda_handler


@patch("lambda_handler.configure_logging")
@patch("lambda_handler.api_handler")
def test_handler_routes_to_mangum(mock_api_handler, mock_configure_logging):
    mock_api_handler.return_value = {"statusCode": 200, "body": "{}"}
    event = {"rawPath": "/api/health", "requestContext": {"http": {"method": "GET"}}}
    context = SimpleNamespace(function_name="waitlist", aws_request_id="abc")

    response = lambda_handler.handler(event, context)

    assert response["statusCode"] == 200
    mock_configure_logging.assert_called_once_with(context)
    mock_api_handler.assert_called_once_with(event, context)
