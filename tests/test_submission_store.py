# ---------- TESTS FOR SUBMISSION STORE ----------

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from devcompass.pipeline import normalize_submission
from devcompass.utils.exceptions import DuplicateSubmissionError, StoreError
from devcompass.utils.submission_store import (
    DynamoDBSubmissionStore,
    InMemorySubmissionStore,
    build_submission_store,
)


def _client_error(code: str, operation: str = "PutItem") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def submission(valid_payload):
    return normalize_submission(valid_payload, 4.0)


# Mock DynamoDB table
@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table."""
    table = MagicMock()
    table.put_item = MagicMock()
    table.query = MagicMock(return_value={"Items": []})
    table.scan = MagicMock(return_value={"Items": []})
    return table


# Mock DynamoDB resource
@pytest.fixture
def mock_dynamodb_resource(mock_dynamodb_table):
    """Create a mock DynamoDB resource."""
    resource = MagicMock()
    resource.Table = MagicMock(return_value=mock_dynamodb_table)
    return resource


@pytest.fixture
def dynamodb_store(mock_dynamodb_resource):
    return DynamoDBSubmissionStore("waitlist-test", resource=mock_dynamodb_resource)


# ----- DynamoDB store -----


def test_insert_unique_uses_conditional_put(
    dynamodb_store, mock_dynamodb_resource, mock_dynamodb_table, submission
):
    stored = dynamodb_store.insert_unique(submission)

    mock_dynamodb_resource.Table.assert_called_with("waitlist-test")
    call_args = mock_dynamodb_table.put_item.call_args
    item = call_args[1]["Item"]
    assert call_args[1]["ConditionExpression"] == "attribute_not_exists(email)"
    assert item["email"] == "a@b.com"
    assert item["id"] == stored.id
    assert item["createdAt"] == stored.created_at
    # boto3 rejects floats, numbers must be Decimal
    assert item["yearsOfExperience"] == Decimal("4.0")
    assert stored.id and stored.created_at


def test_insert_unique_condition_failure_is_duplicate(
    dynamodb_store, mock_dynamodb_table, submission
):
    mock_dynamodb_table.put_item.side_effect = _client_error(
        "ConditionalCheckFailedException"
    )
    with pytest.raises(DuplicateSubmissionError):
        dynamodb_store.insert_unique(submission)


def test_insert_unique_other_error_is_store_error(
    dynamodb_store, mock_dynamodb_table, submission
):
    mock_dynamodb_table.put_item.side_effect = _client_error(
        "ProvisionedThroughputExceededException"
    )
    with pytest.raises(StoreError) as exc_info:
        dynamodb_store.insert_unique(submission)
    assert not isinstance(exc_info.value, DuplicateSubmissionError)


def test_find_by_email_queries_with_limit(dynamodb_store, mock_dynamodb_table):
    mock_dynamodb_table.query.return_value = {
        "Items": [{"email": "a@b.com", "yearsOfExperience": Decimal("4")}]
    }

    items = dynamodb_store.find_by_email("a@b.com", limit=1)

    assert mock_dynamodb_table.query.call_args[1]["Limit"] == 1
    assert items == [{"email": "a@b.com", "yearsOfExperience": 4.0}]


def test_find_by_email_error_is_store_error(dynamodb_store, mock_dynamodb_table):
    mock_dynamodb_table.query.side_effect = _client_error(
        "ResourceNotFoundException", "Query"
    )
    with pytest.raises(StoreError):
        dynamodb_store.find_by_email("a@b.com")


def test_scan_all_follows_pagination(dynamodb_store, mock_dynamodb_table):
    mock_dynamodb_table.scan.side_effect = [
        {"Items": [{"email": "a@b.com"}], "LastEvaluatedKey": {"email": "a@b.com"}},
        {"Items": [{"email": "c@d.com", "yearsOfExperience": Decimal("2.5")}]},
    ]

    items = dynamodb_store.scan_all()

    assert [item["email"] for item in items] == ["a@b.com", "c@d.com"]
    assert items[1]["yearsOfExperience"] == 2.5
    second_call = mock_dynamodb_table.scan.call_args_list[1]
    assert second_call[1]["ExclusiveStartKey"] == {"email": "a@b.com"}


# ----- In-memory store -----


def test_memory_store_enforces_uniqueness(submission):
    store = InMemorySubmissionStore()
    first = store.insert_unique(submission)

    with pytest.raises(DuplicateSubmissionError):
        store.insert_unique(submission)

    assert store.find_by_email("a@b.com") == [first.to_record()]
    assert store.find_by_email("nobody@b.com") == []
    assert len(store) == 1


def test_memory_store_ids_are_unique(valid_payload):
    store = InMemorySubmissionStore()
    ids = set()
    for i in range(5):
        valid_payload["email"] = f"user{i}@example.com"
        ids.add(store.insert_unique(normalize_submission(valid_payload, 1.0)).id)
    assert len(ids) == 5


# ----- Store selection -----


@patch("devcompass.utils.submission_store.settings")
def test_build_store_unconfigured(mock_settings):
    mock_settings.STORE_BACKEND = "dynamodb"
    mock_settings.SUBMISSIONS_TABLE_NAME = ""
    assert build_submission_store() is None


@patch("devcompass.utils.submission_store.settings")
def test_build_store_dynamodb(mock_settings):
    mock_settings.STORE_BACKEND = "dynamodb"
    mock_settings.SUBMISSIONS_TABLE_NAME = "waitlist"
    store = build_submission_store()
    assert isinstance(store, DynamoDBSubmissionStore)
    assert store.table_name == "waitlist"


@patch("devcompass.utils.submission_store.settings")
def test_build_store_memory(mock_settings):
    mock_settings.STORE_BACKEND = "memory"
    assert isinstance(build_submission_store(), InMemorySubmissionStore)
