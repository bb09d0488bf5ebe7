"""
Test fixtures for Lambda function tests.

Provides common test data, actors and mocked AWS resources.
"""

import json
from typing import Any, Callable, Dict, Generator, Optional

import boto3
import pytest
from moto import mock_aws

from src.utils.approval import ApprovalWorkflow
from src.utils.auth import Actor
from src.utils.config import Settings, override_settings
from src.utils.dynamodb import clear_all_overrides, override_table, reset_singleton
from src.utils.record_store import RecordStore
from src.utils.resources import PRODUCT_CATEGORY

from tests.unit.fixtures import fixed_clock, make_settings
from tests.unit.table_schemas import CATALOG_TABLE_NAME, create_catalog_table


@pytest.fixture
def aws_credentials() -> None:
    """Set fake AWS credentials for moto."""
    import os

    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    os.environ["CATALOG_TABLE_NAME"] = CATALOG_TABLE_NAME


@pytest.fixture(autouse=True)
def reset_overrides() -> Generator[None, None, None]:
    """Clear settings and table overrides between tests."""
    override_settings(None)
    clear_all_overrides()
    reset_singleton()
    yield
    override_settings(None)
    clear_all_overrides()
    reset_singleton()


@pytest.fixture
def catalog_table(aws_credentials: None) -> Generator[Any, None, None]:
    """Create the mock catalog table and route the table accessor to it."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        table = create_catalog_table(dynamodb)
        override_table("catalog", table)
        yield table


@pytest.fixture
def admin_actor() -> Actor:
    """Privileged actor."""
    return Actor(username="admin.alice", roles=frozenset({"ADMIN"}))


@pytest.fixture
def super_admin_actor() -> Actor:
    """Privileged actor holding only SUPER_ADMIN."""
    return Actor(username="root.rita", roles=frozenset({"SUPER_ADMIN"}))


@pytest.fixture
def user_actor() -> Actor:
    """Non-privileged actor."""
    return Actor(username="user.bob", roles=frozenset({"USER"}))


@pytest.fixture
def roleless_actor() -> Actor:
    """Authenticated actor without any role."""
    return Actor(username="guest.gil", roles=frozenset())


@pytest.fixture
def settings() -> Settings:
    """Default settings for workflow tests."""
    return make_settings()


@pytest.fixture
def category_store(catalog_table: Any) -> RecordStore:
    """Record store for product categories."""
    return RecordStore(catalog_table, PRODUCT_CATEGORY)


@pytest.fixture
def category_workflow(category_store: RecordStore, settings: Settings) -> ApprovalWorkflow:
    """Approval workflow for product categories with a fixed clock."""
    return ApprovalWorkflow(PRODUCT_CATEGORY, category_store, settings, clock=fixed_clock)


@pytest.fixture
def act_as() -> Callable[[Actor], Settings]:
    """Install settings whose actor resolver always returns ``actor``."""

    def _act_as(actor: Actor) -> Settings:
        installed = make_settings(actor)
        override_settings(installed)
        return installed

    return _act_as


@pytest.fixture
def api_event() -> Callable[..., Dict[str, Any]]:
    """Build an API Gateway REST proxy event."""

    def _build(
        resource: str,
        method: str = "GET",
        path_parameters: Optional[Dict[str, str]] = None,
        body: Any = None,
        query: Optional[Dict[str, str]] = None,
        claims: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        request_context: Dict[str, Any] = {"requestId": "test-correlation-id", "httpMethod": method}
        if claims is not None:
            request_context["authorizer"] = {"claims": claims}
        return {
            "resource": resource,
            "path": resource,
            "httpMethod": method,
            "headers": {"Content-Type": "application/json"},
            "pathParameters": path_parameters,
            "queryStringParameters": query,
            "body": json.dumps(body) if body is not None else None,
            "isBase64Encoded": False,
            "requestContext": request_context,
        }

    return _build


@pytest.fixture
def lambda_context() -> Any:
    """Mock Lambda context."""

    class Context:
        function_name = "test-function"
        memory_limit_in_mb = 128
        invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-function"
        aws_request_id = "test-request-id"

    return Context()
