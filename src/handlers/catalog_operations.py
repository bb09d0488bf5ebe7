"""
Catalog record Lambda handlers for API Gateway proxy integration.

Every resource kind (products, product categories, ...) shares these
handlers; the kind is resolved from the first segment of the request path.
Mutations go through the approval workflow, queries read the record store
directly.
"""

from typing import Any, Callable, Dict

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.apigateway_types import (  # type: ignore[import-not-found]
        get_path_parameter_required,
        get_query_parameters,
        get_request_path,
        parse_json_body,
    )
    from utils.approval import ApprovalWorkflow  # type: ignore[import-not-found]
    from utils.auth import Actor  # type: ignore[import-not-found]
    from utils.config import get_settings  # type: ignore[import-not-found]
    from utils.dynamodb import tables  # type: ignore[import-not-found]
    from utils.errors import AppError, ErrorCode  # type: ignore[import-not-found]
    from utils.logging import StructuredLogger, get_correlation_id, get_logger  # type: ignore[import-not-found]
    from utils.record_store import RecordStore  # type: ignore[import-not-found]
    from utils.resources import kind_for_path  # type: ignore[import-not-found]
    from utils.responses import (  # type: ignore[import-not-found]
        ProxyResponse,
        build_error_response,
        build_page_response,
        build_record_response,
        build_response,
    )
    from utils.validation import validate_pagination_params, validate_record_fields  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.apigateway_types import (
        get_path_parameter_required,
        get_query_parameters,
        get_request_path,
        parse_json_body,
    )
    from ..utils.approval import ApprovalWorkflow
    from ..utils.auth import Actor
    from ..utils.config import get_settings
    from ..utils.dynamodb import tables
    from ..utils.errors import AppError, ErrorCode
    from ..utils.logging import StructuredLogger, get_correlation_id, get_logger
    from ..utils.record_store import RecordStore
    from ..utils.resources import kind_for_path
    from ..utils.responses import (
        ProxyResponse,
        build_error_response,
        build_page_response,
        build_record_response,
        build_response,
    )
    from ..utils.validation import validate_pagination_params, validate_record_fields

Operation = Callable[[ApprovalWorkflow, Actor, Dict[str, Any]], Any]


def _run(event: Dict[str, Any], operation_name: str, operation: Operation, success_status: int = 200) -> ProxyResponse:
    """
    Resolve kind, actor and workflow for a request, run the operation and
    wrap its result (or its failure) in the proxy response envelope.
    """
    logger: StructuredLogger = get_logger(__name__, get_correlation_id(event))
    path = get_request_path(event)
    path_parameters = event.get("pathParameters") or {}

    try:
        kind = kind_for_path(path)
        if kind is None:
            raise AppError(ErrorCode.NOT_FOUND, f"Unknown resource: {path}")

        settings = get_settings()
        actor = settings.actor_resolver.resolve(event)
        logger.info(
            f"{operation_name} {kind.label.lower()}",
            kind=kind.partition,
            actor=actor.username,
            record_id=path_parameters.get("id"),
            name=path_parameters.get("name"),
        )

        workflow = ApprovalWorkflow(kind, RecordStore(tables.catalog, kind), settings, logger=logger)
        return build_response(success_status, operation(workflow, actor, event))

    except AppError as e:
        logger.warning(
            f"{operation_name} failed",
            error_code=e.error_code,
            error=e.message,
            path=path,
            record_id=path_parameters.get("id"),
            name=path_parameters.get("name"),
        )
        return build_error_response(e)
    except Exception as e:
        logger.error(f"Unexpected error during {operation_name}", error=str(e), path=path, exc_info=True)
        return build_error_response(e)


def create_record(event: Dict[str, Any], context: Any) -> ProxyResponse:
    """
    Create a catalog record.

    POST /{resource}

    Args:
        event: API Gateway event whose body carries the resource fields
        context: Lambda context (unused)

    Returns:
        201 with the created record, 400 on a duplicate name or invalid body
    """

    def operation(workflow: ApprovalWorkflow, actor: Actor, event: Dict[str, Any]) -> Any:
        fields = validate_record_fields(workflow.kind, parse_json_body(event))
        return build_record_response(workflow.create(fields, actor))

    return _run(event, "Create", operation, success_status=201)


def update_record(event: Dict[str, Any], context: Any) -> ProxyResponse:
    """
    Update a catalog record (applied or staged depending on the caller).

    PUT /{resource}/{id}
    """

    def operation(workflow: ApprovalWorkflow, actor: Actor, event: Dict[str, Any]) -> Any:
        record_id = get_path_parameter_required(event, "id")
        fields = validate_record_fields(workflow.kind, parse_json_body(event))
        return build_record_response(workflow.update(record_id, fields, actor))

    return _run(event, "Update", operation)


def delete_record(event: Dict[str, Any], context: Any) -> ProxyResponse:
    """
    Mark a catalog record for deletion.

    DELETE /{resource}/{id}
    """

    def operation(workflow: ApprovalWorkflow, actor: Actor, event: Dict[str, Any]) -> Any:
        record_id = get_path_parameter_required(event, "id")
        return build_record_response(workflow.delete(record_id, actor))

    return _run(event, "Delete", operation)


def approve_record(event: Dict[str, Any], context: Any) -> ProxyResponse:
    """
    Approve the pending change on a catalog record.

    POST /{resource}/{id}/approve

    Returns:
        200 with the record (or its pre-deletion snapshot), 403 for callers
        without an approval role, 404 if missing, 400 if nothing is pending
    """

    def operation(workflow: ApprovalWorkflow, actor: Actor, event: Dict[str, Any]) -> Any:
        record_id = get_path_parameter_required(event, "id")
        return build_record_response(workflow.approve(record_id, actor))

    return _run(event, "Approve", operation)


def deny_record(event: Dict[str, Any], context: Any) -> ProxyResponse:
    """
    Deny the pending change on a catalog record.

    POST /{resource}/{id}/deny
    """

    def operation(workflow: ApprovalWorkflow, actor: Actor, event: Dict[str, Any]) -> Any:
        record_id = get_path_parameter_required(event, "id")
        return build_record_response(workflow.deny(record_id, actor))

    return _run(event, "Deny", operation)


def get_record_by_id(event: Dict[str, Any], context: Any) -> ProxyResponse:
    """GET /{resource}/{id}"""

    def operation(workflow: ApprovalWorkflow, actor: Actor, event: Dict[str, Any]) -> Any:
        return build_record_response(workflow.get_by_id(get_path_parameter_required(event, "id")))

    return _run(event, "Get", operation)


def get_record_by_name(event: Dict[str, Any], context: Any) -> ProxyResponse:
    """GET /{resource}/name/{name}"""

    def operation(workflow: ApprovalWorkflow, actor: Actor, event: Dict[str, Any]) -> Any:
        return build_record_response(workflow.get_by_name(get_path_parameter_required(event, "name")))

    return _run(event, "Get by name", operation)


def get_records_pagination(event: Dict[str, Any], context: Any) -> ProxyResponse:
    """
    List records of one status, ordered by name.

    GET /{resource}?status=&limit=&direction=&cursorPointer=
    """

    def operation(workflow: ApprovalWorkflow, actor: Actor, event: Dict[str, Any]) -> Any:
        params = validate_pagination_params(get_query_parameters(event))
        page = workflow.paginate(params.status, params.limit, params.direction, params.cursor_pointer)
        return build_page_response(dict(page))

    return _run(event, "List", operation)
