"""Registry mapping tool names to their operations."""

from .base import Operation
from .previews import PREVIEW_OPERATIONS
from .projects import PROJECT_OPERATIONS
from .repositories import REPOSITORY_OPERATIONS
from .search import SEARCH_OPERATIONS

_OPERATIONS: dict[str, Operation] = {
    operation.name: operation
    for operation in (
        *PREVIEW_OPERATIONS,
        *SEARCH_OPERATIONS,
        *PROJECT_OPERATIONS,
        *REPOSITORY_OPERATIONS,
    )
}


def get_operation(name: str) -> Operation | None:
    """Get the operation behind a tool name, or None if unknown."""
    return _OPERATIONS.get(name)


def list_operations() -> list[Operation]:
    """List operations in registration order."""
    return list(_OPERATIONS.values())


__all__ = ["Operation", "get_operation", "list_operations"]
