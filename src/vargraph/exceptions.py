"""Exception hierarchy for graph construction and aggregation."""


class GraphError(Exception):
    """Base exception for graph operations."""

    pass


class DataIntegrityError(GraphError):
    """Raised at construction when loader data references missing hierarchy data."""

    def __init__(self, message: str, record_id: str | None = None, field: str | None = None):
        self.record_id = record_id
        self.field = field
        super().__init__(message)


class InvalidOperation(GraphError):
    """Raised when an aggregation or query is requested on a node that cannot take it.

    Examples: expanding a Variable, collapsing a Submodule, acting on a node
    that is not currently visible.
    """

    def __init__(self, operation: str, node_id: str, reason: str):
        self.operation = operation
        self.node_id = node_id
        self.reason = reason
        super().__init__(f"Cannot {operation} {node_id}: {reason}")
