"""
Exception hierarchy for SQL generation and querying.

Errors raised here are never retried by SQLBridge itself: a schema-mapping
gap or a precondition violation is a defect in the caller or in a dialect
definition. Driver errors (connectivity, constraint violations) are not
wrapped and reach the caller unchanged.
"""

from typing import Optional


class SqlBridgeError(Exception):
    """Base exception for all SQLBridge errors."""

    pass


class UnsupportedTypeError(SqlBridgeError):
    """
    Raised when a field type has no native mapping in a dialect.

    Args:
        message: Error description
        dialect: Name of the dialect that could not map the type (optional)
        column: Column being mapped when the error occurred (optional)
    """

    def __init__(
        self,
        message: str,
        dialect: Optional[str] = None,
        column: Optional[str] = None,
    ):
        self.dialect = dialect
        self.column = column

        context_parts = []
        if dialect:
            context_parts.append(f"dialect='{dialect}'")
        if column:
            context_parts.append(f"column='{column}'")

        if context_parts:
            full_message = f"{message} ({', '.join(context_parts)})"
        else:
            full_message = message

        super().__init__(full_message)


class UnsupportedStatementError(SqlBridgeError):
    """Raised when a dialect has no syntax for the requested statement."""

    def __init__(self, statement: str, dialect: str):
        self.statement = statement
        self.dialect = dialect
        super().__init__(f"Dialect '{dialect}' does not support {statement} statements")


class PreconditionError(SqlBridgeError):
    """Raised on programmer errors such as mismatched column/parameter counts."""

    pass


class QuerierStateError(PreconditionError):
    """
    Raised when a querier operation is invoked in the wrong state.

    Args:
        querier: Name of the querier
        state: State the querier was in
        operation: Operation that was attempted
    """

    def __init__(self, querier: str, state: str, operation: str):
        self.querier = querier
        self.state = state
        self.operation = operation
        super().__init__(
            f"Cannot {operation} querier '{querier}' while it is {state}"
        )


__all__ = [
    "SqlBridgeError",
    "UnsupportedTypeError",
    "UnsupportedStatementError",
    "PreconditionError",
    "QuerierStateError",
]
