"""
Causal Engine errors.

Only construction-time invalidity is raised; algorithms report degenerate
or unidentifiable input through their return values.
"""

INVALID_EDGE_TARGET = "INVALID_EDGE_TARGET"
DUPLICATE_NODE_ID = "DUPLICATE_NODE_ID"
DUPLICATE_EDGE = "DUPLICATE_EDGE"
INVALID_NODE = "INVALID_NODE"
INVALID_EDGE = "INVALID_EDGE"


class GraphValidationError(ValueError):
    """Raised when a causal graph cannot be constructed."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"
