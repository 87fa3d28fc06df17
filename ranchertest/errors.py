"""Errors raised by the resource client collaborators."""


class ResourceConflictError(Exception):
    """The remote store rejected a write made against a stale resourceVersion."""

    def __init__(self, namespace: str, name: str, details: str = ""):
        self.namespace = namespace
        self.name = name
        self.details = details
        message = f"Conflict while replacing {namespace}/{name}"
        if details:
            message += f": {details}"
        super().__init__(message)
