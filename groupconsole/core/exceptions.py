"""Console exceptions for error handling."""


class ConsoleError(Exception):
    """Base exception for all group console operations."""
    pass


class NotFoundError(ConsoleError):
    """A named backend or group does not exist."""
    pass


class BackendNotFoundError(NotFoundError):
    """User group backend is not configured.

    Attributes:
        backend_name: Requested backend name
    """

    def __init__(self, backend_name: str):
        self.backend_name = backend_name
        super().__init__(f'User group backend "{backend_name}" not found')


class GroupNotFoundError(NotFoundError):
    """Group does not exist in the backend.

    Attributes:
        group_name: Requested group name
    """

    def __init__(self, group_name: str):
        self.group_name = group_name
        super().__init__(f'Group "{group_name}" not found')


class GroupAlreadyExistsError(ConsoleError):
    """Group creation failed - group name already taken."""

    def __init__(self, group_name: str):
        self.group_name = group_name
        super().__init__(f'Group "{group_name}" already exists')


class UnsupportedCapabilityError(ConsoleError):
    """Backend does not implement the capability an operation requires.

    Attributes:
        backend_name: Backend name
        capability: Lower-case capability name (e.g. "reducible")
    """

    def __init__(self, backend_name: str, capability: str):
        self.backend_name = backend_name
        self.capability = capability
        super().__init__(f'User group backend "{backend_name}" is not {capability}')


class QueryError(ConsoleError, ValueError):
    """Invalid query: unknown table, column or sort direction."""
    pass


class BackendConfigError(ConsoleError):
    """Backend configuration section is invalid."""
    pass


class BackendError(ConsoleError):
    """Backend failed to carry out a read or write."""
    pass
