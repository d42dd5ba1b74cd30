"""Error types for sermonai storage."""

from __future__ import annotations


class StorageError(Exception):
    """Base class for storage errors."""

    pass


class NotInitializedError(StorageError):
    """The storage manager was used before `initialize()`."""

    pass


class BackendUnavailableError(StorageError):
    """A backend could not be opened or reached.

    Raised when:
    - The SQLite file cannot be opened or upgraded
    - The Supabase endpoint is unreachable or timed out
    """

    pass


class RemoteRequestError(StorageError):
    """The remote store answered a request with an error status.

    Attributes:
        status_code: HTTP status returned by the remote store.
        detail: Response body, as returned.
    """

    def __init__(self, message: str, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{message} (HTTP {status_code})")


class NotFoundError(StorageError):
    """Entity not found in storage.

    Attributes:
        collection: Name of the collection.
        entity_id: ID that was not found.
    """

    def __init__(self, collection: str, entity_id: str):
        self.collection = collection
        self.entity_id = entity_id
        super().__init__(f"Not found: {collection}/{entity_id}")


class ProjectLockedError(StorageError):
    """A locked project cannot be deleted.

    Attributes:
        project_id: ID of the locked project.
    """

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project is locked: {project_id}")
