"""Exceptions shared by the service layer."""


class UpstreamError(Exception):
    """Raised when a hosted collaborator (chat model, embeddings, vector index) fails."""

    def __init__(self, collaborator: str, message: str) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator
