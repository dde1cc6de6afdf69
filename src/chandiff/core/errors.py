"""Exceptions raised by the decomposition core and the revision store"""


class ParseError(ValueError):
    """Document text is not a well-formed XML tree; no decomposition is possible."""


class RevisionNotFound(LookupError):
    """Requested revision does not exist for the given item."""

    def __init__(self, item_id: str, revision: int):
        super().__init__(f"Revision {revision} not found for item {item_id}")
        self.item_id = item_id
        self.revision = revision
