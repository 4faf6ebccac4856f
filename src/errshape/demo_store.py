"""In-memory document store that fails the way a document database driver does.

Used by the demo service to produce real data-layer errors for the classifier.
"""

import re
from typing import Any

_OBJECT_ID = re.compile(r"^[0-9a-f]{24}$")


class CastError(Exception):
    """A value could not be cast to the type of its path."""

    def __init__(self, path: str, value: Any) -> None:
        super().__init__(f'Cast to ObjectId failed for value "{value}" at path "{path}"')
        self.path = path
        self.value = value


class ValidatorError(Exception):
    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path
        self.message = message


class ValidationError(Exception):
    """One or more fields failed validation."""

    def __init__(self, errors: dict[str, ValidatorError]) -> None:
        super().__init__("Validation failed")
        self.errors = errors


class DuplicateKeyError(Exception):
    """A unique index rejected the document."""

    def __init__(self, key_value: dict[str, Any]) -> None:
        super().__init__(f"E11000 duplicate key error dup key: {key_value}")
        self.code = 11000
        self.keyValue = key_value


class RecordStore:
    """Documents keyed by ``_id`` with an integer ``some_prop`` unique across the store."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._next_id = 0
        self.connected = True

    def create(self, document: dict[str, Any]) -> dict[str, Any]:
        if not self.connected:
            raise ConnectionError("record store is disconnected")

        doc_id = document.get("_id")
        if doc_id is None:
            doc_id = f"{self._next_id:024x}"
            self._next_id += 1
        elif not isinstance(doc_id, str) or not _OBJECT_ID.match(doc_id):
            raise CastError("_id", doc_id)

        some_prop = document.get("some_prop")
        if some_prop is not None:
            if not isinstance(some_prop, int) or isinstance(some_prop, bool):
                raise ValidationError(
                    {
                        "some_prop": ValidatorError(
                            "some_prop",
                            f'Cast to Number failed for value "{some_prop}" at path "some_prop"',
                        )
                    }
                )
            if any(d.get("some_prop") == some_prop for d in self._documents.values()):
                raise DuplicateKeyError({"some_prop": some_prop})

        stored = {**document, "_id": doc_id}
        self._documents[doc_id] = stored
        return stored

    def disconnect(self) -> None:
        self.connected = False
