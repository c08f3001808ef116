from typing import Dict, List, Optional


class CatalogError(Exception):
    pass


class NotFoundError(CatalogError):
    def __init__(self, model_name: str, id):
        self.model_name = model_name
        self.id = id
        super().__init__(f"No query results for {model_name} {id}")


class ValidationError(CatalogError):
    """
    Input failed the declared rules. ``errors`` maps each offending field to
    one or more human readable messages.
    """

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__("The given data was invalid.")

    @property
    def message(self) -> str:
        first = next(iter(self.errors.values()), [])
        if not first:
            return str(self)
        extra = sum(len(v) for v in self.errors.values()) - 1
        if extra > 0:
            return f"{first[0]} (and {extra} more error{'s' if extra > 1 else ''})"
        return first[0]


class ConstraintViolation(CatalogError):
    """A write was rejected by a storage-level constraint (e.g. unique sku)."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidQueryError(CatalogError):
    pass


class UnknownRequestSchema(CatalogError):
    pass
