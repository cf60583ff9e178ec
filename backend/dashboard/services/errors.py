"""
Failure taxonomy shared by the services.

Every refusal carries a ``kind`` plus the identifiers/counts a caller needs
to act on it. The HTTP layer maps them to responses in ``dashboard.main``.
"""
from typing import Optional


class DashboardError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind, **self.details}


class ValidationError(DashboardError):
    """Bad input shape, length or missing required field."""
    kind = "validation"
    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message, field=field)
        self.field = field


class EmptyList(ValidationError):
    def __init__(self, field: str = "ordered_ids"):
        super().__init__(field, "At least one id is required")


class NotFoundError(DashboardError):
    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity.capitalize()} not found", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class PermissionDenied(DashboardError):
    kind = "forbidden"
    status_code = 403


class IntegrityViolation(DashboardError):
    """Business-rule refusal; the store is left unchanged."""
    kind = "integrity"
    status_code = 409


class DepthExceeded(IntegrityViolation):
    def __init__(self, max_depth: int, depth: int):
        super().__init__(
            f"Category hierarchy is limited to {max_depth} levels",
            max_depth=max_depth,
            depth=depth,
        )
        self.max_depth = max_depth
        self.depth = depth


class SelfParentError(IntegrityViolation):
    def __init__(self, category_id: int):
        super().__init__("A category cannot be its own parent", category_id=category_id)


class CycleError(IntegrityViolation):
    def __init__(self, category_id: int, parent_id: int):
        super().__init__(
            "A category cannot be moved under one of its descendants",
            category_id=category_id,
            parent_id=parent_id,
        )


class HasChildren(IntegrityViolation):
    def __init__(self, count: int):
        super().__init__(f"Category has {count} child categories", count=count)
        self.count = count


class InUse(IntegrityViolation):
    def __init__(self, count: int):
        super().__init__(f"Category is used by {count} segments", count=count)
        self.count = count


class InvalidReference(IntegrityViolation):
    def __init__(self, ids: list, material_id: Optional[int] = None):
        super().__init__(
            "Some segments do not exist or belong to another material",
            ids=sorted(ids),
            material_id=material_id,
        )
        self.ids = sorted(ids)
