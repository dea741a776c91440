"""Error taxonomy shared by the lifecycle engine and the HTTP layer."""


class TippingError(Exception):
    """Base error. Subclasses map to a distinct HTTP status and kind."""

    status_code = 500
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TippingError):
    """Malformed or missing input."""

    status_code = 400
    kind = "validation_error"


class NotFoundError(TippingError):
    """Referenced entity does not exist."""

    status_code = 404
    kind = "not_found"

    def __init__(self, entity: str, entity_id=None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(TippingError):
    """Role or lifecycle-state violation."""

    status_code = 403
    kind = "forbidden"


class StoreError(TippingError):
    """Persistence unreachable, timed out, or an unclassified constraint violation."""

    status_code = 503
    kind = "store_error"
