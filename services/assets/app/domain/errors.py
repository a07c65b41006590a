"""
Typed errors raised by the asset service.

Each error carries a machine-readable ``code`` and the HTTP status the API
layer answers with, so routes never have to parse messages.

    AssetServiceError
    +-- AssetNotFoundError        404  unknown customId
    +-- InvalidQuantityError      400  move exceeds stock / bad quantity
    +-- InvalidDestinationError   400  unknown building / department / blank user
    +-- AssetConflictError        409  duplicate customId or concurrent update
    +-- StorageFailureError       500  persistence layer failure

Publishing, notification and projection failures are not exceptions: they
are reported as outcome values by the layer that absorbs them.
"""

from typing import Optional


class AssetServiceError(Exception):
    code = "ASSET_SERVICE_ERROR"
    status_code = 500

    def __init__(self, message: str, custom_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.custom_id = custom_id


class AssetNotFoundError(AssetServiceError):
    code = "ASSET_NOT_FOUND"
    status_code = 404

    def __init__(self, custom_id: str):
        super().__init__(f"Asset not found: {custom_id}", custom_id)


class InvalidQuantityError(AssetServiceError):
    code = "INVALID_QUANTITY"
    status_code = 400

    def __init__(self, message: str, custom_id: Optional[str] = None,
                 requested: Optional[object] = None, available: Optional[int] = None):
        super().__init__(message, custom_id)
        self.requested = requested
        self.available = available


class InvalidDestinationError(AssetServiceError):
    code = "INVALID_DESTINATION"
    status_code = 400

    def __init__(self, destination_type: object, destination: object, message: Optional[str] = None):
        super().__init__(message or f"Invalid {destination_type} destination: {destination!r}")
        self.destination_type = destination_type
        self.destination = destination


class AssetConflictError(AssetServiceError):
    code = "ASSET_CONFLICT"
    status_code = 409


class StorageFailureError(AssetServiceError):
    code = "STORAGE_FAILURE"
    status_code = 500
