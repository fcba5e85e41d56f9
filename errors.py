"""Error taxonomy shared by repositories, services and the HTTP layer."""

from typing import Optional


class PortfolioError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(PortfolioError):
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, fields: Optional[dict] = None):
        super().__init__(message)
        self.fields = fields or {}


class InvalidId(ValidationError):
    default_message = "Invalid id"


class NotFound(PortfolioError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(PortfolioError):
    status_code = 500
    default_message = "Upstream service failure"


class DeliveryError(UpstreamError):
    default_message = "Failed to send message"
