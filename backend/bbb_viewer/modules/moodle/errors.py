from __future__ import annotations

from typing import Optional


class MoodleFault(Exception):
    """Base class for every failure raised by the Moodle web-service client."""


class ApiFault(MoodleFault):
    """Moodle answered with an ``exception`` payload.

    Transport, decode and not-found faults derive from this class, so a caller
    catching ``ApiFault`` sees any failed call.
    """

    def __init__(self, message: str, errorcode: Optional[str] = None, function: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.errorcode = errorcode
        self.function = function


class TransportFault(ApiFault):
    """Connection error, timeout or a non-200 HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None, function: Optional[str] = None):
        super().__init__(message, function=function)
        self.status_code = status_code


class DecodeFault(ApiFault):
    """The response body was not valid JSON."""


class NotFoundFault(ApiFault):
    """A lookup by id returned no record."""
