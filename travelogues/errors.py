"""
Errors the Travelogues API reports to clients with their own HTTP status
Anything else becomes a generic internal server error
"""

from typing import Optional


class TraveloguesError(Exception):
    """Error carrying the HTTP status and the message shown to the client"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> dict:
        return {"status": self.status_code, "message": self.message}


class PublicationNotFoundError(TraveloguesError):
    """Raised when a publication id has no matching row"""

    status_code = 404

    def __init__(self, publication_id):
        super().__init__(f"Publication ID {publication_id} doesn't exist")
        self.publication_id = publication_id


class InvalidSearchParameterError(TraveloguesError):
    """Raised when a search parameter cannot be interpreted"""

    status_code = 400
