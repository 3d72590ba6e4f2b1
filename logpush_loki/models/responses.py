"""
Response envelopes returned to the log-export caller
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

MESSAGE_USE_POST = 'please authenticate and use POST requests'
MESSAGE_AUTHENTICATE = 'please authenticate'
MESSAGE_INTERNAL_ERROR = 'internal server error'


def create_envelope(success: bool, message: Optional[str] = None) -> Dict[str, Any]:
    """
    Create the {success, message} body the caller expects

    Args:
        success: Whether the batch was accepted
        message: Reason for a failure

    Returns:
        Envelope dictionary
    """
    body: Dict[str, Any] = {"success": success}
    if message:
        body["message"] = message
    return body


def success_response(status_code: int = 200) -> JSONResponse:
    """Create a success response"""
    return JSONResponse(status_code=status_code, content=create_envelope(True))


def error_response(message: str, status_code: int = 400, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """
    Create an error response

    Args:
        message: Error message
        status_code: HTTP status code (default 400)
        headers: Additional HTTP headers

    Returns:
        JSON error response
    """
    return JSONResponse(status_code=status_code, content=create_envelope(False, message), headers=headers)


def method_not_allowed_response() -> JSONResponse:
    return error_response(MESSAGE_USE_POST, status_code=405, headers={"Allow": "POST"})


def unauthenticated_response() -> JSONResponse:
    return error_response(MESSAGE_AUTHENTICATE, status_code=401)


def internal_error_response() -> JSONResponse:
    return error_response(MESSAGE_INTERNAL_ERROR, status_code=500)
