"""
Rail Complaint Desk - Response Envelope
Every successful response is {success, message?, data}.
"""
from typing import Any, Dict, Optional


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Wrap a payload in the standard success envelope."""
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    body["data"] = data
    return body
