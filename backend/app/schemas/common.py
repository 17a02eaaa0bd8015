"""
Shared response envelope helpers.

Every endpoint answers with ``{"success": true, "data": ..., ...}``; errors use
the envelope produced by ``backend.app.core.exceptions``.
"""

from pydantic import BaseModel
from typing import Any, Dict, Optional


class MessageResponse(BaseModel):
    """Schema for acknowledgements without a payload."""
    success: bool = True
    message: str


def success_response(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    body.update(extra)
    return body
