from typing import Optional

from pydantic import BaseModel


class CallbackAck(BaseModel):
    """Acknowledgement returned to the gateway."""
    status: str
    decision: Optional[str] = None
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
