from pydantic import BaseModel
from typing import Dict, List, Optional

class CurrentUser(BaseModel):
    """Caller identity taken from the platform token."""
    id: str
    email: Optional[str] = None
    permissions: List[Dict[str, str]] = []
