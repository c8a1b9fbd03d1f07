"""
Voice Domain Models
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any


class Voice(BaseModel):
    """Voice-provider voice, read-only reference data"""
    id: str  # Provider voice ID
    name: str
    description: Optional[str] = None
    is_cloned: bool = False
    sample_url: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    category: Optional[str] = None

    model_config = {"frozen": True, "from_attributes": True}
