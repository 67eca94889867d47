from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserMemory(BaseModel):
    """Model for User Memories"""

    memory: str
    topics: Optional[List[str]] = None
    input: Optional[str] = None
    last_updated: Optional[datetime] = None
    memory_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        _dict = self.model_dump(mode="json", exclude_none=True)
        return _dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserMemory":
        return cls.model_validate(data)


class MemoryRow(BaseModel):
    """Memory Row that is stored in the database"""

    id: str
    user_id: Optional[str] = None
    memory: Dict[str, Any]
    embedding: Optional[List[float]] = None
    last_updated: Optional[datetime] = Field(default_factory=datetime.now)

    model_config = ConfigDict(from_attributes=True, arbitrary_types_allowed=True)

    def to_dict(self) -> Dict[str, Any]:
        _dict = self.model_dump(exclude={"last_updated"})
        _dict["last_updated"] = self.last_updated.isoformat() if self.last_updated else None
        return _dict
