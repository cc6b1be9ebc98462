from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookEvent(BaseModel):
    """Database change event: one row inserted, updated or deleted"""

    type: Literal["INSERT", "UPDATE", "DELETE"]
    table: str
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None
    schema_name: Optional[str] = Field(None, alias="schema")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
