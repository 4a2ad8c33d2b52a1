from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

VALID_ACTIONS = ("like", "pass", "maybe", "save", "open")


class InteractionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Presence and enum membership are checked by the service so they surface as 400s
    place_id: Any = Field(default=None, alias="placeId")
    action: Any = None
    metadata: dict[str, Any] = Field(default_factory=dict)
