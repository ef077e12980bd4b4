# reportsync/models/common.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SyncBaseModel(BaseModel):
    """
    Shared config for records that travel between the backend,
    the persisted cache and the HTTP surface.
    - unknown keys from the backend are ignored
    - enums stay members in memory and dump as their plain values
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=False,
        extra="ignore",
    )
