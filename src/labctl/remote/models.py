"""Wire models exchanged with labagent and labapp."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PeerInfo(BaseModel):
    """Identity and listen addresses of a labapp's peer."""

    model_config = {"populate_by_name": True}

    id: str = Field(alias="ID")
    addrs: list[str] = Field(default_factory=list, alias="Addrs")


class Task(BaseModel):
    """A unit of work dispatched to a labapp.

    ``type`` is passed through as given; the labapp decides which types and
    subjects it accepts.
    """

    model_config = {"frozen": True}

    type: str
    subject: str
