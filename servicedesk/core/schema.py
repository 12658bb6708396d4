from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, constr, field_validator, model_validator

RequestStatus = Literal["Pending", "In Progress", "Completed"]

STATUSES: tuple[str, ...] = ("Pending", "In Progress", "Completed")


class RequestRecord(BaseModel):
    """A single service request as returned by the request store."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | int
    issue: constr(strip_whitespace=True, min_length=1)
    workgroup: str = ""
    requested_by: str = Field(default="", validation_alias=AliasChoices("requested_by", "requestedBy", "requestedby"))
    service_by: str | None = Field(default=None, validation_alias=AliasChoices("service_by", "serviceBy", "serviceby"))
    repair_done: str = Field(default="", validation_alias=AliasChoices("repair_done", "repairDone"))
    control_number: str = Field(
        default="",
        validation_alias=AliasChoices("control_number", "controlNumber", "controlno"),
    )
    status: RequestStatus = "Pending"
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: datetime | None = Field(default=None, validation_alias=AliasChoices("updated_at", "updatedAt"))

    @field_validator("workgroup", "requested_by", "repair_done", "control_number", mode="before")
    @classmethod
    def _blank_text(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, value: object) -> object:
        if value is None or value == "":
            return "Pending"
        if isinstance(value, str) and value.replace(" ", "").lower() == "inprogress":
            return "In Progress"
        return value

    @model_validator(mode="after")
    def _check_timestamps(self) -> "RequestRecord":
        if self.updated_at is None:
            object.__setattr__(self, "updated_at", self.created_at)
            return self
        if (self.updated_at.tzinfo is None) != (self.created_at.tzinfo is None):
            raise ValueError("createdAt and updatedAt mix naive and aware timestamps")
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt precedes createdAt")
        return self
