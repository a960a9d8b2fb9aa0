"""Resource definitions for scheduling.

This module handles loading and validating resource definitions including:
- Work type assignments (familiarity and preference per work type)
- Unavailable periods (vacations, leave) per resource
- Employment start and end dates
"""

from datetime import date

from pydantic import BaseModel, Field, model_validator


class UnavailablePeriod(BaseModel):
    """A period (inclusive on both ends) when a resource cannot work."""

    start: date
    end: date
    reason: str | None = None

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "UnavailablePeriod":
        """Ensure end date is not before start date."""
        if self.end < self.start:
            raise ValueError("end date must not be before start date")
        return self


class WorkTypeAssignment(BaseModel):
    """How well, and how willingly, a resource performs a work type.

    familiarity: 1 means fully ramped up, 0.5 means tasks take about twice as
    long, 0 means the resource must not be assigned this work.
    preference: 1 is work they enjoy, 0 is work they will not be given.
    """

    work_type_id: str
    familiarity: float = Field(ge=0, le=1)
    preference: float = Field(ge=0, le=1)


class Resource(BaseModel):
    """A person (or team) that tasks are assigned to."""

    id: str
    name: str
    start_date: date
    end_date: date | None = None
    work_type_assignments: list[WorkTypeAssignment] = Field(
        default_factory=list[WorkTypeAssignment]
    )
    unavailable_periods: list[UnavailablePeriod] = Field(default_factory=list[UnavailablePeriod])

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "Resource":
        """Ensure the end date, when present, is not before the start date."""
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def get_assignment(self, work_type_id: str) -> WorkTypeAssignment | None:
        """Return this resource's assignment for a work type, if any."""
        for assignment in self.work_type_assignments:
            if assignment.work_type_id == work_type_id:
                return assignment
        return None


def build_resource_lookup(resources: list[Resource]) -> dict[str, Resource]:
    """Map resource id to resource, rejecting duplicate ids."""
    lookup: dict[str, Resource] = {}
    for resource in resources:
        if resource.id in lookup:
            raise ValueError(f"Duplicate resource id '{resource.id}'")
        lookup[resource.id] = resource
    return lookup
