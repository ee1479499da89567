"""Pydantic model for one row of the actor-films dataset."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

REQUIRED_COLUMNS = ("actor", "actorid", "film", "year", "votes", "rating", "filmid")


class ActorFilmRow(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    actor: str | None = None
    actorid: str = Field(min_length=1)
    film: str = Field(min_length=1)
    year: int
    votes: int = Field(ge=0)
    rating: float = Field(ge=0.0, le=10.0)
    filmid: str = Field(min_length=1)

    @field_validator("actor", mode="before")
    @classmethod
    def _blank_actor_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value
