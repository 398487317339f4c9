"""Pydantic models for the Loki push payload."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.entries import Stream


class StreamLabels(BaseModel):
    """Label set attached to one pushed stream."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    app: str = Field(..., min_length=1, description="Application label")
    session_id: str = Field(..., min_length=1, description="Process session identity")
    debug: str = Field(..., pattern=r"^(true|false)$", description="Whether the producing build is a debug build")
    level: str = Field(..., min_length=1, description="Level shared by every value in the stream")


class PushStream(BaseModel):
    """One label-grouped set of timestamped lines."""

    model_config = ConfigDict(extra="forbid")

    stream: StreamLabels
    values: List[List[str]] = Field(default_factory=list, description="[unix-nanos, line] pairs")

    @field_validator("values")
    @classmethod
    def check_pairs(cls, v: List[List[str]]) -> List[List[str]]:
        """Every value must be a [timestamp, line] pair with a numeric timestamp."""
        for pair in v:
            if len(pair) != 2 or not pair[0].isdigit():
                raise ValueError(f"Invalid stream value: {pair!r}")
        return v

    @classmethod
    def from_stream(cls, stream: Stream) -> PushStream:
        return cls(stream=StreamLabels(**stream.labels), values=[entry.to_value() for entry in stream.entries])


class PushRequest(BaseModel):
    """Body of a single push, one stream per distinct level."""

    model_config = ConfigDict(extra="forbid")

    streams: List[PushStream] = Field(default_factory=list)

    @classmethod
    def from_streams(cls, streams: List[Stream]) -> PushRequest:
        return cls(streams=[PushStream.from_stream(stream) for stream in streams])

    def entry_count(self) -> int:
        """Return the number of lines carried by this push."""
        return sum(len(stream.values) for stream in self.streams)

    def to_json_bytes(self) -> bytes:
        """Serialize the push body for the HTTP request."""
        return self.model_dump_json().encode("utf-8")
