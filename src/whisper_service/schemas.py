from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator

from .types import TranscriptionResult


class TranscribeRequest(BaseModel):
    model: str
    file: str = Field(description="base64-encoded audio in any format ffmpeg can read")

    @field_validator("model")
    @classmethod
    def model_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("model is required")
        return v


class SegmentPayload(BaseModel):
    start: int
    end: int
    text: str


class TranscribeResponse(BaseModel):
    segments: List[SegmentPayload] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: TranscriptionResult) -> "TranscribeResponse":
        return cls(
            segments=[SegmentPayload(start=s.start, end=s.end, text=s.text) for s in result.segments]
        )


class ErrorResponse(BaseModel):
    error: str


__all__ = ["TranscribeRequest", "SegmentPayload", "TranscribeResponse", "ErrorResponse"]
