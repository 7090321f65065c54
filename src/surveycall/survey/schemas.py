"""
Pydantic schemas for the call-flow webhook.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from surveycall.survey.models import IDENTIFIER_MAX_LENGTH


class RecordingReference(BaseModel):
    """Recording reference delivered when a record step finishes."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    leg_id: str = Field(
        ...,
        alias="legId",
        max_length=IDENTIFIER_MAX_LENGTH,
        description="Telephony leg that produced the recording",
    )
    recording_id: str = Field(
        ...,
        alias="id",
        max_length=IDENTIFIER_MAX_LENGTH,
        description="Recording identifier",
    )

    @field_validator("leg_id", "recording_id")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class SayOptions(BaseModel):
    payload: str
    voice: str
    language: str


class SayStep(BaseModel):
    """Speak a prompt to the caller."""

    action: Literal["say"] = "say"
    options: SayOptions


class RecordOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    finish_on_key: str = Field(alias="finishOnKey")
    timeout: int
    on_finish: str = Field(alias="onFinish")


class RecordStep(BaseModel):
    """Record the caller and post the result to on_finish."""

    action: Literal["record"] = "record"
    options: RecordOptions


class CallFlow(BaseModel):
    """Call-flow document returned to the telephony platform."""

    title: str
    steps: list[SayStep | RecordStep] = Field(default_factory=list)

    def to_wire(self) -> dict:
        """Serialize using the platform's camelCase field names."""
        return self.model_dump(by_alias=True)
