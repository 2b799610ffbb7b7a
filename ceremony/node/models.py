"""
Node Models - Pydantic models for the node's JSON-RPC responses.

Field names follow Python conventions; aliases carry the node's
camelCase/PascalCase names so responses validate as-is.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..engine_core.state import EpochPeriod


class EpochInfo(BaseModel):
    """Result of dna_epoch."""
    epoch: int
    current_period: EpochPeriod = Field(default=EpochPeriod.NONE, alias="currentPeriod")
    next_validation: Optional[datetime] = Field(default=None, alias="nextValidation")
    current_validation_start: Optional[datetime] = Field(
        default=None, alias="currentValidationStart"
    )

    model_config = {"populate_by_name": True}


class CeremonyIntervals(BaseModel):
    """Result of dna_ceremonyIntervals (seconds)."""
    short_session_duration: int = Field(alias="ShortSessionDuration")
    long_session_duration: int = Field(alias="LongSessionDuration")

    model_config = {"populate_by_name": True}


class FlipHashItem(BaseModel):
    """One entry of flip_shortHashes / flip_longHashes."""
    hash: str
    extra: bool = False
    ready: bool = False


class FlipPayload(BaseModel):
    """Result of flip_get."""
    hex: Optional[str] = None
    ready: Optional[bool] = None
    hidden: Optional[bool] = None


class AnswerItem(BaseModel):
    """One submitted answer."""
    hash: str
    answer: int = 0
    easy: bool = False


class SubmitAnswersParams(BaseModel):
    """Params of flip_submitShortAnswers / flip_submitLongAnswers."""
    answers: list[AnswerItem] = Field(default_factory=list)
    nonce: int = 0
    epoch: int = 0


class RpcRequest(BaseModel):
    """JSON-RPC request envelope."""
    method: str
    params: list[Any] = Field(default_factory=list)
    id: int = 1
