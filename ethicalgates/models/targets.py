"""Audit targets and raw, tool-native findings."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Viewport(BaseModel):
    """Browser viewport an external tool should emulate."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=1920, gt=0)
    height: int = Field(default=1080, gt=0)


class AuthType(str, Enum):
    """How an external tool authenticates against the target."""

    NONE = "none"
    BASIC = "basic"
    BEARER = "bearer"
    COOKIE = "cookie"


class Authentication(BaseModel):
    """Authentication descriptor handed through to tool adapters untouched."""

    model_config = ConfigDict(frozen=True)

    type: AuthType = AuthType.NONE
    credentials: dict[str, str] = Field(default_factory=dict, repr=False)


class Target(BaseModel):
    """A page or service to audit.  Immutable, supplied by configuration."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    viewport: Viewport = Viewport()
    authentication: Authentication = Authentication()


class RawFinding(BaseModel):
    """A single finding in a tool's native shape.

    ``fields`` is opaque to the engine until the normalizer maps it.
    """

    model_config = ConfigDict(frozen=True)

    tool: str
    fields: dict[str, Any] = Field(default_factory=dict)


class RawResult(BaseModel):
    """Everything one tool adapter produced for one target.

    ``metrics`` carries tool measurements that are not findings, such as
    ``transfer_bytes`` observed by a performance profiler.
    """

    model_config = ConfigDict(frozen=True)

    tool: str
    target_url: str
    findings: list[RawFinding] = []
    metrics: dict[str, float] = Field(default_factory=dict)
