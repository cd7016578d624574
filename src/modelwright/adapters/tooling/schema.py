"""Pydantic models for tool-layer requests and responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


class ToolRequest(ToolBaseModel):
    id: str | None = None
    action: str = Field(min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)


class CapabilitiesParameters(ToolBaseModel):
    object_type: str = Field(alias="objectType", min_length=1)


class ModificationParameters(ToolBaseModel):
    object_type: str = Field(alias="objectType", min_length=1)
    object_name: str = Field(alias="objectName", min_length=1)
    method_name: str = Field(alias="methodName", min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)


class ToolResponse(ToolBaseModel):
    id: str | None = None
    success: bool
    data: Any = None
    error: str | None = None
    processing_time_ms: float = Field(default=0.0, alias="processingTimeMs")
