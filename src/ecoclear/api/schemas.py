"""Pydantic request/response schemas for the EcoClear API."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CategoryStyleSchema(BaseModel):
    """Presentation theme for a waste category."""

    model_config = ConfigDict(from_attributes=True)

    bg: str
    text: str
    light: str
    border: str
    icon: str


class ClassificationResponse(BaseModel):
    """A classification result plus the theme to render it with."""

    category: str
    confidence: float = Field(ge=0.0, le=1.0)
    confidence_percent: int = Field(ge=0, le=100)
    label: str = Field(description="Top label reported by the model")
    disposal_instructions: str
    reasoning: str
    style: CategoryStyleSchema


class IntakeStatus(StrEnum):
    LOADING = "loading"
    OFFLINE = "offline"
    READY = "ready"


class ResultPanel(StrEnum):
    AWAITING_INPUT = "awaiting_input"
    ANALYZING = "analyzing"
    RESULT = "result"
    PREVIEW = "preview"


class IntakeView(BaseModel):
    """Left-hand side: model status and the upload control."""

    status: IntakeStatus
    disabled: bool = Field(description="True while uploads are not accepted")
    error: str | None = None


class SessionView(BaseModel):
    """Everything a client needs to render one classification session."""

    session_id: str
    intake: IntakeView
    panel: ResultPanel
    preview_url: str | None = None
    result: ClassificationResponse | None = None


class CategoryInfo(BaseModel):
    category: str
    style: CategoryStyleSchema
    disposal_instructions: str


class CategoriesResponse(BaseModel):
    categories: list[CategoryInfo]
    fallback: CategoryInfo


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    gpu: bool
    model: str
    model_loaded: bool
    models_loaded: list[str]
    sessions: int
    concurrent_requests: int
    queue_depth: int


class ModelInfo(BaseModel):
    """Information about an available model."""

    name: str
    task: Literal["image_classification"] = "image_classification"
    status: str = Field(description="Model status: 'active' or 'available'")
    license: str
    description: str


class ModelsResponse(BaseModel):
    """Response for the models listing endpoint."""

    models: list[ModelInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
