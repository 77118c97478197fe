"""API route definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, Response, UploadFile, status

from ecoclear.api.middleware import (
    get_classifier,
    get_inference_pool,
    get_model_manager,
    get_registry,
    get_settings_from_request,
    verify_api_key,
)
from ecoclear.api.schemas import (
    CategoriesResponse,
    CategoryInfo,
    CategoryStyleSchema,
    ClassificationResponse,
    ErrorResponse,
    HealthResponse,
    ModelInfo,
    ModelsResponse,
    SessionView,
)
from ecoclear.categories import (
    FALLBACK_INSTRUCTIONS,
    FALLBACK_STYLE,
    WasteCategory,
    category_style,
    disposal_instructions,
)
from ecoclear.errors import ClassificationError, ImageDecodeError
from ecoclear.ml.model_manager import MODEL_REGISTRY
from ecoclear.ml.waste_classifier import ImageUpload
from ecoclear.session.presenter import present, present_result
from ecoclear.session.state import ANALYSIS_FAILED_MESSAGE

if TYPE_CHECKING:
    from ecoclear.session.orchestrator import ClassificationSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])

_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


def _get_session(request: Request, session_id: str) -> ClassificationSession:
    session = get_registry(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session


async def _read_upload(request: Request, file: UploadFile) -> ImageUpload:
    limit = get_settings_from_request(request).max_file_size
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the {limit} byte limit",
        )
    return ImageUpload(
        filename=file.filename or "upload",
        content_type=file.content_type or "application/octet-stream",
        data=data,
    )


# -- Sessions -----------------------------------------------------------------


@router.post(
    "/sessions",
    response_model=SessionView,
    status_code=status.HTTP_201_CREATED,
    summary="Start a classification session",
)
async def create_session(request: Request) -> SessionView:
    """Create a session; its model starts loading immediately."""
    session = get_registry(request).create()
    return present(session)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionView,
    responses=_NOT_FOUND,
    summary="Get the current session view",
)
async def get_session(request: Request, session_id: str) -> SessionView:
    return present(_get_session(request, session_id))


@router.post(
    "/sessions/{session_id}/images",
    response_model=SessionView,
    status_code=status.HTTP_202_ACCEPTED,
    responses={**_NOT_FOUND, 413: {"model": ErrorResponse}},
    summary="Select an image for classification",
)
async def select_image(request: Request, session_id: str, file: UploadFile) -> SessionView:
    """Start classifying an image.

    Selections made while the model is loading, offline, or busy with another
    image are ignored and the unchanged view is returned.
    """
    session = _get_session(request, session_id)
    upload = await _read_upload(request, file)
    if not session.submit(upload):
        logger.info("Session %s ignored upload %s", session.id, upload.filename)
    return present(session)


@router.get(
    "/sessions/{session_id}/preview/{token}",
    response_class=Response,
    responses=_NOT_FOUND,
    summary="Fetch the preview image of the current selection",
)
async def get_preview(request: Request, session_id: str, token: str) -> Response:
    session = _get_session(request, session_id)
    item = session.previews.get(token)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Preview not found")
    content_type, data = item
    return Response(content=data, media_type=content_type, headers={"Cache-Control": "no-store"})


@router.post(
    "/sessions/{session_id}/restart",
    response_model=SessionView,
    status_code=status.HTTP_202_ACCEPTED,
    responses=_NOT_FOUND,
    summary="Reload the model for a session",
)
async def restart_session(request: Request, session_id: str) -> SessionView:
    """Discard the session's state and run the model load again."""
    session = _get_session(request, session_id)
    await session.restart(wait=False)
    return present(session)


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="End a session and release its preview",
)
async def delete_session(request: Request, session_id: str) -> Response:
    if not get_registry(request).close(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- One-shot classification --------------------------------------------------


@router.post(
    "/classify",
    response_model=ClassificationResponse,
    responses={
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Classify a single image without a session",
)
async def classify(request: Request, file: UploadFile) -> ClassificationResponse:
    classifier = get_classifier(request)
    if not classifier.is_loaded:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Model not loaded")

    upload = await _read_upload(request, file)
    try:
        result = await classifier.classify(upload)
    except ImageDecodeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ClassificationError as exc:
        if isinstance(exc.__cause__, TimeoutError):
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Server busy") from exc
        logger.exception("One-shot classification of %s failed", upload.filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=ANALYSIS_FAILED_MESSAGE
        ) from exc
    return present_result(result)


# -- Service info ---------------------------------------------------------------


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    summary="List waste categories with their themes and disposal guidance",
)
async def list_categories() -> CategoriesResponse:
    categories = [
        CategoryInfo(
            category=str(category),
            style=CategoryStyleSchema.model_validate(category_style(category)),
            disposal_instructions=disposal_instructions(category),
        )
        for category in WasteCategory
        if category is not WasteCategory.OTHER
    ]
    fallback = CategoryInfo(
        category=str(WasteCategory.OTHER),
        style=CategoryStyleSchema.model_validate(FALLBACK_STYLE),
        disposal_instructions=FALLBACK_INSTRUCTIONS,
    )
    return CategoriesResponse(categories=categories, fallback=fallback)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = get_settings_from_request(request)
    pool = get_inference_pool(request)
    return HealthResponse(
        status="ok",
        gpu=settings.device == "cuda",
        model=settings.classifier_model,
        model_loaded=get_classifier(request).is_loaded,
        models_loaded=get_model_manager(request).get_loaded_models(),
        sessions=len(get_registry(request)),
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List available models",
)
async def list_models(request: Request) -> ModelsResponse:
    """Return available models and which one is active."""
    settings = get_settings_from_request(request)
    models = [
        ModelInfo(
            name=spec.name,
            status="active" if spec.name == settings.classifier_model else "available",
            license=spec.license,
            description=spec.description,
        )
        for spec in MODEL_REGISTRY.values()
    ]
    return ModelsResponse(models=models)
