"""Share profile API routes."""

from fastapi import APIRouter, HTTPException, Query, Response, status

from valueslens.schemas.profile import (
    ExportFormat,
    ProfileCreate,
    ProfileCreateResponse,
    ProfileResponse,
)
from valueslens.services.profile_service import ProfileService
from valueslens.services.render_service import MEDIA_TYPES, RenderService

router = APIRouter(prefix="/profiles", tags=["profiles"])


async def _get_profile_or_404(slug: str) -> ProfileResponse:
    service = ProfileService()
    profile = await service.get_by_slug(slug)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return profile


@router.post(
    "",
    response_model=ProfileCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a share profile",
    description="Publishes the top three values. Returns the existing slug if the session already has one.",
)
async def create_profile(data: ProfileCreate) -> ProfileCreateResponse:
    """Publish a share profile.

    Args:
        data: Ranked values and definitions.

    Returns:
        ProfileCreateResponse: Slug and share URL.
    """
    service = ProfileService()
    return await service.create_profile(data)


@router.get(
    "/{slug}",
    response_model=ProfileResponse,
    summary="Get a share profile",
    description="Returns a published profile by its slug.",
)
async def get_profile(slug: str) -> ProfileResponse:
    """Get a published profile.

    Args:
        slug: The share slug.

    Returns:
        ProfileResponse: The published snapshot.

    Raises:
        HTTPException: 404 if no profile has this slug.
    """
    return await _get_profile_or_404(slug)


@router.get(
    "/{slug}/export",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}, "image/png": {}}}},
    summary="Export a share profile",
    description="Renders a published profile as a PDF report page or PNG share card.",
)
async def export_profile(
    slug: str,
    format: ExportFormat = Query(default="png", description="Export format"),
) -> Response:
    """Render a published profile.

    Args:
        slug: The share slug.
        format: "pdf" or "png".

    Returns:
        Response: The rendered file.

    Raises:
        HTTPException: 404 if no profile has this slug.
    """
    profile = await _get_profile_or_404(slug)
    content = RenderService().render(profile.profile, format)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": f'inline; filename="values-{slug}.{format}"'},
    )
