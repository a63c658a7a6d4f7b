# =============================================================================
# app/routers/images.py - Image Tool Endpoints
# =============================================================================
# Wraps PixelCut. Both tools are credit-metered and logged with provider
# "pixelcut".
# =============================================================================

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user
from app.dependencies import PixelcutDep
from app.exceptions import InvalidScaleError
from core.services.tool_service import ToolService
from lib.pixelcut_client import VALID_SCALES

logger = logging.getLogger(__name__)

router = APIRouter()

PROVIDER = "pixelcut"
UPSCALE_FEATURE = "tools.image_upscale"
BACKGROUND_FEATURE = "tools.background_removal"


class UpscaleRequest(BaseModel):
    image: str = Field(..., min_length=1, description="Image URL or data: URL")
    scale: int = Field(default=2, description="2 or 4")


class RemoveBackgroundRequest(BaseModel):
    image: str = Field(..., min_length=1, description="Image URL or data: URL")


def _describe(image: str) -> str:
    return image if image.startswith(("http://", "https://")) else "inline image"


@router.post("/upscale")
async def upscale_image(
    request: UpscaleRequest,
    client: PixelcutDep,
    user: AuthUser = Depends(get_current_user),
):
    """Upscale an image 2x or 4x."""
    # Checked before the credit check so a bad request is never charged
    if request.scale not in VALID_SCALES:
        raise InvalidScaleError(request.scale)

    metered = ToolService.run_metered(
        user,
        UPSCALE_FEATURE,
        PROVIDER,
        lambda: client.upscale(request.image, request.scale),
        request_summary=f"upscale x{request.scale}: {_describe(request.image)}",
    )
    return {
        "result_url": metered.result,
        "scale": request.scale,
        "credits_charged": metered.debit.charged,
        "balance_after": metered.debit.balance_after,
    }


@router.post("/remove-background")
async def remove_background(
    request: RemoveBackgroundRequest,
    client: PixelcutDep,
    user: AuthUser = Depends(get_current_user),
):
    """Remove the background, returning a transparent PNG."""
    metered = ToolService.run_metered(
        user,
        BACKGROUND_FEATURE,
        PROVIDER,
        lambda: client.remove_background(request.image),
        request_summary=f"remove-background: {_describe(request.image)}",
    )
    return {
        "result_url": metered.result,
        "credits_charged": metered.debit.charged,
        "balance_after": metered.debit.balance_after,
    }
