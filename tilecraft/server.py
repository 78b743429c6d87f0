"""
FastAPI Server for Tilecraft

Provides REST endpoints for grid splitting and aspect-ratio cropping of
base64-encoded images.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config.settings import TilecraftConfig
from .errors import DecodeError, InvalidLayout, TilecraftError
from .geometry.crop import compute_crop_rect
from .geometry.grid import compute_grid_tiles
from .geometry.models import CROP_RATIOS, GRID_LAYOUTS, CropSpec, GridSpec, get_layout
from .sampling.codec import image_from_base64, image_to_base64
from .sampling.sampler import ImageSampler
from .workflows.crop import resolve_ratio

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

config = TilecraftConfig()

# Create FastAPI app
app = FastAPI(
    title="Tilecraft API",
    description="Grid splitting and aspect-ratio cropping for images",
    version=VERSION,
)

# Add CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str


class SplitRequest(BaseModel):
    """Request body for splitting a base64-encoded image"""
    image: str  # Base64-encoded image (with or without data URL prefix)
    grid_type: str = "9"
    layout_index: int = 0

    # Explicit grid, overrides grid_type/layout_index when both are given
    cols: Optional[int] = None
    rows: Optional[int] = None

    quality: Optional[str] = None


class CropRequest(BaseModel):
    """Request body for cropping a base64-encoded image"""
    image: str
    ratio: str = "1:1"
    pan_x: float = 0.0
    pan_y: float = 0.0
    quality: Optional[str] = None


class TileResponse(BaseModel):
    """One tile of a split"""
    index: int
    col: int
    row: int
    width: int
    height: int
    image: str


class SplitResponse(BaseModel):
    """Split result"""
    grid: str
    tiles: List[TileResponse]


class CropResponse(BaseModel):
    """Crop result"""
    ratio: str
    rect: dict
    width: int
    height: int
    image: str


def make_sampler(quality: Optional[str]) -> ImageSampler:
    try:
        return ImageSampler(quality or config.sampler.quality)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(status="healthy", version=VERSION)


@app.get("/layouts")
async def get_layouts():
    """Grid layouts per tile count and the crop ratio presets"""
    return {
        "grids": {
            grid_type.value: [spec.to_dict() for spec in specs]
            for grid_type, specs in GRID_LAYOUTS.items()
        },
        "crop_ratios": [{"label": r.label, "ratio": r.ratio} for r in CROP_RATIOS],
    }


@app.post("/split", response_model=SplitResponse)
async def split_image(request: SplitRequest):
    """
    Split a base64-encoded image into a uniform grid.

    Tiles are returned in row-major order as base64 PNG.
    """
    try:
        image = image_from_base64(request.image)
        height, width = image.shape[:2]
        logger.info(f"Image decoded: {width}x{height}")

        if request.cols is not None and request.rows is not None:
            grid = GridSpec(cols=request.cols, rows=request.rows)
        else:
            grid = get_layout(request.grid_type, request.layout_index)

        sampler = make_sampler(request.quality)
        rects = compute_grid_tiles(width, height, grid)
        tiles = []
        for idx, rect in enumerate(rects):
            tile = sampler.sample(image, rect)
            tiles.append(TileResponse(
                index=idx,
                col=idx % grid.cols,
                row=idx // grid.cols,
                width=rect.dw,
                height=rect.dh,
                image=image_to_base64(tile),
            ))

        logger.info(f"Split complete: {len(tiles)} tiles ({grid.label})")
        return SplitResponse(grid=grid.label, tiles=tiles)

    except HTTPException:
        raise
    except (DecodeError, InvalidLayout) as e:
        logger.warning(f"Rejected split request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except TilecraftError as e:
        logger.error(f"Split error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/crop", response_model=CropResponse)
async def crop_image(request: CropRequest):
    """Crop a base64-encoded image to an aspect ratio at the given pan."""
    try:
        image = image_from_base64(request.image)
        height, width = image.shape[:2]
        logger.info(f"Image decoded: {width}x{height}")

        ratio = resolve_ratio(request.ratio)
        spec = CropSpec(ratio=ratio.ratio, pan_x=request.pan_x, pan_y=request.pan_y)
        rect = compute_crop_rect(width, height, spec, zoom=config.crop.zoom)

        cropped = make_sampler(request.quality).sample(image, rect)
        logger.info(f"Crop complete: {rect.dw}x{rect.dh} ({ratio.label})")
        return CropResponse(
            ratio=ratio.label,
            rect=rect.to_dict(),
            width=rect.dw,
            height=rect.dh,
            image=image_to_base64(cropped),
        )

    except HTTPException:
        raise
    except (DecodeError, InvalidLayout) as e:
        logger.warning(f"Rejected crop request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except TilecraftError as e:
        logger.error(f"Crop error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
