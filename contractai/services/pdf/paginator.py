"""
Slice a tall captured bitmap into A4 page segments.

The capture is scaled to the page content width, which gives its height in
millimetres (img_height_mm). That height is cut into segments of
`usable_height`; every segment after the first starts `overlap` millimetres
early so a text line sitting exactly on a boundary shows up whole on one of
the two pages.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterator

from PIL import Image

from .layout import PageLayout

logger = logging.getLogger(__name__)

# Float noise when img_height_mm is an exact multiple of usable_height
_EPSILON = 1e-9


@dataclass(frozen=True)
class Segment:
    """One page's worth of the capture, in millimetres of scaled image height"""

    index: int
    start: float
    end: float
    overlap: float

    @property
    def height(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class Placement:
    """A rectangle on the page in millimetres, y measured from the top edge"""

    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class PageSlice:
    segment: Segment
    placement: Placement
    crop_top: int  # px
    crop_bottom: int  # px

    @property
    def crop_height(self) -> int:
        return self.crop_bottom - self.crop_top


def image_height_mm(width_px: int, height_px: int, layout: PageLayout) -> float:
    """Height of the capture once scaled to the page content width"""
    if width_px <= 0 or height_px <= 0:
        return 0.0
    return height_px * layout.content_width / width_px


def pages_needed(img_height_mm: float, layout: PageLayout) -> int:
    if img_height_mm <= 0:
        return 0
    return max(1, math.ceil(img_height_mm / layout.usable_height - _EPSILON))


def paginate(img_height_mm: float, layout: PageLayout) -> list[Segment]:
    """Split [0, img_height_mm] into page segments. Pure: same input, same output."""
    usable = layout.usable_height
    if usable <= 0:
        raise ValueError(f"Page layout leaves no usable height ({usable}mm)")

    segments = []
    for index in range(pages_needed(img_height_mm, layout)):
        overlap = layout.overlap if index > 0 else 0.0
        start = max(0.0, index * usable - overlap)
        end = min(start + usable + overlap, img_height_mm)
        segments.append(Segment(index=index, start=start, end=end, overlap=index * usable - start))
    return segments


def placement_for(segment: Segment, layout: PageLayout) -> Placement:
    """Where a segment goes on its page; never taller than the space above the footer"""
    return Placement(
        x=layout.left_margin,
        y=layout.top_margin,
        width=layout.content_width,
        height=min(segment.height, layout.max_content_height),
    )


def plan_slices(width_px: int, height_px: int, layout: PageLayout) -> list[PageSlice]:
    """Map every segment of a width_px x height_px capture to a pixel crop and a placement"""
    img_height = image_height_mm(width_px, height_px, layout)
    segments = paginate(img_height, layout)
    logger.info(
        f"📐 Capture {width_px}x{height_px}px -> {img_height:.1f}mm, "
        f"usable {layout.usable_height:.1f}mm/page, {len(segments)} page(s)"
    )

    slices = []
    for segment in segments:
        placement = placement_for(segment, layout)
        crop_top = int(round(segment.start / img_height * height_px))
        crop_bottom = min(height_px, int(round(segment.end / img_height * height_px)))
        if segment.height <= 0 or placement.height <= 0 or crop_bottom <= crop_top:
            logger.warning(
                f"⚠️ Skipping segment {segment.index}: height {segment.height:.2f}mm, "
                f"crop {crop_top}-{crop_bottom}px"
            )
            continue
        slices.append(
            PageSlice(
                segment=segment, placement=placement, crop_top=crop_top, crop_bottom=crop_bottom
            )
        )
    return slices


def crop_slices(
    image: Image.Image, slices: list[PageSlice]
) -> Iterator[tuple[PageSlice, Image.Image]]:
    """Yield each slice with its cropped bitmap, one at a time to bound memory"""
    for page_slice in slices:
        yield page_slice, image.crop((0, page_slice.crop_top, image.width, page_slice.crop_bottom))
