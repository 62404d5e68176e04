"""Page geometry shared by the raster and text PDF producers.

All lengths are millimetres measured from the top-left corner of the page.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class PageLayout:
    page_width: float = 210.0  # A4
    page_height: float = 297.0
    top_margin: float = 15.0
    bottom_margin: float = 35.0  # keeps content above the footer band
    left_margin: float = 15.0
    right_margin: float = 15.0
    break_buffer: float = 8.0  # slack so a text line is not cut at the page edge
    overlap: float = 3.0  # repeated at the top of every page after the first

    footer_offset: float = 15.0  # footer baseline, from the bottom edge
    footer_rule_gap: float = 4.0
    footer_font_size: float = 8.0

    watermark_box: float = 70.0
    watermark_opacity: float = 0.12

    lossless_limit_bytes: int = 5 * 1024 * 1024
    lossy_quality: int = 95

    @property
    def content_width(self) -> float:
        return self.page_width - self.left_margin - self.right_margin

    @property
    def usable_height(self) -> float:
        return self.page_height - self.top_margin - self.bottom_margin - self.break_buffer

    @property
    def content_bottom(self) -> float:
        return self.page_height - self.bottom_margin

    @property
    def max_content_height(self) -> float:
        return self.content_bottom - self.top_margin

    @property
    def footer_baseline(self) -> float:
        return self.page_height - self.footer_offset

    @property
    def footer_rule_y(self) -> float:
        return self.footer_baseline - self.footer_rule_gap

    @classmethod
    def for_text(cls) -> "PageLayout":
        """Layout for the text renderer: wider margins, no slicing parameters."""
        return cls(
            top_margin=20.0,
            bottom_margin=25.0,
            left_margin=20.0,
            right_margin=20.0,
            break_buffer=0.0,
            overlap=0.0,
            watermark_box=80.0,
            watermark_opacity=0.10,
        )

    def with_changes(self, **changes) -> "PageLayout":
        return replace(self, **changes)


DEFAULT_LAYOUT = PageLayout()
TEXT_LAYOUT = PageLayout.for_text()
