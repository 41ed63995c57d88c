"""Rendering of share snapshots to PDF documents and PNG cards."""

import logging

import fitz

from valueslens.schemas.profile import ExportFormat, ProfileSnapshot

logger = logging.getLogger(__name__)

# US letter in points for the PDF report page
PDF_PAGE_WIDTH = 612
PDF_PAGE_HEIGHT = 792

# Social card size in points; rendered at PNG_DPI
CARD_WIDTH = 600
CARD_HEIGHT = 315
PNG_DPI = 144

MARGIN = 36
BACKGROUND = (0.98, 0.97, 0.95)
INK = (0.12, 0.12, 0.14)
MUTED = (0.42, 0.42, 0.46)
ACCENT = (0.36, 0.29, 0.75)

MEDIA_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "png": "image/png",
}


class RenderService:
    """Service turning a published snapshot into a binary artifact."""

    def render(self, snapshot: ProfileSnapshot, fmt: ExportFormat) -> bytes:
        """Render a snapshot.

        Args:
            snapshot: The published top three values.
            fmt: "pdf" for the report page, "png" for the share card.

        Returns:
            bytes: The encoded document or image.

        Raises:
            ValueError: If the format is not supported.
        """
        if fmt == "pdf":
            return self.render_pdf(snapshot)
        if fmt == "png":
            return self.render_png(snapshot)
        raise ValueError(f"Unsupported export format: {fmt}")

    def render_pdf(self, snapshot: ProfileSnapshot) -> bytes:
        doc = fitz.open()
        try:
            page = doc.new_page(width=PDF_PAGE_WIDTH, height=PDF_PAGE_HEIGHT)
            page.draw_rect(page.rect, color=None, fill=BACKGROUND)
            page.insert_text((MARGIN, MARGIN + 24), "My Values", fontsize=26, fontname="hebo", color=INK)

            y = MARGIN + 60
            width = PDF_PAGE_WIDTH - 2 * MARGIN
            for entry in snapshot.top3:
                page.insert_text((MARGIN, y), f"{entry.rank}. {entry.value_name}", fontsize=18, fontname="hebo", color=ACCENT)
                y += 10
                y = self._textbox(page, MARGIN, y, width, entry.tagline, 13, INK)
                if entry.definition:
                    y = self._textbox(page, MARGIN, y, width, entry.definition, 11, MUTED)
                for anchor in entry.behavioral_anchors or []:
                    y = self._textbox(page, MARGIN + 12, y, width - 12, f"- {anchor}", 10, MUTED)
                y += 24

            data = doc.tobytes()
        finally:
            doc.close()

        logger.info("Rendered PDF report (%d bytes)", len(data))
        return data

    def render_png(self, snapshot: ProfileSnapshot) -> bytes:
        doc = fitz.open()
        try:
            page = doc.new_page(width=CARD_WIDTH, height=CARD_HEIGHT)
            page.draw_rect(page.rect, color=None, fill=BACKGROUND)
            page.insert_text((MARGIN, MARGIN + 8), "MY TOP VALUES", fontsize=11, fontname="hebo", color=MUTED)

            y = MARGIN + 30
            width = CARD_WIDTH - 2 * MARGIN
            for entry in snapshot.top3:
                page.insert_text((MARGIN, y + 16), f"{entry.rank}. {entry.value_name}", fontsize=18, fontname="hebo", color=ACCENT)
                y += 22
                y = self._textbox(page, MARGIN + 18, y, width - 18, entry.tagline, 11, INK) + 14

            pixmap = page.get_pixmap(dpi=PNG_DPI)
            data = pixmap.tobytes("png")
        finally:
            doc.close()

        logger.info("Rendered PNG card (%d bytes)", len(data))
        return data

    @staticmethod
    def _textbox(page: fitz.Page, x: float, y: float, width: float, text: str, fontsize: float, color: tuple) -> float:
        """Write wrapped text at y and return the y below it."""
        line_height = fontsize * 1.4
        # Generous box; insert_textbox reports the unused height.
        box = fitz.Rect(x, y, x + width, y + line_height * 12)
        remaining = page.insert_textbox(box, text, fontsize=fontsize, fontname="helv", color=color)
        if remaining < 0:
            logger.warning("Text did not fit while rendering: %.40s", text)
            return y + box.height
        return y + box.height - remaining
