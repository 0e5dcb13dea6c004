from __future__ import annotations

import io
from datetime import datetime, timezone

from reportlab.graphics import renderPDF
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

QR_SIZE = 110
BLOCK_HEIGHT = 150


def _draw_qr(c: canvas.Canvas, data: str, x: float, y: float, size: float = QR_SIZE) -> None:
    widget = QrCodeWidget(data)
    x0, y0, x1, y1 = widget.getBounds()
    d = Drawing(size, size, transform=[size / (x1 - x0), 0, 0, size / (y1 - y0), 0, 0])
    d.add(widget)
    renderPDF.draw(d, c, x, y)


def render_booking_pdf_bytes(*, booking_id: str, holder_name: str, event_title: str, event_start: str,
                             presenter: str, tickets: list[dict]) -> bytes:
    """Return A4 PDF bytes with one block per ticket. Pure function.

    tickets: dicts with ticket_id, seq, total, validation_url, is_used
    """
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    _, h = A4

    def header():
        c.setFont("Helvetica-Bold", 18)
        c.drawString(40, h - 60, event_title or "Event")
        c.setFont("Helvetica", 11)
        c.drawString(40, h - 80, f"Date: {event_start}")
        if presenter:
            c.drawString(40, h - 96, f"Presenter: {presenter}")
        c.drawString(40, h - 112, f"Name: {holder_name or '(Not provided)'}")
        c.drawString(40, h - 128, f"Booking ID: {booking_id}")

    header()
    y = h - 160
    for t in tickets:
        if y - BLOCK_HEIGHT < 60:
            c.showPage()
            header()
            y = h - 160
        top = y
        c.setFont("Helvetica-Bold", 12)
        c.drawString(40, top - 20, f"Ticket {t['seq']} of {t['total']}")
        c.setFont("Helvetica", 10)
        c.drawString(40, top - 38, f"Ticket ID: {t['ticket_id']}")
        c.drawString(40, top - 54, f"Status: {'USED' if t['is_used'] else 'VALID'}")
        c.setFont("Helvetica", 8)
        c.drawString(40, top - 70, t["validation_url"][:95])
        _draw_qr(c, t["validation_url"], 430, top - BLOCK_HEIGHT + 20)
        c.line(40, top - BLOCK_HEIGHT + 10, 555, top - BLOCK_HEIGHT + 10)
        y = top - BLOCK_HEIGHT

    # Footer
    c.setFont("Helvetica", 9)
    c.drawString(40, 40, "Show the QR code at the entrance. Each code admits one person once.")
    c.drawString(40, 26, f"Generated: {datetime.now(timezone.utc).isoformat()}")

    c.showPage()
    c.save()
    return buf.getvalue()
