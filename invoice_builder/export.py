# export.py: HTML preview and PDF rendering of a PreviewModel

import base64
import binascii
import html
import logging
import re
from io import BytesIO
from typing import List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .preview import (
    DEFAULT_FOOTER,
    DEFAULT_INVOICE_NUMBER,
    FOOTER_BRAND,
    LOGO_IMAGE,
    PartyView,
    PreviewModel,
)

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_FILENAME = "Client"
LOGO_SIZE = 16 * mm
_DATA_URI = re.compile(r"^data:([^;,]+)?(;base64)?,(.*)$", re.DOTALL)

THEMES = {
    "light": {"background": "#ffffff", "text": "#000000", "muted": "#666666", "border": "#dddddd"},
    "dark": {"background": "#1e1e1e", "text": "#f2f2f2", "muted": "#aaaaaa", "border": "#444444"},
}


def pdf_filename(number: str, client_name: str) -> str:
    """``Invoice_<number>_<client name with whitespace runs as _>.pdf``."""
    number = number or DEFAULT_INVOICE_NUMBER
    client = re.sub(r"\s+", "_", client_name or DEFAULT_CLIENT_FILENAME)
    return f"Invoice_{number}_{client}.pdf"


def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    m = _DATA_URI.match(data_uri or "")
    if not m:
        raise ValueError("Not a data URI")
    content_type = m.group(1) or "text/plain"
    payload = m.group(3)
    if m.group(2):
        try:
            return content_type, base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    return content_type, payload.encode("utf-8")


# ---- HTML Preview ----

def _lines_html(text: str) -> str:
    return "<br/>".join(html.escape(line) for line in text.split("\n"))


def _logo_html(party: PartyView, palette: dict, logo_src: Optional[str] = None) -> str:
    if party.logo.kind == LOGO_IMAGE:
        src = logo_src or party.logo.value
        return (f'<img src="{html.escape(src)}" alt="{html.escape(party.name)}" '
                f'style="width:48px; height:48px; object-fit:contain; border-radius:8px;"/>')
    return (f'<div style="width:48px; height:48px; line-height:48px; text-align:center; '
            f'border-radius:8px; font-weight:bold; font-size:20px; '
            f'border:1px solid {palette["border"]};">{html.escape(party.logo.value)}</div>')


def _party_html(title: str, party: PartyView, palette: dict, logo_src: Optional[str] = None) -> str:
    return f"""
      <div style="flex:1;">
        <div style="color:{palette['muted']}; font-size:12px; text-transform:uppercase;">{title}</div>
        {_logo_html(party, palette, logo_src)}
        <div><strong>{html.escape(party.name)}</strong></div>
        <div>{html.escape(party.email)}</div>
        <div style="color:{palette['muted']};">{_lines_html(party.address)}</div>
      </div>
    """


def items_table_preview_html(preview: PreviewModel, palette: dict) -> str:
    cell = f"padding:6px; border-bottom:1px solid {palette['border']};"
    rows = []
    for item in preview.line_items:
        rows.append(f"""
        <tr>
            <td style="{cell}">{html.escape(item.description)}</td>
            <td style="{cell} text-align:right;">{html.escape(item.quantity)}</td>
            <td style="{cell} text-align:right;">{html.escape(item.unit_price)}</td>
            <td style="{cell} text-align:right;">{html.escape(item.line_total)}</td>
        </tr>
        """)
    return f"""
    <table style="border-collapse:collapse; width:100%; font-size:14px;">
        <thead>
            <tr>
                <th style="{cell} text-align:left;">Description</th>
                <th style="{cell} text-align:right;">Qty</th>
                <th style="{cell} text-align:right;">Price</th>
                <th style="{cell} text-align:right;">Amount</th>
            </tr>
        </thead>
        <tbody>{''.join(rows)}</tbody>
    </table>
    """


def render_preview_html(preview: PreviewModel, theme: str = "light", client_logo_src: Optional[str] = None) -> str:
    palette = THEMES.get(theme, THEMES["light"])

    totals_rows = [
        f"<tr><td style='padding:6px;'>Subtotal</td><td style='padding:6px; text-align:right;'>{html.escape(preview.subtotal)}</td></tr>"
    ]
    if preview.discount.visible:
        totals_rows.append(
            f"<tr><td style='padding:6px;'>{html.escape(preview.discount.label)}</td>"
            f"<td style='padding:6px; text-align:right;'>{html.escape(preview.discount.amount)}</td></tr>"
        )
    if preview.tax.visible:
        totals_rows.append(
            f"<tr><td style='padding:6px;'>{html.escape(preview.tax.label)}</td>"
            f"<td style='padding:6px; text-align:right;'>{html.escape(preview.tax.amount)}</td></tr>"
        )
    totals_rows.append(
        f"<tr><td style='padding:6px; font-weight:bold;'>Total</td>"
        f"<td style='padding:6px; text-align:right; font-weight:bold;'>{html.escape(preview.total)}</td></tr>"
    )

    if preview.footer_is_default:
        # Brand name in bold inside the default footer text
        brand = html.escape(FOOTER_BRAND)
        footer_html = html.escape(DEFAULT_FOOTER).replace(brand, f"<strong>{brand}</strong>")
    else:
        footer_html = html.escape(preview.footer)

    return f"""
    <div style="font-family: Arial, sans-serif; font-size:14px; color:{palette['text']}; background:{palette['background']}; padding:24px;">
      <div style="display:flex; justify-content:space-between; align-items:flex-start;">
        <div style="font-size:24px; font-weight:bold;">Invoice</div>
        <div style="text-align:right; min-width:200px;">
          <div>Invoice No: {html.escape(preview.invoice_number)}</div>
          <div>Issued: {html.escape(preview.issue_date)}</div>
          <div>Due: {html.escape(preview.due_date)}</div>
        </div>
      </div>
      <hr/>
      <div style="display:flex; justify-content:space-between; gap:20px;">
        {_party_html("From", preview.company, palette)}
        {_party_html("To", preview.client, palette, client_logo_src)}
      </div>
      <br/>
      {items_table_preview_html(preview, palette)}
      <br/>
      <table style="border-collapse:collapse; width:100%; max-width:300px; float:right;">
        <tbody>{''.join(totals_rows)}</tbody>
      </table>
      <div style="clear:both;"></div>
      <div><strong>Note</strong><br/>{_lines_html(preview.note)}</div>
      <div style="margin-top:24px; text-align:center; color:{palette['muted']}; font-size:12px;">{footer_html}</div>
    </div>
    """


# ---- PDF builder (ReportLab) ----

def _logo_flowable(data_uri: str) -> Optional[Image]:
    try:
        _, raw = decode_data_uri(data_uri)
        width, height = ImageReader(BytesIO(raw)).getSize()
    except Exception as e:
        logger.warning("Client logo could not be embedded, using initial: %s", e)
        return None
    scale = min(LOGO_SIZE / width, LOGO_SIZE / height)
    return Image(BytesIO(raw), width=width * scale, height=height * scale)


def _para_lines(text: str, style) -> Paragraph:
    return Paragraph("<br/>".join(html.escape(line) for line in text.split("\n")), style)


def _party_cells(title: str, party: PartyView, styles: dict, logo=None) -> List:
    cells = [Paragraph(f"<b>{title}</b>", styles["muted"])]
    if logo is None:
        # An image logo that was not inlined falls back to the name initial
        text = party.name[:1] if party.logo.kind == LOGO_IMAGE else party.logo.value
        logo = Paragraph(f"<b>{html.escape(text)}</b>", styles["logo"])
    cells.append(logo)
    cells.append(Paragraph(f"<b>{html.escape(party.name)}</b>", styles["normal"]))
    cells.append(Paragraph(html.escape(party.email), styles["normal"]))
    cells.append(_para_lines(party.address, styles["normal"]))
    return cells


def build_pdf_bytes(preview: PreviewModel, logo_data_uri: Optional[str] = None) -> bytes:
    """Render the preview as an A4 PDF.

    ``logo_data_uri`` is the client logo inlined by the image relay; without
    it an image logo falls back to the first letter of the client name.
    """
    def _on_page(canvas, doc):
        canvas.setAuthor("Invoice Builder")
        canvas.setTitle(f"Invoice {preview.invoice_number}")
        canvas.setSubject("Invoice")
        canvas.setCreator("Invoice Builder")

    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=18*mm, rightMargin=18*mm, topMargin=16*mm, bottomMargin=16*mm)
    sample = getSampleStyleSheet()
    styleN = sample["Normal"]
    styleN.leading = 14
    styles = {
        "normal": styleN,
        "right": ParagraphStyle("right", parent=styleN, alignment=TA_RIGHT),
        "muted": ParagraphStyle("muted", parent=styleN, textColor=colors.grey, fontSize=8),
        "logo": ParagraphStyle("logo", parent=styleN, fontSize=16, leading=20),
        "title": ParagraphStyle("title", parent=sample["Heading1"], spaceAfter=0),
        "footer": ParagraphStyle("footer", parent=styleN, alignment=TA_CENTER, textColor=colors.grey, fontSize=8),
    }

    story = []

    header = Table([
        [Paragraph("Invoice", styles["title"]),
         Paragraph(f"Invoice No: {html.escape(preview.invoice_number)}", styles["right"])],
        ["", Paragraph(f"Issued: {html.escape(preview.issue_date)}", styles["right"])],
        ["", Paragraph(f"Due: {html.escape(preview.due_date)}", styles["right"])],
    ], colWidths=[110*mm, 64*mm])
    header.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    story.append(header)
    story.append(Spacer(1, 8))

    client_logo = None
    if preview.client.logo.kind == LOGO_IMAGE and logo_data_uri:
        client_logo = _logo_flowable(logo_data_uri)

    parties = Table(
        [[_party_cells("FROM", preview.company, styles), _party_cells("TO", preview.client, styles, client_logo)]],
        colWidths=[87*mm, 87*mm],
    )
    parties.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    story.append(parties)
    story.append(Spacer(1, 10))

    tbl_data = [["Description", "Qty", "Price", "Amount"]]
    for item in preview.line_items:
        tbl_data.append([Paragraph(html.escape(item.description), styleN), item.quantity, item.unit_price, item.line_total])
    table = Table(tbl_data, repeatRows=1, colWidths=[94*mm, 20*mm, 30*mm, 30*mm])
    table.setStyle(TableStyle([
        ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ]))
    story.append(table)
    story.append(Spacer(1, 6))

    totals_rows = [["Subtotal", preview.subtotal]]
    if preview.discount.visible:
        totals_rows.append([preview.discount.label, preview.discount.amount])
    if preview.tax.visible:
        totals_rows.append([preview.tax.label, preview.tax.amount])
    totals_rows.append(["Total", preview.total])
    totals_tbl = Table(totals_rows, colWidths=[45*mm, 30*mm])
    totals_tbl.setStyle(TableStyle([("ALIGN", (1, 0), (1, -1), "RIGHT"), ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold")]))
    wrap = Table([[totals_tbl]], colWidths=[174*mm])
    wrap.setStyle(TableStyle([("ALIGN", (0, 0), (-1, -1), "RIGHT")]))
    story.append(wrap)

    story.append(Spacer(1, 10))
    story.append(Paragraph("<b>Note</b>", styleN))
    story.append(_para_lines(preview.note, styleN))

    story.append(Spacer(1, 16))
    story.append(Paragraph(html.escape(preview.footer), styles["footer"]))

    doc.build(story, onFirstPage=_on_page, onLaterPages=_on_page)
    buf.seek(0)
    return buf.read()
