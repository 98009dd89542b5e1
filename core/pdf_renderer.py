"""
Invoice PDF rendering with fpdf2.

Read-only view of the same data GET /api/invoices/{id} returns: header with
issuer initial, From / Bill To blocks, dates, items table, totals and notes.
"""

from fpdf import FPDF
from fpdf.enums import MethodReturnValue, XPos, YPos

from core.models import Invoice
from utils.timezone import parse_invoice_date

_PAGE_WIDTH = 190
_COL_WIDTHS = (80, 25, 42.5, 42.5)
_HEADERS = ("Item / Service", "Qty", "Unit Price", "Total")
_LINE_HEIGHT = 5


def _safe_text(text: str) -> str:
    """Replace characters the built-in Helvetica font can't encode with '?'."""
    return text.encode("latin-1", "replace").decode("latin-1")


def format_money(amount: float, currency: str) -> str:
    """1234.5, "USD" -> "1,234.50 USD"."""
    return _safe_text(f"{amount:,.2f} {currency}")


def _description_lines(pdf: FPDF, text: str) -> list[str]:
    """Wrap a description to the first column at the current font."""
    return pdf.multi_cell(
        _COL_WIDTHS[0], _LINE_HEIGHT, _safe_text(text),
        dry_run=True, output=MethodReturnValue.LINES,
    )


def format_date(value: str | None) -> str:
    """ISO date string -> "Jan 5, 2025". Missing or unparseable -> "N/A"."""
    parsed = parse_invoice_date(value)
    if parsed is None:
        return "N/A"
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


class InvoicePdfRenderer:
    """Renders an Invoice into A4 PDF bytes."""

    def render(self, invoice: Invoice) -> bytes:
        pdf = FPDF(format="A4")
        pdf.set_auto_page_break(auto=True, margin=20)
        pdf.set_margins(10, 15, 10)
        pdf.add_page()

        self._render_header(pdf, invoice)
        self._render_parties(pdf, invoice)
        self._render_dates(pdf, invoice)
        self._render_items_table(pdf, invoice)
        self._render_totals(pdf, invoice)
        self._render_notes(pdf, invoice)

        return bytes(pdf.output())

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    @staticmethod
    def _render_header(pdf: FPDF, invoice: Invoice) -> None:
        """Issuer initial badge and name on the left, title and id on the right."""
        top = pdf.get_y()
        initial = _safe_text(invoice.issuer.name[:1].upper() or "I")

        pdf.set_fill_color(0, 0, 0)
        pdf.rect(10, top, 14, 14, style="F")
        pdf.set_text_color(255, 255, 255)
        pdf.set_font("Helvetica", "B", 16)
        pdf.set_xy(10, top + 3)
        pdf.cell(14, 8, initial, align="C")
        pdf.set_text_color(0, 0, 0)

        pdf.set_xy(10, top + 16)
        pdf.set_font("Helvetica", "B", 14)
        pdf.cell(100, 7, _safe_text(invoice.issuer.name))

        pdf.set_xy(110, top)
        pdf.set_font("Helvetica", "B", 22)
        pdf.cell(90, 10, "INVOICE", align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_x(110)
        pdf.set_font("Helvetica", "", 11)
        pdf.set_text_color(107, 114, 128)
        pdf.cell(90, 6, invoice.public_id, align="R")
        pdf.set_text_color(0, 0, 0)

        pdf.set_y(top + 30)

    @staticmethod
    def _render_parties(pdf: FPDF, invoice: Invoice) -> None:
        """From / Bill To columns."""
        top = pdf.get_y()
        columns = (
            (10, "FROM", invoice.issuer),
            (110, "BILL TO", invoice.customer),
        )
        bottom = top

        for x, title, party in columns:
            pdf.set_xy(x, top)
            pdf.set_font("Helvetica", "B", 8)
            pdf.set_text_color(107, 114, 128)
            pdf.cell(90, 5, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.set_text_color(0, 0, 0)

            pdf.set_x(x)
            pdf.set_font("Helvetica", "B", 10)
            pdf.cell(90, 5, _safe_text(party.name), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

            pdf.set_font("Helvetica", "", 9)
            for line in (party.email, party.address, party.phone):
                if line:
                    pdf.set_x(x)
                    pdf.multi_cell(90, 5, _safe_text(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            tax_id = getattr(party, "tax_id", None)
            if tax_id:
                pdf.set_x(x)
                pdf.cell(90, 5, _safe_text(f"Tax ID: {tax_id}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

            bottom = max(bottom, pdf.get_y())

        pdf.set_y(bottom + 8)

    @staticmethod
    def _render_dates(pdf: FPDF, invoice: Invoice) -> None:
        """Issue date, due date and currency, then a separator line."""
        boxes = (
            ("ISSUE DATE", format_date(invoice.issue_date)),
            ("DUE DATE", format_date(invoice.due_date)),
            ("CURRENCY", invoice.currency),
        )
        width = _PAGE_WIDTH / len(boxes)
        top = pdf.get_y()

        for index, (title, value) in enumerate(boxes):
            pdf.set_xy(10 + index * width, top)
            pdf.set_font("Helvetica", "B", 8)
            pdf.set_text_color(107, 114, 128)
            pdf.cell(width, 5, title)
            pdf.set_xy(10 + index * width, top + 5)
            pdf.set_text_color(0, 0, 0)
            pdf.set_font("Helvetica", "", 10)
            pdf.cell(width, 6, _safe_text(value))

        y = top + 16
        pdf.set_draw_color(229, 231, 235)
        pdf.line(10, y, 200, y)
        pdf.set_draw_color(0, 0, 0)
        pdf.set_y(y + 6)

    @staticmethod
    def _render_items_table(pdf: FPDF, invoice: Invoice) -> None:
        """Items table with a shaded header row. Long descriptions wrap."""
        pdf.set_font("Helvetica", "B", 9)
        pdf.set_fill_color(249, 250, 251)
        for width, header in zip(_COL_WIDTHS, _HEADERS):
            align = "L" if header == _HEADERS[0] else "R"
            pdf.cell(width, 8, header, border="B", fill=True, align=align)
        pdf.ln()

        pdf.set_font("Helvetica", "", 9)
        for item in invoice.items:
            description = _description_lines(pdf, item.description)
            row_height = max(len(description) * _LINE_HEIGHT, 8)
            if pdf.will_page_break(row_height):
                pdf.add_page()

            top = pdf.get_y()
            pdf.set_y(top + (row_height - len(description) * _LINE_HEIGHT) / 2)
            for line in description:
                pdf.cell(_COL_WIDTHS[0], _LINE_HEIGHT, line, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

            line_total = item.qty * item.unit_price
            pdf.set_xy(10 + _COL_WIDTHS[0], top)
            pdf.cell(_COL_WIDTHS[1], row_height, f"{item.qty:g}", align="R")
            pdf.cell(_COL_WIDTHS[2], row_height, format_money(item.unit_price, invoice.currency), align="R")
            pdf.cell(_COL_WIDTHS[3], row_height, format_money(line_total, invoice.currency), align="R")

            bottom = top + row_height
            pdf.set_draw_color(229, 231, 235)
            pdf.line(10, bottom, 10 + _PAGE_WIDTH, bottom)
            pdf.set_draw_color(0, 0, 0)
            pdf.set_y(bottom)

        pdf.ln(6)

    @staticmethod
    def _render_totals(pdf: FPDF, invoice: Invoice) -> None:
        """Subtotal, tax and discount (only when non-zero), grand total."""
        totals = invoice.totals
        rows = [("Subtotal", format_money(totals.subtotal, invoice.currency))]
        if totals.tax_total > 0:
            rows.append(("Tax", format_money(totals.tax_total, invoice.currency)))
        if totals.discount_total > 0:
            rows.append(("Discount", f"-{format_money(totals.discount_total, invoice.currency)}"))

        pdf.set_font("Helvetica", "", 10)
        for label, value in rows:
            pdf.set_x(110)
            pdf.cell(45, 6, label)
            pdf.cell(45, 6, value, align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        y = pdf.get_y() + 1
        pdf.line(110, y, 200, y)
        pdf.set_y(y + 2)
        pdf.set_x(110)
        pdf.set_font("Helvetica", "B", 12)
        pdf.cell(45, 8, "Total")
        pdf.cell(
            45, 8, format_money(totals.grand_total, invoice.currency),
            align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT,
        )
        pdf.ln(6)

    @staticmethod
    def _render_notes(pdf: FPDF, invoice: Invoice) -> None:
        """Notes and terms, when present."""
        for title, text in (("Notes", invoice.notes), ("Terms", invoice.terms)):
            if not text:
                continue
            pdf.set_font("Helvetica", "B", 10)
            pdf.cell(0, 6, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.set_font("Helvetica", "", 9)
            pdf.multi_cell(0, 5, _safe_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.ln(3)


def render_invoice_pdf(invoice: Invoice) -> bytes:
    """Render an invoice to PDF bytes."""
    return InvoicePdfRenderer().render(invoice)
