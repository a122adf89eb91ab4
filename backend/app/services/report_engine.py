"""
Report Engine — generates printable PDF and Excel deliverables for a project.

Outputs:
  - QS Summary PDF (project information, BOM category subtotals, VAT, quotation register)
  - Cost Report PDF (budget vs quoted, per-trade table, contingency)
  - Timeline Status PDF (phase counts, phase table, milestones)
  - BOQ Excel workbook (Summary / BOM Detail)

All outputs saved to DOWNLOAD_DIR and path returned for FileResponse.
"""
import os
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from app.config import DOWNLOAD_DIR, SA_VAT_RATE
from app.models.schemas import (
    BOM_CATEGORY_LABELS,
    BOM_CATEGORY_ORDER,
    PHASE_STATUS_LABELS,
    PROJECT_STATUS_LABELS,
    QUOTATION_STATUS_LABELS,
    TRADE_CATEGORY_LABELS,
    BOMData,
    CostSummary,
    Project,
    Quotation,
    TimelineData,
)
from app.services.money import days_remaining, format_date, format_date_short, format_zar, format_zar_compact

logger = logging.getLogger("buildtrack-report")

REPORT_TITLE = "RESIDENTIAL BUILD MANAGER"
REPORT_SUB = "South African residential construction  |  Amounts in ZAR"
THEME_RGB = (0.09, 0.16, 0.26)
ACCENT_RGB = (0.58, 0.64, 0.72)

REPORT_TYPES = ("qs_summary", "cost_report", "timeline_report")

# (header, x in cm, alignment)
Column = Tuple[str, float, str]


def _draw_header(c, page_w, page_h):
    from reportlab.lib.units import cm
    c.setFillColorRGB(*THEME_RGB)
    c.rect(0, page_h - 3*cm, page_w, 3*cm, fill=1, stroke=0)
    c.setFillColorRGB(1, 1, 1)
    c.setFont("Helvetica-Bold", 13)
    c.drawString(1.5*cm, page_h - 1.5*cm, REPORT_TITLE)
    c.setFont("Helvetica", 8)
    c.drawString(1.5*cm, page_h - 2.1*cm, REPORT_SUB)
    c.setStrokeColorRGB(*ACCENT_RGB)
    c.setLineWidth(2)
    c.line(0, page_h - 3*cm, page_w, page_h - 3*cm)
    c.setLineWidth(1)
    c.setStrokeColorRGB(0, 0, 0)


def _draw_footer(c, page_w, page_num: int, project_name: str = ""):
    from reportlab.lib.units import cm
    c.setFillColorRGB(0.5, 0.5, 0.5)
    c.setFont("Helvetica", 7)
    c.drawString(1.5*cm, 0.8*cm, project_name[:80])
    c.drawRightString(page_w - 1.5*cm, 0.8*cm, f"Page {page_num}")
    c.setStrokeColorRGB(0.7, 0.7, 0.7)
    c.line(1.5*cm, 1.2*cm, page_w - 1.5*cm, 1.2*cm)


def _clip(text: str, limit: int) -> str:
    text = text or ""
    return text if len(text) <= limit else text[:limit - 1] + "…"


def _validity(valid_until: str) -> str:
    remaining = days_remaining(valid_until)
    label = format_date_short(valid_until)
    return f"{label} (lapsed)" if remaining is not None and remaining < 0 else label


class _PdfWriter:
    """Canvas plus a y cursor that starts a fresh branded page when space runs out."""

    def __init__(self, path: str, project_name: str):
        from reportlab.pdfgen import canvas as rl_canvas
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.units import cm

        self.cm = cm
        self.page_w, self.page_h = A4
        self.project_name = project_name
        self.c = rl_canvas.Canvas(path, pagesize=A4)
        self._start_page()

    def _start_page(self):
        _draw_header(self.c, self.page_w, self.page_h)
        _draw_footer(self.c, self.page_w, self.c.getPageNumber(), self.project_name)
        self.y = self.page_h - 4.5*self.cm

    def ensure_space(self, needed_cm: float = 1.0):
        if self.y < (2.5 + needed_cm) * self.cm:
            self.c.showPage()
            self._start_page()

    def title(self, text: str, subtitle: str = ""):
        c, cm = self.c, self.cm
        c.setFillColorRGB(*THEME_RGB)
        c.setFont("Helvetica-Bold", 18)
        c.drawString(1.5*cm, self.y, text)
        self.y -= 0.7*cm
        if subtitle:
            c.setFont("Helvetica", 9)
            c.setFillColorRGB(0.4, 0.4, 0.4)
            c.drawString(1.5*cm, self.y, subtitle)
            self.y -= 0.6*cm

    def section(self, text: str):
        c, cm = self.c, self.cm
        self.y -= 0.6*cm
        self.ensure_space(2.0)
        c.setFont("Helvetica-Bold", 11)
        c.setFillColorRGB(*THEME_RGB)
        c.drawString(1.5*cm, self.y, text.upper())
        self.y -= 0.4*cm
        c.setStrokeColorRGB(*ACCENT_RGB)
        c.line(1.5*cm, self.y, self.page_w - 1.5*cm, self.y)
        self.y -= 0.5*cm

    def label_value(self, label: str, value: str, bold: bool = False):
        c, cm = self.c, self.cm
        self.ensure_space()
        c.setFont("Helvetica", 10)
        c.setFillColorRGB(0.2, 0.2, 0.2)
        c.drawString(1.5*cm, self.y, label)
        c.setFillColorRGB(*THEME_RGB)
        c.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        c.drawRightString(self.page_w - 1.5*cm, self.y, value)
        self.y -= 0.55*cm

    def note(self, text: str):
        c, cm = self.c, self.cm
        self.ensure_space()
        c.setFont("Helvetica-Oblique", 9)
        c.setFillColorRGB(0.4, 0.4, 0.4)
        c.drawString(1.5*cm, self.y, text)
        self.y -= 0.5*cm

    def _x(self, x_cm: float) -> float:
        # Negative positions are measured from the right margin
        return x_cm*self.cm if x_cm >= 0 else self.page_w + x_cm*self.cm

    def _table_header(self, columns: Sequence[Column]):
        c, cm = self.c, self.cm
        c.setFillColorRGB(*THEME_RGB)
        c.rect(1.5*cm, self.y - 0.15*cm, self.page_w - 3*cm, 0.6*cm, fill=1, stroke=0)
        c.setFillColorRGB(1, 1, 1)
        c.setFont("Helvetica-Bold", 9)
        for header, x_cm, align in columns:
            if align == "r":
                c.drawRightString(self._x(x_cm), self.y, header)
            else:
                c.drawString(self._x(x_cm), self.y, header)
        self.y -= 0.65*cm

    def table(self, columns: Sequence[Column], rows: List[Sequence[str]]):
        """Rows are pre-formatted strings; the header repeats after a page break."""
        c, cm = self.c, self.cm
        self.ensure_space(1.5)
        self._table_header(columns)
        c.setFont("Helvetica", 9)
        for row in rows:
            if self.y < 3*cm:
                self.c.showPage()
                self._start_page()
                self._table_header(columns)
                c.setFont("Helvetica", 9)
            c.setFillColorRGB(0.2, 0.2, 0.2)
            for (_, x_cm, align), value in zip(columns, row):
                if align == "r":
                    c.drawRightString(self._x(x_cm), self.y, value)
                else:
                    c.drawString(self._x(x_cm), self.y, value)
            self.y -= 0.5*cm

    def save(self):
        self.c.save()


class ReportEngine:

    def __init__(self, output_dir: str = DOWNLOAD_DIR):
        self.output_dir = output_dir

    def _path(self, project: Project, filename: str) -> str:
        os.makedirs(self.output_dir, exist_ok=True)
        return os.path.join(self.output_dir, f"{project.id[:8]}_{filename}")

    def _generated_line(self, project: Project) -> str:
        return f"{project.name}  |  Generated {format_date(datetime.now().date())}"

    # ── Placeholder ───────────────────────────────────────────────────────────

    def _generate_placeholder_pdf(self, path: str, title: str, project_name: str = "") -> Optional[str]:
        """Generate a valid PDF stating 'Awaiting Data' instead of failing."""
        try:
            from reportlab.pdfgen import canvas as rl_canvas
            from reportlab.lib.pagesizes import A4
            from reportlab.lib.units import cm

            page_w, page_h = A4
            c = rl_canvas.Canvas(path, pagesize=A4)
            try:
                _draw_header(c, page_w, page_h)
                _draw_footer(c, page_w, 1, project_name)
                y = page_h / 2
                c.setFillColorRGB(0.4, 0.4, 0.4)
                c.setFont("Helvetica-Bold", 14)
                c.drawCentredString(page_w / 2, y, "AWAITING DATA FOR GENERATION")
                c.setFont("Helvetica", 10)
                c.drawCentredString(page_w / 2, y - 1 * cm, f"Document: {title}")
                c.drawCentredString(page_w / 2, y - 1.8 * cm,
                                    "This report will be available once the project data has been set up.")
            finally:
                c.save()
            return path
        except Exception as e:
            logger.error(f"Report placeholder PDF failed: {e}")
            return None

    # ── QS Summary ────────────────────────────────────────────────────────────

    def generate_qs_summary(self, project: Project, bom: Optional[BOMData],
                            quotations: List[Quotation]) -> Optional[str]:
        path = self._path(project, "QS_Summary.pdf")
        try:
            pdf = _PdfWriter(path, project.name)
            pdf.title("QUANTITY SURVEYOR SUMMARY", self._generated_line(project))

            pdf.section("Project Information")
            info = [
                ("Project", project.name),
                ("Status", PROJECT_STATUS_LABELS.get(project.project_status, project.project_status)),
                ("Address", project.address or "—"),
                ("Erf Number", project.erf_number or "—"),
                ("Building Size", f"{project.building_size:g} m²" if project.building_size else "—"),
                ("NHBRC Number", project.nhbrc_enrolment_number or "—"),
            ]
            for label, value in info:
                pdf.label_value(label, _clip(value, 70))

            pdf.section("Bill of Materials Summary")
            if bom is None:
                pdf.note("BOM not yet initialized")
            else:
                for category in BOM_CATEGORY_ORDER:
                    amount = bom.subtotals_by_category.get(category, 0.0)
                    if amount > 0:
                        pdf.label_value(BOM_CATEGORY_LABELS[category], format_zar(amount))
                pdf.y -= 0.2*pdf.cm
                pdf.label_value("Subtotal (excl. VAT)", format_zar(bom.grand_total), bold=True)
                pdf.label_value(f"VAT ({SA_VAT_RATE:.0%})", format_zar(bom.grand_total_incl_vat - bom.grand_total))
                pdf.label_value("Total (incl. VAT)", format_zar(bom.grand_total_incl_vat), bold=True)

            pdf.section("Quotation Summary")
            if not quotations:
                pdf.note("No quotations yet")
            else:
                columns = [("Supplier", 1.8, "l"), ("Trade", 7.2, "l"), ("Status", 10.4, "l"),
                           ("Valid Until", 12.9, "l"), ("Amount (excl. VAT)", -1.8, "r")]
                rows = [
                    (
                        _clip(q.supplier_name, 32),
                        TRADE_CATEGORY_LABELS.get(q.trade_category, q.trade_category),
                        QUOTATION_STATUS_LABELS.get(q.status, q.status),
                        _validity(q.valid_until),
                        format_zar(q.total_amount),
                    )
                    for q in quotations
                ]
                pdf.table(columns, rows)

            pdf.save()
            logger.info(f"QS summary PDF generated: {path}", extra={"project_id": project.id})
            return path
        except Exception as e:
            logger.error(f"QS summary PDF failed: {e}", extra={"project_id": project.id})
            return None

    # ── Cost Report ───────────────────────────────────────────────────────────

    def generate_cost_report(self, project: Project, summary: CostSummary) -> Optional[str]:
        path = self._path(project, "Cost_Report.pdf")
        try:
            pdf = _PdfWriter(path, project.name)
            pdf.title("COST REPORT", f"{self._generated_line(project)}  |  Budget {format_zar_compact(summary.total_budget)}")

            pdf.section("Budget Overview")
            pdf.label_value("Total Budget", format_zar(summary.total_budget), bold=True)
            pdf.label_value("Budget incl. Contingency", format_zar(summary.budget_incl_contingency))
            pdf.label_value("Total Quoted (accepted)", format_zar(summary.total_quoted))
            pdf.label_value("Variance (budget - quoted)", format_zar(summary.total_variance), bold=True)

            pdf.section("Cost by Trade")
            if not summary.entries_by_trade:
                pdf.note("No accepted quotations yet")
            else:
                columns = [("Trade", 1.8, "l"), ("Quoted", -8.0, "r"),
                           ("Actual", -4.8, "r"), ("Variance", -1.8, "r")]
                rows = [
                    (
                        TRADE_CATEGORY_LABELS.get(e.trade_category, e.trade_category),
                        format_zar(e.quoted_amount),
                        format_zar(e.actual_amount),
                        format_zar(e.variance),
                    )
                    for e in summary.entries_by_trade
                ]
                pdf.table(columns, rows)

            pdf.section("Contingency")
            pdf.label_value(f"Contingency ({summary.contingency_percent:g}%)", format_zar(summary.contingency_amount))

            pdf.save()
            logger.info(f"Cost report PDF generated: {path}", extra={"project_id": project.id})
            return path
        except Exception as e:
            logger.error(f"Cost report PDF failed: {e}", extra={"project_id": project.id})
            return None

    # ── Timeline Report ───────────────────────────────────────────────────────

    def generate_timeline_report(self, project: Project, timeline: Optional[TimelineData]) -> Optional[str]:
        path = self._path(project, "Timeline_Report.pdf")
        if timeline is None:
            return self._generate_placeholder_pdf(path, "Timeline Status Report", project.name)
        try:
            pdf = _PdfWriter(path, project.name)
            pdf.title("TIMELINE STATUS REPORT", self._generated_line(project))

            pdf.section("Progress")
            phases = timeline.phases
            pdf.label_value("Total Phases", str(len(phases)))
            pdf.label_value("Completed", str(sum(1 for p in phases if p.status == "completed")))
            pdf.label_value("Delayed", str(sum(1 for p in phases if p.status == "delayed")))

            pdf.section("Phase Status")
            columns = [("Phase", 1.8, "l"), ("Status", 8.5, "l"), ("Start", 11.5, "l"),
                       ("End", 14.5, "l"), ("Complete", -1.8, "r")]
            rows = [
                (
                    _clip(p.name, 34),
                    PHASE_STATUS_LABELS.get(p.status, p.status),
                    format_date(p.start_date),
                    format_date(p.end_date),
                    f"{p.percent_complete:g}%",
                )
                for p in sorted(phases, key=lambda p: p.order)
            ]
            pdf.table(columns, rows)

            if timeline.milestones:
                pdf.section("Milestones")
                columns = [("Milestone", 1.8, "l"), ("Target Date", 10.0, "l"), ("Status", 14.0, "l")]
                rows = [
                    (
                        _clip(m.name, 45),
                        format_date(m.target_date),
                        f"Completed {format_date(m.completed_date)}" if m.is_completed else "Pending",
                    )
                    for m in timeline.milestones
                ]
                pdf.table(columns, rows)

            pdf.save()
            logger.info(f"Timeline report PDF generated: {path}", extra={"project_id": project.id})
            return path
        except Exception as e:
            logger.error(f"Timeline report PDF failed: {e}", extra={"project_id": project.id})
            return None

    # ── BOQ Excel ─────────────────────────────────────────────────────────────

    def generate_boq_excel(self, project: Project, bom: Optional[BOMData]) -> Optional[str]:
        path = self._path(project, "BOQ.xlsx")
        try:
            import xlsxwriter

            wb = xlsxwriter.Workbook(path)

            # Formats
            hdr = wb.add_format({"bold": True, "bg_color": "#172A42", "font_color": "#FFFFFF",
                                 "border": 1, "font_size": 10})
            money = wb.add_format({"num_format": "#,##0.00", "border": 1})
            qty_fmt = wb.add_format({"num_format": "#,##0.00", "border": 1})
            normal = wb.add_format({"border": 1, "font_size": 9})
            title_fmt = wb.add_format({"bold": True, "font_size": 14, "font_color": "#172A42"})
            total_fmt = wb.add_format({"bold": True, "bg_color": "#172A42", "font_color": "#FFFFFF",
                                       "border": 1, "font_size": 10, "num_format": "#,##0.00"})

            # ── Sheet 1: Summary ─────────────────────────────────────────────
            ws = wb.add_worksheet("Summary")
            ws.set_column("A:A", 40)
            ws.set_column("B:B", 20)
            ws.write("A1", project.name, title_fmt)
            ws.write("A2", f"Address: {project.address or '—'}", normal)
            ws.write("A3", f"Generated: {datetime.now().strftime('%d %b %Y %H:%M')}", normal)
            ws.write_row(5, 0, ["Category", "Amount (ZAR)"], hdr)

            if bom is None:
                ws.write(6, 0, "BOM not yet initialized", normal)
            else:
                row = 6
                for category in BOM_CATEGORY_ORDER:
                    ws.write(row, 0, BOM_CATEGORY_LABELS[category], normal)
                    ws.write(row, 1, bom.subtotals_by_category.get(category, 0.0), money)
                    row += 1
                totals = [
                    ("SUBTOTAL (excl. VAT)", bom.grand_total),
                    (f"VAT {SA_VAT_RATE:.0%}", bom.grand_total_incl_vat - bom.grand_total),
                    ("TOTAL INCLUDING VAT", bom.grand_total_incl_vat),
                ]
                for label, value in totals:
                    fmt = total_fmt if "TOTAL" in label else money
                    ws.write(row, 0, label, normal)
                    ws.write(row, 1, value, fmt)
                    row += 1

            # ── Sheet 2: BOM Detail ──────────────────────────────────────────
            ws2 = wb.add_worksheet("BOM Detail")
            ws2.set_column("A:A", 10)
            ws2.set_column("B:B", 45)
            ws2.set_column("C:C", 20)
            ws2.set_column("D:D", 8)
            ws2.set_column("E:G", 14)
            ws2.write_row(0, 0, [
                "Item No", "Description", "Category", "Unit",
                "Quantity", "Rate (ZAR)", "Amount (ZAR)",
            ], hdr)
            items = bom.items if bom is not None else []
            for i, item in enumerate(items):
                ws2.write(i + 1, 0, item.item_number, normal)
                ws2.write(i + 1, 1, item.description, normal)
                ws2.write(i + 1, 2, BOM_CATEGORY_LABELS.get(item.category, item.category), normal)
                ws2.write(i + 1, 3, item.unit, normal)
                ws2.write(i + 1, 4, item.quantity, qty_fmt)
                ws2.write(i + 1, 5, item.rate, money)
                ws2.write(i + 1, 6, item.amount, money)

            wb.close()
            logger.info(f"BOQ Excel generated: {path}", extra={"project_id": project.id})
            return path

        except Exception as e:
            logger.error(f"BOQ Excel generation failed: {e}", extra={"project_id": project.id})
            return None
