from datetime import datetime

from fpdf import FPDF
from fpdf.enums import XPos, YPos


def _latin1(text) -> str:
    # Las fuentes base de FPDF solo cubren latin-1
    return str(text).encode("latin-1", "replace").decode("latin-1")


def _money(value) -> str:
    return f"{value:,.2f}"


class PDFCashReport(FPDF):
    def header(self):
        self.set_font("helvetica", "B", 20)
        self.set_text_color(33, 37, 41)  # Dark Gray
        self.cell(0, 10, "CASHDESK", new_x=XPos.LMARGIN, new_y=YPos.NEXT, align="L")

        self.set_font("helvetica", "", 10)
        self.set_text_color(108, 117, 125)  # Gray
        self.cell(0, 5, "Cash flow report", new_x=XPos.LMARGIN, new_y=YPos.NEXT, align="L")
        self.ln(5)

        self.set_draw_color(200, 200, 200)
        self.line(10, 35, 200, 35)
        self.ln(10)

    def footer(self):
        self.set_y(-15)
        self.set_font("helvetica", "I", 8)
        self.set_text_color(128)
        self.cell(0, 10, f"Page {self.page_no()}", align="C")


def generate_cash_flow_pdf(report: dict, movements, period: str, generated_at: datetime) -> bytes:
    pdf = PDFCashReport()
    pdf.add_page()
    pdf.set_auto_page_break(auto=True, margin=15)

    # --- INFO HEADER ---
    pdf.set_font("helvetica", "B", 14)
    pdf.set_text_color(0, 0, 0)
    pdf.cell(100, 10, _latin1(f"Period: {period}"), align="L")

    pdf.set_font("helvetica", "", 10)
    pdf.set_text_color(50, 50, 50)
    pdf.cell(90, 10, f"Generated: {generated_at:%d/%m/%Y %H:%M}", new_x=XPos.LMARGIN, new_y=YPos.NEXT, align="R")
    pdf.ln(5)

    # --- RESUMEN ---
    summary = report["summary"]
    pdf.set_fill_color(245, 247, 250)
    rows = [
        ("Total inflow", _money(summary["total_inflow"])),
        ("Total outflow", _money(summary["total_outflow"])),
        ("Net balance", _money(summary["net_balance"])),
        ("Movements", str(summary["movement_count"])),
        ("Average ticket", _money(summary["average_ticket"])),
    ]
    for label, value in rows:
        pdf.set_font("helvetica", "B", 10)
        pdf.cell(50, 7, label, fill=True)
        pdf.set_font("helvetica", "", 10)
        pdf.cell(40, 7, value, new_x=XPos.LMARGIN, new_y=YPos.NEXT, align="R", fill=True)
    pdf.ln(8)

    # --- TABLE HEADER ---
    pdf.set_font("helvetica", "B", 9)
    pdf.set_fill_color(33, 37, 41)
    pdf.set_text_color(255, 255, 255)

    # Columns: Date(22), Time(14), Kind(22), Category(28), Description(74), Amount(30)
    pdf.cell(22, 8, "DATE", align="C", fill=True)
    pdf.cell(14, 8, "TIME", align="C", fill=True)
    pdf.cell(22, 8, "KIND", align="C", fill=True)
    pdf.cell(28, 8, "CATEGORY", align="L", fill=True)
    pdf.cell(74, 8, "DESCRIPTION", align="L", fill=True)
    pdf.cell(30, 8, "AMOUNT", new_x=XPos.LMARGIN, new_y=YPos.NEXT, align="R", fill=True)

    # --- TABLE BODY ---
    pdf.set_text_color(0, 0, 0)
    pdf.set_font("helvetica", "", 9)
    fill = False

    for mov in movements:
        if fill:
            pdf.set_fill_color(248, 249, 250)
        else:
            pdf.set_fill_color(255, 255, 255)

        pdf.cell(22, 8, mov.occurred_at.strftime("%d/%m/%Y"), align="C", fill=fill)
        pdf.cell(14, 8, mov.occurred_at.strftime("%H:%M"), align="C", fill=fill)
        pdf.cell(22, 8, mov.kind.value, align="C", fill=fill)
        pdf.cell(28, 8, mov.category.value, align="L", fill=fill)
        pdf.cell(74, 8, _latin1(mov.description)[:42], align="L", fill=fill)
        pdf.cell(30, 8, _money(mov.amount), new_x=XPos.LMARGIN, new_y=YPos.NEXT, align="R", fill=fill)

        fill = not fill
        pdf.set_draw_color(230, 230, 230)
        pdf.line(10, pdf.get_y(), 200, pdf.get_y())

    return bytes(pdf.output())
