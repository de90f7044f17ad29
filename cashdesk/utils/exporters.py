"""Renders cash-flow report data to downloadable files."""
import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List

import pandas as pd
from fastapi.templating import Jinja2Templates

from cashdesk.exceptions import ValidationError
from cashdesk.models import CashMovement
from cashdesk.utils.pdf_generator import generate_cash_flow_pdf

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

MEDIA_TYPES = {
    "csv": "text/csv",
    "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "html": "text/html",
    "pdf": "application/pdf",
}
EXTENSIONS = {"csv": "csv", "excel": "xlsx", "html": "html", "pdf": "pdf"}

CSV_COLUMNS = ["Date", "Time", "Kind", "Category", "Description", "Amount", "Notes"]


@dataclass(frozen=True)
class ExportedFile:
    content: bytes
    media_type: str
    filename: str


def format_amount(value) -> str:
    return f"{value:.2f}".replace(".", ",")


def period_label(report: dict) -> str:
    return f"{report['date_from']:%d/%m/%Y} - {report['date_to']:%d/%m/%Y}"


def movement_rows(movements: List[CashMovement]) -> List[dict]:
    return [
        {
            "Date": mov.occurred_at.strftime("%d/%m/%Y"),
            "Time": mov.occurred_at.strftime("%H:%M"),
            "Kind": mov.kind.value,
            "Category": mov.category.value,
            "Description": mov.description,
            "Amount": format_amount(mov.amount),
            "Notes": mov.notes or "",
        }
        for mov in movements
    ]


def render_csv(report: dict, movements: List[CashMovement]) -> bytes:
    df = pd.DataFrame(movement_rows(movements), columns=CSV_COLUMNS)
    table = df.to_csv(sep=";", index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    content = f"Cash movements report - {period_label(report)}\n\n{table}"
    return content.encode("utf-8")


def render_excel(report: dict, movements: List[CashMovement]) -> bytes:
    rows = [
        {**row, "Amount": float(mov.amount)}
        for row, mov in zip(movement_rows(movements), movements)
    ]
    df = pd.DataFrame(rows, columns=CSV_COLUMNS)

    summary = report["summary"]
    df_summary = pd.DataFrame(
        [
            {"Item": "Period", "Value": period_label(report)},
            {"Item": "Total inflow", "Value": float(summary["total_inflow"])},
            {"Item": "Total outflow", "Value": float(summary["total_outflow"])},
            {"Item": "Net balance", "Value": float(summary["net_balance"])},
            {"Item": "Movements", "Value": summary["movement_count"]},
            {"Item": "Average ticket", "Value": float(summary["average_ticket"])},
        ]
    )

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Movements")
        df_summary.to_excel(writer, index=False, sheet_name="Summary")
    return output.getvalue()


def render_html(report: dict, movements: List[CashMovement], generated_at: datetime) -> bytes:
    html_content = templates.get_template("reports/cash_flow.html").render(
        {
            "report": report,
            "movements": movements,
            "period": period_label(report),
            "generated_at": generated_at,
            "money": format_amount,
        }
    )
    return html_content.encode("utf-8")


def export_report(report: dict, movements: List[CashMovement], fmt: str, generated_at: datetime) -> ExportedFile:
    """Renders ``report`` and its ``movements`` as ``fmt`` (csv, excel, html or pdf)."""
    fmt = (fmt or "").lower()
    if fmt not in MEDIA_TYPES:
        raise ValidationError(f"Unsupported export format '{fmt}'. Use one of: {', '.join(MEDIA_TYPES)}")

    if fmt == "csv":
        content = render_csv(report, movements)
    elif fmt == "excel":
        content = render_excel(report, movements)
    elif fmt == "html":
        content = render_html(report, movements, generated_at)
    else:
        content = generate_cash_flow_pdf(report, movements, period_label(report), generated_at)

    filename = f"cash-flow-report-{generated_at:%d-%m-%Y}.{EXTENSIONS[fmt]}"
    logger.info("exported %s movements as %s (%s bytes)", len(movements), fmt, len(content))
    return ExportedFile(content=content, media_type=MEDIA_TYPES[fmt], filename=filename)
