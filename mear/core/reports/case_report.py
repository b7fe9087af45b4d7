"""
Case Report Generator

Renders one registry case as a PDF:
- Patient & indication summary
- Pre-induction vitals and calculated values
- Active alerts, colour-coded by level
- Activated protocols
- Intubation attempts and post-induction monitoring
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from xml.sax.saxutils import escape
import io
import os

from reportlab.lib.colors import HexColor, white
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from mear.utils import get_logger
from mear.utils.exceptions import ReportGenerationError

logger = get_logger(__name__)


ALERT_COLORS = {
    "critical": HexColor("#FEE2E2"),
    "warning": HexColor("#FEF3C7"),
    "info": HexColor("#DBEAFE"),
}

HEADER_COLOR = HexColor("#1E40AF")
GRID_COLOR = HexColor("#D1D5DB")

CALCULATED_LABELS = [
    ("bmi", "BMI", "kg/m²"),
    ("shockIndex", "Shock Index", ""),
    ("modifiedShockIndex", "Modified Shock Index", ""),
    ("meanArterialPressure", "Mean Arterial Pressure", "mmHg"),
    ("pulsePressure", "Pulse Pressure", "mmHg"),
    ("totalGCS", "Total GCS", "/15"),
    ("leonTotalScore", "LEON Score", "/4"),
    ("comorbidityBurden", "Comorbidity Burden", ""),
]

VITAL_LABELS = [
    ("heartRate", "Heart Rate", "bpm"),
    ("systolicBP", "Systolic BP", "mmHg"),
    ("diastolicBP", "Diastolic BP", "mmHg"),
    ("respiratoryRate", "Respiratory Rate", "/min"),
    ("spo2", "SpO₂", "%"),
    ("temperature", "Temperature", "°C"),
]

MONITORING_COLUMNS = [("post5", "5 min"), ("post10", "10 min"), ("post15", "15 min"), ("post30", "30 min")]


@dataclass
class CaseReport:
    report_id: str
    generated_at: datetime
    hospital_no: str = "UNKNOWN"
    alert_count: int = 0
    critical_count: int = 0
    protocols: List[str] = field(default_factory=list)
    pdf_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "generated_at": self.generated_at.isoformat(),
            "hospital_no": self.hospital_no,
            "alert_count": self.alert_count,
            "critical_count": self.critical_count,
            "protocols": list(self.protocols),
            "pdf_path": self.pdf_path,
        }


def _text(value: Any) -> str:
    if value is None or value == "":
        return "—"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return escape(str(value))


def _selected(flags: Optional[Mapping[str, Any]]) -> List[str]:
    """Keys of a flag map that are switched on, as readable labels."""
    labels = []
    for key, value in (flags or {}).items():
        if value is True:
            label = "".join(" " + c.lower() if c.isupper() else c for c in key)
            labels.append(label.strip().capitalize())
    return labels


class CaseReportGenerator:
    """
    Builds the case PDF from the store's report payload.

    ``generate`` writes into ``output_dir``; ``render`` returns the bytes
    (used by the HTTP download endpoint).
    """

    def __init__(self, output_dir: str = "reports"):
        self.output_dir = output_dir
        self._styles = getSampleStyleSheet()
        self._create_custom_styles()
        logger.info(f"CaseReportGenerator initialized, output: {output_dir}")

    def _create_custom_styles(self):
        if "CaseTitle" not in self._styles:
            self._styles.add(ParagraphStyle(
                name="CaseTitle",
                parent=self._styles["Title"],
                fontSize=20,
                spaceAfter=12,
                textColor=HEADER_COLOR,
                alignment=TA_CENTER,
                fontName="Helvetica-Bold",
            ))
        if "SectionHeader" not in self._styles:
            self._styles.add(ParagraphStyle(
                name="SectionHeader",
                parent=self._styles["Heading2"],
                fontSize=13,
                spaceBefore=16,
                spaceAfter=8,
                textColor=HexColor("#1F2937"),
                fontName="Helvetica-Bold",
            ))
        if "Small" not in self._styles:
            self._styles.add(ParagraphStyle(
                name="Small",
                parent=self._styles["Normal"],
                fontSize=9,
                leading=12,
                textColor=HexColor("#4B5563"),
            ))

    # ── Public API ────────────────────────────────────────────────────────
    def generate(self, payload: Mapping[str, Any], report_id: Optional[str] = None) -> CaseReport:
        report = self._summarise(payload, report_id)
        os.makedirs(self.output_dir, exist_ok=True)
        filepath = os.path.join(self.output_dir, f"{report.report_id}.pdf")
        try:
            self._build(payload, report, filepath)
        except Exception as e:
            logger.error(f"Case report generation failed: {e}", exc_info=True)
            raise ReportGenerationError(f"Could not build case report: {e}", report_type="case") from e
        report.pdf_path = filepath
        logger.info(f"Case report generated: {filepath}")
        return report

    def render(self, payload: Mapping[str, Any], report_id: Optional[str] = None) -> bytes:
        report = self._summarise(payload, report_id)
        buffer = io.BytesIO()
        try:
            self._build(payload, report, buffer)
        except Exception as e:
            logger.error(f"Case report rendering failed: {e}", exc_info=True)
            raise ReportGenerationError(f"Could not build case report: {e}", report_type="case") from e
        return buffer.getvalue()

    # ── Internals ─────────────────────────────────────────────────────────
    def _summarise(self, payload: Mapping[str, Any], report_id: Optional[str]) -> CaseReport:
        generated_at = datetime.now()
        alerts = payload.get("alerts") or []
        demographics = payload.get("demographics") or {}
        return CaseReport(
            report_id=report_id or f"MEAR-{generated_at.strftime('%Y%m%d-%H%M%S')}",
            generated_at=generated_at,
            hospital_no=str(demographics.get("hospitalNo") or "UNKNOWN"),
            alert_count=len(alerts),
            critical_count=sum(1 for a in alerts if a.get("level") == "critical"),
            protocols=[p.get("name", "") for p in payload.get("activeProtocols") or []],
        )

    def _table(self, rows: List[List[Any]], widths: List[float], row_colors: Optional[Dict[int, Any]] = None) -> Table:
        table = Table(rows, colWidths=widths, repeatRows=1)
        style = [
            ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
            ("TEXTCOLOR", (0, 0), (-1, 0), white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("ALIGN", (0, 0), (-1, -1), "LEFT"),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]
        for index, color in (row_colors or {}).items():
            style.append(("BACKGROUND", (0, index), (-1, index), color))
        table.setStyle(TableStyle(style))
        return table

    def _build(self, payload: Mapping[str, Any], report: CaseReport, target) -> None:
        doc = SimpleDocTemplate(
            target,
            pagesize=A4,
            rightMargin=0.7 * inch,
            leftMargin=0.7 * inch,
            topMargin=0.7 * inch,
            bottomMargin=0.7 * inch,
            title=f"MEAR case {report.hospital_no}",
        )
        s = self._styles
        story: List[Any] = [
            Paragraph("Emergency Airway Registry - Case Report", s["CaseTitle"]),
            Paragraph(
                f"Report ID: <b>{escape(report.report_id)}</b> | Hospital No: <b>{_text(report.hospital_no)}</b> | "
                f"Generated: {report.generated_at.strftime('%d %b %Y %H:%M')}",
                s["Small"],
            ),
            Spacer(1, 12),
        ]

        # ===== PATIENT =====
        demographics = payload.get("demographics") or {}
        indication = payload.get("indication") or {}
        category = indication.get("category")
        reasons = _selected(indication.get(category) if category else None)
        story.append(Paragraph("Patient & Indication", s["SectionHeader"]))
        story.append(self._table(
            [
                ["Age", "Sex", "Weight (kg)", "Height (cm)", "Indication"],
                [
                    _text(demographics.get("age")),
                    _text(demographics.get("sex")),
                    _text(demographics.get("weight")),
                    _text(demographics.get("height")),
                    Paragraph(
                        f"{_text((category or '').capitalize() or None)}: {escape(', '.join(reasons)) or '—'}",
                        s["Small"],
                    ),
                ],
            ],
            [0.7 * inch, 0.7 * inch, 1.0 * inch, 1.0 * inch, 3.4 * inch],
        ))
        comorbid = _selected(payload.get("comorbidities"))
        story.append(Spacer(1, 6))
        story.append(Paragraph(f"<b>Comorbidities:</b> {escape(', '.join(comorbid)) or 'None recorded'}", s["Small"]))

        # ===== VITALS & CALCULATED VALUES =====
        vitals = payload.get("vitals") or {}
        calculated = payload.get("calculatedValues") or {}
        story.append(Paragraph("Pre-induction Vitals & Calculated Values", s["SectionHeader"]))
        rows = [["Measurement", "Value", "Derived", "Value"]]
        for i in range(max(len(VITAL_LABELS), len(CALCULATED_LABELS))):
            left = VITAL_LABELS[i] if i < len(VITAL_LABELS) else None
            right = CALCULATED_LABELS[i] if i < len(CALCULATED_LABELS) else None
            rows.append([
                left[1] if left else "",
                f"{_text(vitals.get(left[0]))} {left[2]}".strip() if left else "",
                right[1] if right else "",
                f"{_text(calculated.get(right[0]))} {right[2]}".strip() if right else "",
            ])
        story.append(self._table(rows, [1.5 * inch, 1.3 * inch, 2.0 * inch, 2.0 * inch]))

        # ===== ALERTS =====
        alerts = payload.get("alerts") or []
        story.append(Paragraph(f"Clinical Alerts ({len(alerts)})", s["SectionHeader"]))
        if alerts:
            rows = [["Level", "Alert", "Detail"]]
            colors = {}
            for i, alert in enumerate(alerts, start=1):
                level = alert.get("level", "info")
                rows.append([
                    level.upper(),
                    Paragraph(_text(alert.get("title")), s["Small"]),
                    Paragraph(_text(alert.get("message")), s["Small"]),
                ])
                colors[i] = ALERT_COLORS.get(level, white)
            story.append(self._table(rows, [0.9 * inch, 2.2 * inch, 3.7 * inch], colors))
        else:
            story.append(Paragraph("No active alerts.", s["Small"]))

        # ===== PROTOCOLS =====
        protocols = payload.get("activeProtocols") or []
        if protocols:
            story.append(Paragraph("Activated Protocols", s["SectionHeader"]))
            for protocol in protocols:
                block = [Paragraph(f"<b>{_text(protocol.get('name'))}</b> - {_text(protocol.get('indication'))}", s["Normal"])]
                for step in protocol.get("steps") or []:
                    block.append(Paragraph(f"• {escape(step)}", s["Small"]))
                block.append(Spacer(1, 6))
                story.append(KeepTogether(block))

        # ===== ATTEMPTS =====
        attempts = payload.get("intubationAttempts") or []
        if attempts:
            story.append(Paragraph("Intubation Attempts", s["SectionHeader"]))
            rows = [["#", "Experience", "Laryngoscope", "Blade", "Bougie/Stylet", "Remarks"]]
            for attempt in attempts:
                rows.append([
                    _text(attempt.get("attemptNumber")),
                    _text(attempt.get("yearsExperience")),
                    _text(attempt.get("laryngoscopeType")),
                    _text(attempt.get("bladeSize")),
                    _text(bool(attempt.get("bougieOrStyletUsed"))),
                    Paragraph(_text(attempt.get("remarks")), s["Small"]),
                ])
            story.append(self._table(rows, [0.4 * inch, 1.0 * inch, 1.1 * inch, 0.7 * inch, 1.0 * inch, 2.6 * inch]))

        # ===== MONITORING =====
        table = payload.get("monitoringTable") or {}
        if any(table.get(key) for key, _ in MONITORING_COLUMNS):
            story.append(Paragraph("Post-induction Monitoring", s["SectionHeader"]))
            rows = [["Vital"] + [label for _, label in MONITORING_COLUMNS]]
            for field_name, label, unit in VITAL_LABELS[:5]:
                rows.append([f"{label} ({unit})"] + [
                    _text((table.get(key) or {}).get(field_name)) for key, _ in MONITORING_COLUMNS
                ])
            story.append(self._table(rows, [1.9 * inch] + [1.2 * inch] * len(MONITORING_COLUMNS)))

        story.append(Spacer(1, 20))
        story.append(Paragraph(
            "Calculated values and alerts are decision support only and were derived from the data "
            "entered at the time of this report.",
            s["Small"],
        ))
        doc.build(story)
