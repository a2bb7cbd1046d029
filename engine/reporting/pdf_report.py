"""PDF report generation for CoolCost TCO comparisons.

Produces a short report suitable for a procurement review: summary
metrics, CAPEX and yearly cash-flow tables, and charts of cumulative cost
and cost categories.  Consumes the plain mapping returned by
``ComparisonResult.as_dict()``.
"""
from io import BytesIO
from datetime import datetime
from typing import Any

import numpy as np
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
    Image,
    PageBreak,
)
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle

# ══════════════════════════════════════════════════════════════════════
# Constants
# ══════════════════════════════════════════════════════════════════════

CHART_DPI = 150
PAGE_W, PAGE_H = A4
MARGIN = 15 * mm

# Color palette
C_PRIMARY = "#2563eb"
C_DARK = "#1e40af"
C_GREEN = "#059669"
C_RED = "#dc2626"
C_GRAY = "#6b7280"
C_LIGHT_BG = "#f9fafb"
C_GRID = "#e5e7eb"

CATEGORY_COLORS = {
    "capital": "#1e40af",
    "energy": "#d97706",
    "maintenance": "#0d9488",
    "labor": "#7c3aed",
    "consumables": "#ea580c",
}

KIND_LABELS = {
    "air_cooling": "Air Cooling",
    "immersion_cooling": "Immersion Cooling",
}


# ══════════════════════════════════════════════════════════════════════
# Matplotlib setup
# ══════════════════════════════════════════════════════════════════════

def _init_mpl():
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    plt.rcParams.update({
        "font.size": 8,
        "axes.titlesize": 10,
        "axes.labelsize": 8,
        "xtick.labelsize": 7,
        "ytick.labelsize": 7,
        "legend.fontsize": 7,
        "figure.dpi": CHART_DPI,
    })
    return plt


def _fig_to_buf(fig) -> BytesIO:
    """Save matplotlib figure to BytesIO PNG buffer."""
    buf = BytesIO()
    fig.savefig(buf, format="png", dpi=CHART_DPI, bbox_inches="tight")
    import matplotlib.pyplot as plt
    plt.close(fig)
    buf.seek(0)
    return buf


# ══════════════════════════════════════════════════════════════════════
# Charts
# ══════════════════════════════════════════════════════════════════════

def _make_cumulative_chart(
    years: list[int],
    baseline: list[float],
    alternative: list[float],
    labels: tuple[str, str],
    currency: str,
) -> BytesIO:
    """Cumulative cost of both scenarios; the crossing is the breakeven."""
    plt = _init_mpl()
    fig, ax = plt.subplots(figsize=(6, 3))

    ax.plot(years, np.cumsum(baseline), "-o", color=C_RED,
            linewidth=1.5, markersize=3, label=labels[0])
    ax.plot(years, np.cumsum(alternative), "-o", color=C_GREEN,
            linewidth=1.5, markersize=3, label=labels[1])

    ax.set_xticks(years)
    ax.set_xlabel("Year")
    ax.set_ylabel(f"Cumulative cost ({currency})")
    ax.set_title("Cumulative Cost Progression", fontweight="bold")
    ax.legend(loc="upper left", fontsize=6)
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return _fig_to_buf(fig)


def _make_category_chart(
    categories: list[str],
    baseline: dict[str, float],
    alternative: dict[str, float],
    labels: tuple[str, str],
    currency: str,
) -> BytesIO:
    """Side-by-side stacked bars of horizon cost per category."""
    plt = _init_mpl()
    fig, ax = plt.subplots(figsize=(4.5, 3))
    x = np.arange(2)
    bottom = np.zeros(2)

    for cat in categories:
        vals = np.array([baseline.get(cat, 0.0), alternative.get(cat, 0.0)])
        if not np.any(vals > 0):
            continue
        ax.bar(x, vals, 0.5, bottom=bottom, label=cat.title(),
               color=CATEGORY_COLORS.get(cat, C_GRAY), alpha=0.85)
        bottom += vals

    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    ax.set_ylabel(currency)
    ax.set_title("Cost by Category", fontweight="bold")
    ax.legend(loc="upper right", fontsize=6)
    ax.grid(True, alpha=0.3, axis="y")
    fig.tight_layout()
    return _fig_to_buf(fig)


# ══════════════════════════════════════════════════════════════════════
# Canvas Callbacks (header / footer / page numbers)
# ══════════════════════════════════════════════════════════════════════

def _on_first_page(canvas, doc):
    """First page: subtle footer only."""
    canvas.saveState()
    canvas.setFont("Helvetica", 7)
    canvas.setFillColor(colors.HexColor(C_GRAY))
    canvas.drawCentredString(
        PAGE_W / 2, 10 * mm,
        "Generated by CoolCost Cooling TCO Calculator",
    )
    canvas.restoreState()


def _on_later_pages(canvas, doc):
    """Pages 2+: header line + page number."""
    canvas.saveState()
    canvas.setStrokeColor(colors.HexColor(C_PRIMARY))
    canvas.setLineWidth(0.5)
    canvas.line(MARGIN, PAGE_H - 14 * mm, PAGE_W - MARGIN, PAGE_H - 14 * mm)
    canvas.setFont("Helvetica", 7)
    canvas.setFillColor(colors.HexColor(C_GRAY))
    canvas.drawString(MARGIN, PAGE_H - 12 * mm, "CoolCost TCO Report")
    canvas.drawRightString(PAGE_W - MARGIN, 8 * mm, f"Page {doc.page}")
    canvas.restoreState()


# ══════════════════════════════════════════════════════════════════════
# Styles & Table Helpers
# ══════════════════════════════════════════════════════════════════════

def _get_styles():
    """Return configured paragraph styles."""
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        "ReportTitle", parent=styles["Title"],
        fontSize=24, spaceAfter=6, textColor=colors.HexColor(C_PRIMARY),
    ))
    styles.add(ParagraphStyle(
        "SectionHeader", parent=styles["Heading2"],
        fontSize=13, spaceBefore=14, spaceAfter=6,
        textColor=colors.HexColor(C_DARK),
    ))
    styles.add(ParagraphStyle(
        "BodyText2", parent=styles["Normal"],
        fontSize=9, leading=13, spaceAfter=4,
    ))
    styles.add(ParagraphStyle(
        "SmallGray", parent=styles["Normal"],
        fontSize=7, textColor=colors.HexColor(C_GRAY),
    ))
    return styles


def _styled_table(
    data: list[list],
    col_widths: list,
    header_color: str = C_DARK,
    row_bg_alt: str = C_LIGHT_BG,
) -> Table:
    """Create a consistently styled table."""
    t = Table(data, colWidths=col_widths)
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(header_color)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.4, colors.HexColor(C_GRID)),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1),
         [colors.white, colors.HexColor(row_bg_alt)]),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]))
    return t


def _fmt(
    v: float | None, fmt_str: str = ",.0f",
    prefix: str = "", suffix: str = "",
) -> str:
    """Safe number formatting."""
    if v is None:
        return "N/A"
    try:
        return f"{prefix}{v:{fmt_str}}{suffix}"
    except (ValueError, TypeError):
        return "N/A"


def _label(scenario: dict) -> str:
    return KIND_LABELS.get(scenario.get("kind", ""), scenario.get("label", ""))


# ══════════════════════════════════════════════════════════════════════
# Sections
# ══════════════════════════════════════════════════════════════════════

def _build_header(styles, result: dict, title: str) -> list:
    elems: list = [Paragraph(title, styles["ReportTitle"])]
    years = result.get("analysis_years")
    rate = result.get("discount_rate") or 0.0
    elems.append(Paragraph(
        f"Analysis period: {years} years @ {rate * 100:.1f}% discount rate "
        f"&nbsp;|&nbsp; Currency: {result.get('currency', '')} "
        f"&nbsp;|&nbsp; Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        styles["SmallGray"],
    ))
    elems.append(Spacer(1, 6 * mm))
    return elems


def _build_summary(styles, result: dict) -> list:
    elems: list = [Paragraph("Executive Summary", styles["SectionHeader"])]
    s = result.get("summary", {})
    cur = f"{result.get('currency', '')} "
    irr = s.get("irr")
    roi = s.get("roi_percent")

    data = [
        ["Metric", "Value"],
        ["NPV of Savings", _fmt(s.get("npv_savings"), ",.0f", cur)],
        ["Total TCO Savings", _fmt(s.get("tco_savings"), ",.0f", cur)],
        ["CAPEX Difference", _fmt(s.get("capex_savings"), ",.0f", cur)],
        ["OPEX Savings", _fmt(s.get("opex_savings"), ",.0f", cur)],
        ["Payback Period", _fmt(s.get("payback_years"), ".2f", "", " years")],
        ["ROI", _fmt(roi, ".1f", "", "%")],
        ["IRR", _fmt(irr * 100 if irr is not None else None, ".1f", "", "%")],
        ["PUE (baseline / alternative)",
         f"{_fmt(s.get('pue_baseline'), '.3f')} / {_fmt(s.get('pue_alternative'), '.3f')}"],
        ["Energy Savings", _fmt(s.get("energy_savings_kwh_annual"), ",.0f", "", " kWh/yr")],
    ]
    elems.append(_styled_table(data, [100 * mm, 70 * mm], header_color=C_PRIMARY))
    elems.append(Spacer(1, 4 * mm))

    payback = s.get("payback_years")
    if payback is None:
        verdict = (
            "The alternative does not recover its cost difference within "
            "the analysis period."
        )
    else:
        verdict = f"Cumulative savings turn non-negative after {payback:.2f} years."
    elems.append(Paragraph(f"<b>Verdict:</b> {verdict}", styles["BodyText2"]))

    for w in result.get("warnings", []):
        elems.append(Paragraph(f"• {w}", styles["SmallGray"]))
    return elems


def _build_capex(styles, result: dict) -> list:
    elems: list = [Paragraph("Capital Expenditure", styles["SectionHeader"])]
    base, alt = result["baseline"], result["alternative"]
    bc = base["equipment"]["capex"]
    ac = alt["equipment"]["capex"]

    data = [["Item", _label(base), _label(alt)]]
    for key in ("equipment", "installation", "infrastructure", "total"):
        data.append([key.title(), _fmt(bc.get(key)), _fmt(ac.get(key))])
    data.append([
        "IT Capacity (kW)",
        _fmt(base["equipment"]["it_power_kw"], ",.1f"),
        _fmt(alt["equipment"]["it_power_kw"], ",.1f"),
    ])
    data.append([
        "Cost per kW",
        _fmt(base["equipment"]["cost_per_kw"], ",.0f"),
        _fmt(alt["equipment"]["cost_per_kw"], ",.0f"),
    ])
    elems.append(_styled_table(data, [60 * mm, 55 * mm, 55 * mm]))
    return elems


def _build_cash_flows(styles, result: dict) -> list:
    elems: list = [Paragraph("Yearly Cash Flows", styles["SectionHeader"])]
    data = [["Year", "Baseline", "Alternative", "Savings", "Cumulative", "Discounted"]]
    for row in result.get("yearly", []):
        data.append([
            str(row["year"]),
            _fmt(row["baseline_cost"]),
            _fmt(row["alternative_cost"]),
            _fmt(row["savings"]),
            _fmt(row["cumulative_savings"]),
            _fmt(row["discounted_savings"]),
        ])
    elems.append(_styled_table(data, [15 * mm] + [31 * mm] * 5))
    return elems


def _build_charts(styles, result: dict) -> list:
    elems: list = [PageBreak(), Paragraph("Charts", styles["SectionHeader"])]
    base, alt = result["baseline"], result["alternative"]
    labels = (_label(base), _label(alt))
    currency = result.get("currency", "")
    yearly = result.get("yearly", [])

    buf = _make_cumulative_chart(
        [r["year"] for r in yearly],
        [r["baseline_cost"] for r in yearly],
        [r["alternative_cost"] for r in yearly],
        labels,
        currency,
    )
    elems.append(Image(buf, width=160 * mm, height=80 * mm))

    buf = _make_category_chart(
        list(CATEGORY_COLORS),
        base.get("category_totals", {}),
        alt.get("category_totals", {}),
        labels,
        currency,
    )
    elems.append(Image(buf, width=120 * mm, height=80 * mm))
    return elems


def _build_environmental(styles, result: dict) -> list:
    env = result.get("environmental")
    if not env:
        return []
    elems: list = [Paragraph("Environmental Impact", styles["SectionHeader"])]
    data = [
        ["Metric", "Annual Value"],
        ["Energy Saved", _fmt(env.get("energy_savings_kwh_annual"), ",.0f", "", " kWh")],
        ["CO₂ Avoided", _fmt(env.get("carbon_savings_kg_co2_annual"), ",.0f", "", " kg")],
        ["Water Saved", _fmt(env.get("water_savings_gallons_annual"), ",.0f", "", " gal")],
        ["Footprint Reduction",
         _fmt(env.get("carbon_footprint_reduction_percent"), ".1f", "", "%")],
    ]
    elems.append(_styled_table(data, [100 * mm, 70 * mm]))
    return elems


# ══════════════════════════════════════════════════════════════════════
# Main Entry Point
# ══════════════════════════════════════════════════════════════════════

def generate_pdf_report(
    result: dict[str, Any],
    title: str = "Cooling TCO Comparison",
) -> BytesIO:
    """Generate a PDF report and return it as a BytesIO buffer.

    Parameters
    ----------
    result : dict
        Output of ``ComparisonResult.as_dict()``.
    title : str
        Heading printed on the first page.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=18 * mm,
        bottomMargin=15 * mm,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        title=title,
    )

    styles = _get_styles()
    elements: list = []
    elements.extend(_build_header(styles, result, title))
    elements.extend(_build_summary(styles, result))
    elements.extend(_build_capex(styles, result))
    elements.extend(_build_cash_flows(styles, result))
    elements.extend(_build_environmental(styles, result))
    elements.extend(_build_charts(styles, result))

    doc.build(elements, onFirstPage=_on_first_page, onLaterPages=_on_later_pages)
    buffer.seek(0)
    return buffer
