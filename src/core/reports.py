"""PDF report generation using WeasyPrint + Jinja2."""

import logging
from datetime import date
from decimal import Decimal

from jinja2 import BaseLoader, Environment

from src.core.exceptions import ReportError
from src.core.interfaces import EntryStore
from src.core.models.enums import EntryType
from src.core.schemas.ledger import PersonAggregate

logger = logging.getLogger(__name__)

# HTML template for the per-person statement
PERSON_REPORT_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; color: #333; }
        h1 { color: #2c3e50; border-bottom: 2px solid #3498db; padding-bottom: 10px; }
        table { width: 100%; border-collapse: collapse; margin: 15px 0; }
        th { background-color: #3498db; color: white; padding: 10px; text-align: left; }
        td { padding: 8px 10px; border-bottom: 1px solid #ddd; }
        tr:nth-child(even) { background-color: #f2f2f2; }
        .total-row { font-weight: bold; background-color: #ebf5fb !important; }
        .amount { text-align: right; }
        .income { color: #27ae60; }
        .expense { color: #e74c3c; }
        .empty { color: #999; font-style: italic; }
        .footer { margin-top: 40px; font-size: 0.8em; color: #999;
                  border-top: 1px solid #ddd; padding-top: 10px; }
    </style>
</head>
<body>
    <h1>{{ title }}</h1>
    <p>Período: {{ start }} a {{ end }}</p>

    {% if rows %}
    <table>
        <tr><th>Tipo</th><th>Pessoa</th><th class="amount">Total</th></tr>
        {% for row in rows %}
        <tr>
            <td class="{{ row.css }}">{{ row.type }}</td>
            <td>{{ row.person }}</td>
            <td class="amount">R$ {{ "%.2f"|format(row.total) }}</td>
        </tr>
        {% endfor %}
        <tr class="total-row">
            <td colspan="2">Receitas</td>
            <td class="amount income">R$ {{ "%.2f"|format(total_income) }}</td>
        </tr>
        <tr class="total-row">
            <td colspan="2">Despesas</td>
            <td class="amount expense">R$ {{ "%.2f"|format(total_expense) }}</td>
        </tr>
    </table>
    {% else %}
    <p class="empty">Nenhum lançamento no período.</p>
    {% endif %}

    <div class="footer">
        Gerado em {{ generated_date }}
    </div>
</body>
</html>
"""

TYPE_LABELS = {
    EntryType.INCOME: ("Receita", "income"),
    EntryType.EXPENSE: ("Despesa", "expense"),
}

jinja_env = Environment(loader=BaseLoader(), autoescape=True)


def render_report_html(
    *,
    title: str,
    start: date,
    end: date,
    rows: list[PersonAggregate],
    generated_date: str,
) -> str:
    """Render the per-person statement HTML from template and aggregate rows."""
    table = []
    total_income = Decimal("0")
    total_expense = Decimal("0")
    for row in rows:
        label, css = TYPE_LABELS[row.type]
        table.append(
            {
                "type": label,
                "css": css,
                "person": row.person or "Sem pessoa",
                "total": float(row.total),
            }
        )
        if row.type == EntryType.INCOME:
            total_income += row.total
        else:
            total_expense += row.total

    template = jinja_env.from_string(PERSON_REPORT_TEMPLATE)
    return template.render(
        title=title,
        start=start.strftime("%d/%m/%Y"),
        end=end.strftime("%d/%m/%Y"),
        rows=table,
        total_income=float(total_income),
        total_expense=float(total_expense),
        generated_date=generated_date,
    )


def html_to_pdf(html_content: str) -> bytes:
    """Convert an HTML string to PDF bytes using WeasyPrint.

    Separated into its own function to allow easy mocking in tests
    (WeasyPrint requires system libraries that may not be available in CI).
    """
    from weasyprint import HTML  # lazy import, needs system GTK/Pango libs

    return HTML(string=html_content).write_pdf()


class PersonReportGenerator:
    """Statement of income/expense totals per person for a date range."""

    def __init__(self, store: EntryStore):
        self.store = store

    async def generate(self, start: date, end: date) -> bytes:
        rows = await self.store.aggregate_by_person(start, end)
        html_content = render_report_html(
            title="Lançamentos por pessoa",
            start=start,
            end=end,
            rows=rows,
            generated_date=date.today().isoformat(),
        )
        try:
            pdf_bytes = html_to_pdf(html_content)
        except Exception as e:
            logger.error("Report rendering failed for %s..%s: %s", start, end, e)
            raise ReportError(f"Could not render report: {e}") from e

        logger.info("Generated person report %s..%s (%d rows)", start, end, len(rows))
        return pdf_bytes
