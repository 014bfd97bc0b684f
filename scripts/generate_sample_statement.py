#!/usr/bin/env python3
"""
Generate a synthetic financial statement PDF for trying out uploads.

The document holds an income statement and a balance sheet for a fictional
company. All figures are synthetic but add up.

Usage:
    python scripts/generate_sample_statement.py [output.pdf]

Output (default):
    data/samples/acme_statements_2024.pdf
"""

import sys
from pathlib import Path

from fpdf import FPDF

COMPANY = "Acme Corp"
FISCAL_YEAR = "2024"

INCOME_STATEMENT = [
    ("Revenue", "48,200", "44,900"),
    ("Cost of revenue", "(27,480)", "(26,040)"),
    ("Gross profit", "20,720", "18,860"),
    ("Research and development", "(4,100)", "(3,820)"),
    ("Selling, general and administrative", "(6,950)", "(6,610)"),
    ("Operating income", "9,670", "8,430"),
    ("Interest expense", "(410)", "(455)"),
    ("Income before taxes", "9,260", "7,975"),
    ("Income tax expense", "(1,945)", "(1,675)"),
    ("Net income", "7,315", "6,300"),
]

BALANCE_SHEET = [
    ("Cash and equivalents", "12,400", "10,150"),
    ("Accounts receivable", "6,820", "6,240"),
    ("Inventories", "4,310", "4,580"),
    ("Property, plant and equipment", "18,900", "17,760"),
    ("Total assets", "42,430", "38,730"),
    ("Accounts payable", "5,110", "4,870"),
    ("Long-term debt", "9,000", "9,800"),
    ("Total liabilities", "14,110", "14,670"),
    ("Shareholders' equity", "28,320", "24,060"),
    ("Total liabilities and equity", "42,430", "38,730"),
]


class StatementPDF(FPDF):
    """A4 statement with a running header and page footer."""

    def header(self):
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(100, 100, 100)
        self.cell(0, 8, f"{COMPANY}  - Annual Financial Statements {FISCAL_YEAR}", 0, 1, "C")
        self.line(10, self.get_y(), 200, self.get_y())
        self.ln(4)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}} | Synthetic data", 0, 0, "C")

    def statement(self, title: str, rows: list[tuple[str, str, str]]):
        self.set_font("Helvetica", "B", 14)
        self.set_text_color(0, 0, 0)
        self.ln(6)
        self.cell(0, 10, title, 0, 1)
        self.set_font("Helvetica", "I", 9)
        self.cell(0, 6, "(in thousands of USD)", 0, 1)

        self.set_font("Helvetica", "B", 9)
        self.cell(110, 7, "Line item", 1, 0, "L")
        self.cell(40, 7, FISCAL_YEAR, 1, 0, "R")
        self.cell(40, 7, str(int(FISCAL_YEAR) - 1), 1, 1, "R")

        for label, current, prior in rows:
            total = label.startswith(("Gross", "Operating", "Net", "Total", "Income before"))
            self.set_font("Helvetica", "B" if total else "", 9)
            self.cell(110, 6, label, 1, 0, "L")
            self.cell(40, 6, current, 1, 0, "R")
            self.cell(40, 6, prior, 1, 1, "R")


def generate_statement(output: Path) -> Path:
    pdf = StatementPDF()
    pdf.alias_nb_pages()
    pdf.set_auto_page_break(auto=True, margin=20)

    pdf.add_page()
    pdf.statement("Consolidated Income Statement", INCOME_STATEMENT)
    pdf.statement("Consolidated Balance Sheet", BALANCE_SHEET)

    output.parent.mkdir(parents=True, exist_ok=True)
    pdf.output(str(output))
    return output


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("data/samples/acme_statements_2024.pdf")
    print(f"Wrote {generate_statement(target)}")
