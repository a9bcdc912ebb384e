#!/usr/bin/env python3
"""
Generate a synthetic due-diligence data room for "Company X".

Two PDFs whose filenames drive document classification:

    data/samples/company_x_financial_report.pdf  → type "financial"
    data/samples/company_x_business_plan.pdf     → type "business_plan"

The figures are synthetic but consistent with the bundled sample report
in scripts/run_evals.py (EBITDA margin 12% → 15% on page 4 of the
financial report, 10% market CAGR on page 8 of the business plan), so a
live run over these files has something concrete to cite.

Usage:
    python scripts/generate_sample_docs.py

Then:
    curl -F query="Should we invest in Company X?" \\
         -F files=@data/samples/company_x_financial_report.pdf \\
         -F files=@data/samples/company_x_business_plan.pdf \\
         http://localhost:8000/analyze
"""

from pathlib import Path

from fpdf import FPDF

OUTPUT_DIR = Path("data/samples")


class DataRoomDocument(FPDF):
    """PDF with a running title header and page-numbered footer."""

    def __init__(self, running_title: str):
        super().__init__()
        self.running_title = running_title
        self.alias_nb_pages()
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(100, 100, 100)
        self.cell(0, 8, self.running_title, 0, 1, "C")
        self.line(10, self.get_y(), 200, self.get_y())
        self.ln(4)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(
            0, 10, f"Page {self.page_no()}/{{nb}} | Synthetic data for demo purposes",
            0, 0, "C",
        )

    def section_title(self, title: str):
        self.set_font("Helvetica", "B", 14)
        self.set_text_color(0, 0, 0)
        self.ln(6)
        self.cell(0, 10, title, 0, 1)
        self.line(10, self.get_y(), 200, self.get_y())
        self.ln(2)

    def body_text(self, text: str):
        self.set_font("Helvetica", "", 10)
        self.set_text_color(30, 30, 30)
        self.multi_cell(0, 5.5, text)
        self.ln(2)

    def table_row(self, cells: list[str], bold: bool = False):
        self.set_font("Helvetica", "B" if bold else "", 9)
        col_w = 190 / len(cells)
        for cell in cells:
            self.cell(col_w, 6, cell, 1, 0, "C")
        self.ln()

    def page(self, title: str, paragraphs: list[str], table: list[list[str]] | None = None):
        """One section per page so page numbers in citations are predictable."""
        self.add_page()
        self.section_title(title)
        if table:
            self.table_row(table[0], bold=True)
            for row in table[1:]:
                self.table_row(row)
            self.ln(4)
        for paragraph in paragraphs:
            self.body_text(paragraph)

    def save(self, filename: str) -> Path:
        OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        path = OUTPUT_DIR / filename
        self.output(str(path))
        print(f"Generated: {path} ({path.stat().st_size:,} bytes)")
        return path


def generate_financial_report() -> Path:
    pdf = DataRoomDocument("Company X - Annual Financial Report FY2024")

    pdf.page("Overview", [
        "Company X is a mid-market provider of payments infrastructure "
        "operating in North America and LATAM.",
        "This report covers the fiscal year ended December 31, 2024.",
    ])
    pdf.page("Income Statement", [
        "Revenue grew 18% year over year to $412 million, with "
        "subscription revenue representing 64% of the total.",
    ], table=[
        ["Metric", "FY2022", "FY2023", "FY2024"],
        ["Revenue", "$301M", "$349M", "$412M"],
        ["Gross margin", "58%", "60%", "61%"],
        ["Net income", "$14M", "$22M", "$31M"],
    ])
    pdf.page("Balance Sheet", [
        "Total debt stands at $288 million against total assets of "
        "$411 million, a debt ratio of 0.7.",
        "The revolving credit facility carries a maximum leverage "
        "covenant of 3.5x net debt to EBITDA.",
    ])
    pdf.page("EBITDA and Cash Flow", [
        "EBITDA margin has grown from 12% to 15% over past 3 years, "
        "reflecting operating leverage in the processing platform.",
        "Operating cash flow was $58 million, covering capital "
        "expenditure 2.1 times. Cash flow generation is strong.",
    ])
    pdf.page("Risk Factors", [
        "Approximately 35% of revenue is denominated in Brazilian real "
        "and Mexican peso, creating material currency fluctuation "
        "exposure.",
        "Pending payments regulation in two LATAM jurisdictions may "
        "require additional licensing.",
    ])
    return pdf.save("company_x_financial_report.pdf")


def generate_business_plan() -> Path:
    pdf = DataRoomDocument("Company X - Business Plan 2025-2027")

    sections = [
        ("Executive Summary", [
            "Company X plans to double its merchant base by 2027 while "
            "expanding margins through platform consolidation.",
        ]),
        ("Product", [
            "The core product is a unified payments API with fraud "
            "screening and settlement in 14 currencies.",
        ]),
        ("Customers", [
            "The top 20 merchants account for 31% of processing volume.",
        ]),
        ("Go-To-Market", [
            "Growth is driven by a partner channel of 120 independent "
            "software vendors.",
        ]),
        ("Operations", [
            "Engineering headcount will grow from 180 to 240 to support "
            "new product lines.",
        ]),
        ("Competitive Landscape", [
            "Competition is moderate to strong in core markets, with two "
            "global incumbents and several regional challengers.",
        ]),
        ("Market Share", [
            "Company X holds a 12% market share in its primary segment.",
        ]),
        ("Market Outlook", [
            "Market expected to grow at 10% CAGR through 2027, led by "
            "cross-border e-commerce in LATAM.",
            "A slowdown in consumer spending is the principal market "
            "decline scenario considered in this plan.",
        ]),
    ]
    for title, paragraphs in sections:
        pdf.page(title, paragraphs)
    return pdf.save("company_x_business_plan.pdf")


if __name__ == "__main__":
    generate_financial_report()
    generate_business_plan()
