#!/usr/bin/env python3
"""
Score a due-diligence report against the eval scenarios.

Usage:
    python scripts/run_evals.py                  # bundled sample report
    python scripts/run_evals.py report.md        # any rendered report
    python scripts/run_evals.py report.md 1 3    # selected scenarios

Exits 0 only when every selected scenario passes.
"""

import logging
import sys
from pathlib import Path

from due_diligence.services.evals import (
    generate_eval_report,
    load_scenarios,
    run_all_evals,
)

SAMPLE_REPORT = """
# Due Diligence Report

## Recommendation: REVIEW

### Summary
Company X shows strong financial metrics with EBITDA of 15% and manageable debt ratio of 0.7.
However, the market faces significant competition and regulatory uncertainty in LATAM regions.

### Financial Analysis
- Strong cash flow generation
- Healthy debt levels
- Key financial risk: Currency fluctuation exposure [Citation: Financial Report, Page 4]

### Market Analysis
- Growth rate: 10% CAGR expected
- Moderate to strong competition in core markets [Citation: Business Plan, Page 8]
- Market share: 12% in primary segment

### Risk Mitigation
1. **Debt Risk** (HIGH): Monitor debt covenants and maintain liquidity buffers
   - Mitigation: Establish credit facility backup, quarterly covenant reviews

2. **Market Decline Risk** (MEDIUM): Diversify revenue streams
   - Mitigation: Expand into adjacent markets, develop new product lines

3. **Competition Risk** (MEDIUM): Strengthen competitive positioning
   - Mitigation: Increase R&D investment, enhance customer retention programs

### Citations
[Citation: Financial Report, Page 4] - "EBITDA margin has grown from 12% to 15% over past 3 years"
[Citation: Business Plan, Page 8] - "Market expected to grow at 10% CAGR through 2027"
"""


def main(argv: list[str]) -> int:
    logging.basicConfig(level=logging.WARNING)

    report_text = Path(argv[0]).read_text(encoding="utf-8") if argv else SAMPLE_REPORT
    scenario_ids = [int(a) for a in argv[1:]] or None

    scenarios = load_scenarios()
    results = run_all_evals(report_text, scenarios, scenario_ids)

    print("=" * 60)
    print("Investment Due Diligence Agent - Evaluation")
    print("=" * 60)
    print()
    print(generate_eval_report(results, scenarios))

    failed = sum(not r.passed for r in results)
    if failed:
        print(f"{failed} scenario(s) failed")
        return 1
    print("All evaluation scenarios passed")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
