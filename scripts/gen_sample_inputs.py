#!/usr/bin/env python3
"""Sample input generator.

Writes a tagged bond form plus matching maturity and CUSIP schedules so the
generator can be tried without real closing documents:

- ``bond_form.docx``: minimal .docx whose body uses every template tag
- ``maturity_schedule.xlsx``: title row, header row, one row per maturity
- ``cusip_schedule.xlsx``: header row, one CUSIP per maturity

The defaults line up with ``config/generate.yml``.
"""
from __future__ import annotations

import argparse
import io
import string
import sys
import zipfile
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

FORM_LINES = (
    "{{ISSUER_NAME}}",
    "{{BOND_TITLE}}, Series {{SERIES}}",
    "No. {{BOND_NUMBER}}    CUSIP {{CUSIP_NO}}",
    "Dated Date: {{DATED_DATE}}    Maturity Date: {{MATURITY_DATE}}",
    "Interest Rate: {{INTEREST_RATE}}, payable {{INTEREST_DATES}}",
    "Principal Amount: ${{PRINCIPAL_AMOUNT_NUM}}",
    "{{PRINCIPAL_AMOUNT_WORDS}}",
    "Project: {{PROJECT_NAME}}",
)

CONTENT_TYPES_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    "</Types>"
)

RELS_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" '
    'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    'Target="word/document.xml"/>'
    "</Relationships>"
)

ISSUE_CHARS = string.digits + string.ascii_uppercase


def cusip_check_digit(base: str) -> str:
    """Standard modulus-10 "double add double" check digit for 8 characters."""
    total = 0
    for i, ch in enumerate(base):
        value = int(ch) if ch.isdigit() else ord(ch) - ord("A") + 10
        if i % 2 == 1:
            value *= 2
        total += value // 10 + value % 10
    return str((10 - total % 10) % 10)


def build_form() -> bytes:
    """Minimal .docx package carrying FORM_LINES, one paragraph each."""
    body = "".join(f"<w:p><w:r><w:t xml:space=\"preserve\">{line}</w:t></w:r></w:p>" for line in FORM_LINES)
    document = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body>{body}</w:body></w:document>"
    )
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", CONTENT_TYPES_XML)
        zf.writestr("_rels/.rels", RELS_XML)
        zf.writestr("word/document.xml", document)
    return buf.getvalue()


def build_schedules(
    bonds: int,
    first_year: int,
    dated_date: str,
    issuer_id: str,
    seed: int = 42,
) -> tuple[list[list[Any]], list[list[Any]]]:
    """Maturity and CUSIP grids for ``bonds`` annual maturities.

    Principal amounts are multiples of 5,000; coupons step down from 5%.
    """
    rng = np.random.default_rng(seed)
    maturity: list[list[Any]] = [
        ["Debt Service Schedule"],
        ["Maturity Date", "Principal Amount", "Coupon Rate", "Dated Date"],
    ]
    cusip: list[list[Any]] = [["CUSIP", "Maturity Date"]]

    for i in range(bonds):
        date = f"{first_year + i}-06-01"
        principal = int(rng.integers(20, 400)) * 5000
        rate = max(2.0, 5.0 - 0.125 * i)
        maturity.append([date, principal, rate, dated_date if i == 0 else None])

        issue = ISSUE_CHARS[10 + i // 36] + ISSUE_CHARS[i % 36]
        base = f"{issuer_id}{issue}"
        cusip.append([base + cusip_check_digit(base), date])
    return maturity, cusip


def write_workbook(path: Path, rows: list[list[Any]], sheet_name: str = "Schedule") -> None:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a sample bond form and schedules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 10 annual maturities into ./data
  %(prog)s

  # 25 maturities starting in 2027 for issuer 123456
  %(prog)s --bonds 25 --first-year 2027 --issuer-id 123456 --out-dir samples
        """,
    )
    parser.add_argument("--out-dir", type=Path, default=Path("data"), help="Output directory (default: data)")
    parser.add_argument("--bonds", type=int, default=10, help="Number of maturities (default: 10)")
    parser.add_argument("--first-year", type=int, default=2026, help="Year of the first maturity (default: 2026)")
    parser.add_argument("--dated-date", default="2025-01-15", help="Dated date written on the first row")
    parser.add_argument("--issuer-id", default="052414", help="6 character CUSIP issuer number")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for principal amounts (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be generated without creating files")
    args = parser.parse_args()

    if args.bonds <= 0:
        print("Error: --bonds must be positive", file=sys.stderr)
        return 1
    # 36 * 26 通りまで (AA..Z9)
    if args.bonds > 26 * 36:
        print(f"Error: --bonds must be at most {26 * 36}", file=sys.stderr)
        return 1
    if len(args.issuer_id) != 6 or not args.issuer_id.isalnum():
        print("Error: --issuer-id must be 6 letters or digits", file=sys.stderr)
        return 1

    print("Sample generation plan:")
    print(f"  Output directory: {args.out_dir}")
    print(f"  Maturities: {args.bonds} ({args.first_year}..{args.first_year + args.bonds - 1})")
    print(f"  Dated date: {args.dated_date}")
    print(f"  Issuer number: {args.issuer_id.upper()}")

    if args.dry_run:
        print("\n[DRY RUN] Would generate files but not creating them.")
        return 0

    maturity, cusip = build_schedules(
        args.bonds, args.first_year, args.dated_date, args.issuer_id.upper(), args.seed
    )
    try:
        args.out_dir.mkdir(parents=True, exist_ok=True)
        (args.out_dir / "bond_form.docx").write_bytes(build_form())
        write_workbook(args.out_dir / "maturity_schedule.xlsx", maturity)
        write_workbook(args.out_dir / "cusip_schedule.xlsx", cusip)
    except OSError as e:
        print(f"\nError writing samples: {e}", file=sys.stderr)
        return 1

    print(f"\nCreated {args.out_dir / 'bond_form.docx'}")
    print(f"Created {args.out_dir / 'maturity_schedule.xlsx'}")
    print(f"Created {args.out_dir / 'cusip_schedule.xlsx'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
