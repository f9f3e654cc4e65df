"""
Report Export
CSV, plain-text and PDF renderings of fee reports
"""

import csv
import io
from datetime import date

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from report_helpers import period_summary, batch_breakdown, field_value, amount_of, is_paid

FEE_CSV_HEADERS = ['Student Name', 'Batch', 'Amount', 'Month/Year', 'Status', 'Payment Date', 'Payment Method']


def _rupees(amount):
    return f"Rs. {amount:,}"


def _text(value):
    if value is None:
        return ''
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def _write_csv(headers, rows):
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


def fee_records_csv(records):
    """One line per fee record"""
    rows = [
        [
            field_value(r, 'student_name') or '',
            field_value(r, 'batch') or '',
            amount_of(r),
            f"{field_value(r, 'month')} {field_value(r, 'year')}",
            field_value(r, 'status') or '',
            _text(getattr(r, 'paid_date', None)),
            _text(field_value(r, 'payment_method')),
        ]
        for r in records
    ]
    return _write_csv(FEE_CSV_HEADERS, rows)


def batch_breakdown_csv(rows):
    return _write_csv(
        ['Batch', 'Students', 'Collected', 'Pending', 'Collection Rate (%)'],
        [[r['batch'], r['student_count'], r['collected'], r['pending'], r['collection_rate']] for r in rows],
    )


def defaulters_csv(rows):
    return _write_csv(
        ['Student Name', 'Batch', 'Amount', 'Months Overdue', 'Contact'],
        [[r['student_name'], r['batch'], r['amount'], r['months_overdue'], r['contact']] for r in rows],
    )


def _batch_sections(records):
    """Per-batch counts and amounts in order of first appearance"""
    sections = {}
    for record in records:
        section = sections.setdefault(field_value(record, 'batch') or 'N/A', [])
        section.append(record)
    return [(name, period_summary(batch_records)) for name, batch_records in sections.items()]


def detailed_fee_report(records, period_label, generated_on=None):
    """
    Plain-text fee collection report
    Args:
        records: Fee records already filtered to the period being reported
        period_label: e.g. "July 2025"
        generated_on: Report date, defaults to today
    Returns:
        str
    """
    generated_on = generated_on or date.today()
    summary = period_summary(records)

    lines = [
        "FEE COLLECTION REPORT",
        f"Generated on: {generated_on.isoformat()}",
        f"Period: {period_label}",
        "",
        "SUMMARY",
        "=======",
        f"Total Students: {summary['total_count']}",
        f"Paid Students: {summary['paid_count']}",
        f"Pending Students: {summary['pending_count']}",
        f"Total Amount: {_rupees(summary['total_amount'])}",
        f"Paid Amount: {_rupees(summary['paid_amount'])}",
        f"Pending Amount: {_rupees(summary['pending_amount'])}",
        f"Collection Rate: {summary['collection_rate']}%",
        "",
        "BATCH SUMMARY",
        "=============",
    ]

    for name, batch in _batch_sections(records):
        rate = round(batch['paid_amount'] / batch['total_amount'] * 100, 1) if batch['total_amount'] else 0.0
        lines.extend([
            "",
            f"{name}:",
            f"  Students: {batch['total_count']}",
            f"  Total Amount: {_rupees(batch['total_amount'])}",
            f"  Paid Amount: {_rupees(batch['paid_amount'])}",
            f"  Pending Amount: {_rupees(batch['pending_amount'])}",
            f"  Collection Rate: {rate}%",
        ])

    lines.extend(["", "DETAILED RECORDS", "================"])
    for index, record in enumerate(records, start=1):
        paid_date = getattr(record, 'paid_date', None)
        lines.extend([
            "",
            f"{index}. {field_value(record, 'student_name')} ({field_value(record, 'batch')})",
            f"   Amount: {_rupees(amount_of(record))}",
            f"   Status: {(field_value(record, 'status') or '').upper()}",
            f"   Paid Date: {_text(paid_date)}" if paid_date else "   Not Paid",
        ])
        method = field_value(record, 'payment_method')
        if method:
            lines.append(f"   Payment Method: {method}")

    return "\n".join(lines) + "\n"


def fee_report_pdf(records, period_label, academy_name="Academy", students=None, batches=None, generated_on=None):
    """
    Render the fee report as a PDF
    Returns:
        io.BytesIO positioned at the start
    """
    generated_on = generated_on or date.today()
    summary = period_summary(records)

    buffer = io.BytesIO()
    p = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    p.setFont("Helvetica-Bold", 20)
    p.drawCentredString(width/2, height - 50, academy_name)
    p.setFont("Helvetica", 12)
    p.drawCentredString(width/2, height - 70, f"Fee Collection Report - {period_label}")

    y = height - 110
    p.setFont("Helvetica-Bold", 11)
    p.drawString(50, y, "Summary:")
    y -= 20

    p.setFont("Helvetica", 11)
    summary_rows = [
        ("Total Students", summary['total_count']),
        ("Paid Students", summary['paid_count']),
        ("Pending Students", summary['pending_count']),
        ("Total Amount", _rupees(summary['total_amount'])),
        ("Paid Amount", _rupees(summary['paid_amount'])),
        ("Pending Amount", _rupees(summary['pending_amount'])),
        ("Collection Rate", f"{summary['collection_rate']}%"),
    ]
    for label, value in summary_rows:
        p.drawString(70, y, label)
        p.drawString(250, y, str(value))
        y -= 18

    y -= 10
    p.setFont("Helvetica-Bold", 11)
    p.drawString(50, y, "Batch-wise Collection:")
    y -= 20

    p.setFont("Helvetica", 10)
    for row in batch_breakdown(records, students or [], batches or []):
        if y < 80:
            p.showPage()
            p.setFont("Helvetica", 10)
            y = height - 50
        p.drawString(70, y, row['batch'])
        p.drawString(250, y, f"Collected {_rupees(row['collected'])}")
        p.drawString(380, y, f"Pending {_rupees(row['pending'])}")
        p.drawString(500, y, f"{row['collection_rate']}%")
        y -= 16

    y -= 10
    if y < 80:
        p.showPage()
        y = height - 50
    p.setFont("Helvetica-Bold", 11)
    p.drawString(50, y, "Records:")
    y -= 20

    p.setFont("Helvetica", 9)
    for record in records:
        if y < 80:
            p.showPage()
            p.setFont("Helvetica", 9)
            y = height - 50
        status = "PAID" if is_paid(record) else (field_value(record, 'status') or '').upper()
        p.drawString(70, y, f"{field_value(record, 'student_name')} ({field_value(record, 'batch')})")
        p.drawString(300, y, _rupees(amount_of(record)))
        p.drawString(380, y, status)
        p.drawString(450, y, _text(getattr(record, 'paid_date', None)))
        y -= 14

    p.setFont("Helvetica", 9)
    p.drawString(50, 50, f"Generated on: {generated_on.strftime('%d-%b-%Y')}")
    p.drawCentredString(width/2, 35, "This is a computer-generated report")

    p.showPage()
    p.save()
    buffer.seek(0)
    return buffer
