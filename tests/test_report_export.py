import csv
import io
from datetime import date

from report_export import (
    FEE_CSV_HEADERS, fee_records_csv, batch_breakdown_csv, defaulters_csv, detailed_fee_report,
    fee_report_pdf
)
from fee_models import FeeStatusEnum, PaymentMethodEnum

from conftest import fee


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


def test_fee_records_csv():
    paid = fee(student_name='Asha, Jr.', amount=800, status=FeeStatusEnum.PAID, paid_date=date(2025, 7, 3))
    paid.payment_method = PaymentMethodEnum.UPI
    rows = _rows(fee_records_csv([paid, fee(student_name='Ben', amount=600)]))

    assert rows[0] == FEE_CSV_HEADERS
    assert rows[1] == ['Asha, Jr.', 'Morning', '800', 'July 2025', 'paid', '2025-07-03', 'UPI']
    assert rows[2] == ['Ben', 'Morning', '600', 'July 2025', 'pending', '', '']


def test_batch_and_defaulter_csv():
    batch_rows = _rows(batch_breakdown_csv([
        {'batch': 'Morning', 'student_count': 2, 'collected': 300, 'pending': 600, 'collection_rate': 33.3},
    ]))
    assert batch_rows[1] == ['Morning', '2', '300', '600', '33.3']

    defaulter_rows = _rows(defaulters_csv([
        {'student_name': 'Asha', 'batch': 'Morning', 'amount': 800, 'months_overdue': 3, 'contact': 'N/A'},
    ]))
    assert defaulter_rows[0][3] == 'Months Overdue'
    assert defaulter_rows[1] == ['Asha', 'Morning', '800', '3', 'N/A']


def test_detailed_fee_report():
    records = [
        fee(student_name='Asha', batch='Morning', amount=1000, status=FeeStatusEnum.PAID, paid_date=date(2025, 7, 2)),
        fee(student_name='Ben', batch='Morning', amount=500),
        fee(student_name='Cara', batch='Evening', amount=500),
    ]

    report = detailed_fee_report(records, 'July 2025', generated_on=date(2025, 7, 20))

    assert report.startswith("FEE COLLECTION REPORT\n")
    assert "Generated on: 2025-07-20" in report
    assert "Period: July 2025" in report
    assert "Total Students: 3" in report
    assert "Paid Students: 1" in report
    assert "Total Amount: Rs. 2,000" in report
    assert "Pending Amount: Rs. 1,000" in report
    assert "Collection Rate: 33.3%" in report
    assert "Morning:\n  Students: 2" in report
    assert "Evening:\n  Students: 1" in report
    assert "1. Asha (Morning)" in report
    assert "Paid Date: 2025-07-02" in report
    assert "Not Paid" in report


def test_detailed_fee_report_empty():
    report = detailed_fee_report([], 'July 2025', generated_on=date(2025, 7, 20))
    assert "Total Students: 0" in report
    assert "Collection Rate: 0.0%" in report


def test_fee_report_pdf():
    records = [fee(student_name=f'Student {i}', amount=500) for i in range(80)]
    buffer = fee_report_pdf(records, 'July 2025', academy_name='Bright Minds')

    data = buffer.getvalue()
    assert data.startswith(b'%PDF')
    assert len(data) > 1000
