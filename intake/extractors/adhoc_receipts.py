"""
Ad-hoc receipts upload.

Each row is a payment against a stored policyholder, found by policy number
or by the holder's national id. Amount must be positive and the payment date
readable; the period defaults to the payment month.
"""

from __future__ import annotations

from intake.errors import LinkResolutionFailure, RowValidationError
from intake.extractors.adhoc import SingleSheetExtractor
from intake.extractors.base import ExtractOutput
from intake.logger import get_logger
from intake.mapping import SheetKind
from intake.normalizers import DataCleaner, DateParser
from intake.workbook import Workbook

logger = get_logger(__name__)


class AdHocReceiptExtractor(SingleSheetExtractor):
    source_format = "adhoc_receipts"
    sheet_kind = SheetKind.RECEIPTS

    def extract(self, workbook: Workbook) -> ExtractOutput:
        sheet = self.sheet_of(workbook)
        mapping = self.mapping_of(sheet)
        out = ExtractOutput()
        for row_number, row in sheet.data_rows():
            with self.ctx.collector.row_guard(sheet.name, row_number):
                reference = self.text(row, mapping, "policy_number") or self.text(row, mapping, "subscriber_national_id")
                holder = self.ctx.reconciler.resolve(
                    self.cell(row, mapping, "policy_number"),
                    self.cell(row, mapping, "subscriber_national_id"),
                    sheet.name,
                    row_number,
                )
                if holder is None:
                    if self.records_link_failures():
                        raise LinkResolutionFailure(reference, row_number, sheet.name)
                    logger.debug("Dropping receipt row %d: no policyholder %r", row_number, reference)
                    continue

                amount = DataCleaner.to_float(self.cell(row, mapping, "amount"))
                if amount is None or amount <= 0:
                    raise RowValidationError(f"Amount must be a positive number, got {self.text(row, mapping, 'amount')!r}")
                paid_on = DateParser.parse(self.cell(row, mapping, "date"))
                if paid_on is None:
                    raise RowValidationError(f"Unreadable payment date {self.text(row, mapping, 'date')!r}")

                self.add_payment(
                    out, holder, sheet.name, row_number,
                    amount=round(amount, 2),
                    payment_date=paid_on.isoformat(),
                    period=self.text(row, mapping, "payment_period") or paid_on.strftime("%Y-%m"),
                    method=self.ctx.classifiers.payment_method.classify(self.cell(row, mapping, "method")),
                    receipt_reference=self.text(row, mapping, "receipt_url")
                    or self.text(row, mapping, "system_receipt_number"),
                    created_at=self.ctx.timestamp,
                )
        logger.info("Ad-hoc receipts: %d payments from %s", len(out.payments), sheet.name)
        return out
