import csv
import logging
import sys
from typing import Dict, Iterable, TextIO

from models import Transaction, ClientAccount, ProcessingStats
from ledger import Ledger
from transaction_parser import parse_csv_row, TransactionParseError
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)

STDIN_SENTINEL = "-"


class PaymentsEngine:
    """
    Feeds transactions to the processor strictly in input order, one at a time.
    Unparsable rows and rejected transactions are logged and skipped; only
    failures to open or read the input propagate.
    """

    def __init__(self):
        self._ledger = Ledger()
        self._processor = TransactionProcessor(self._ledger)
        self._stats = ProcessingStats()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file (or stdin for "-") and return final account states."""
        if filepath == STDIN_SENTINEL:
            return self.process_stream(sys.stdin)

        with open(filepath, "r", newline="") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientAccount]:
        """Process CSV text from an open stream."""
        logger.info("Starting processing")

        reader = csv.DictReader(stream)
        while True:
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                # the reader drops the bad record and resumes on the next line
                self._stats.record_parse_failure()
                logger.warning(f"Failed to read row {reader.line_num}: {e}")
                continue

            try:
                transaction = parse_csv_row(row)
            except TransactionParseError as e:
                self._stats.record_parse_failure()
                logger.warning(f"Failed to parse row {reader.line_num} {row}: {e}")
                continue
            self._apply(transaction)

        logger.info(f"Processing complete. {self._stats.summary()}")
        return self._ledger.get_all_accounts()

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply already-parsed transactions in order."""
        for transaction in transactions:
            self._apply(transaction)
        return self._ledger.get_all_accounts()

    def _apply(self, transaction: Transaction) -> None:
        result = self._processor.process_transaction(transaction)
        self._stats.record_result(result)
