import logging
from decimal import Decimal, Inexact
from typing import Optional, Tuple, Union

from models import LEDGER_CONTEXT, Transaction, TransactionType, ClientAccount, StoredDeposit, ProcessingResult
from ledger import Ledger

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies one transaction at a time to the ledger.
    Every check runs before any field is touched, so a rejected transaction
    leaves the ledger exactly as it found it.
    """

    def __init__(self, ledger: Ledger):
        self._ledger = ledger

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the ledger
            anything else: Rejected for that reason, ledger unchanged
        """
        try:
            result = self._dispatch(transaction)
        except Inexact:
            result = ProcessingResult.PRECISION_EXCEEDED

        if not result.is_success:
            logger.warning(f"Rejected {transaction}: {result.value}")
        return result

    def _dispatch(self, transaction: Transaction) -> ProcessingResult:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(transaction)
            case _:
                raise ValueError(f"unsupported transaction type: {transaction.transaction_type}")

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        if not self._is_valid_amount(transaction.amount):
            return ProcessingResult.INVALID_AMOUNT

        account = self._ledger.get_account(transaction.client_id)
        if account is not None:
            if account.locked:
                return ProcessingResult.LOCKED_ACCOUNT
            if transaction.transaction_id in account.deposits:
                return ProcessingResult.DUPLICATE_TRANSACTION
        else:
            # raises Inexact before the account exists
            LEDGER_CONTEXT.plus(transaction.amount)
            account = self._ledger.open_account(transaction.client_id)

        account.credit(transaction.amount)
        account.deposits[transaction.transaction_id] = StoredDeposit(amount=transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        if not self._is_valid_amount(transaction.amount):
            return ProcessingResult.INVALID_AMOUNT

        account = self._get_unlocked_account(transaction)
        if isinstance(account, ProcessingResult):
            return account

        if account.available < transaction.amount:
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        found = self._find_deposit(transaction)
        if isinstance(found, ProcessingResult):
            return found
        account, deposit = found

        if deposit.under_dispute:
            return ProcessingResult.ALREADY_DISPUTED

        # available may go negative if part of the deposit was already withdrawn
        account.hold(deposit.amount)
        deposit.under_dispute = True
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        found = self._find_deposit(transaction)
        if isinstance(found, ProcessingResult):
            return found
        account, deposit = found

        if not deposit.under_dispute:
            return ProcessingResult.NOT_DISPUTED

        account.release_hold(deposit.amount)
        deposit.under_dispute = False
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        found = self._find_deposit(transaction)
        if isinstance(found, ProcessingResult):
            return found
        account, deposit = found

        if not deposit.under_dispute:
            return ProcessingResult.NOT_DISPUTED

        account.remove_held(deposit.amount)
        deposit.under_dispute = False
        account.lock()
        return ProcessingResult.SUCCESS

    def _get_unlocked_account(self, transaction: Transaction) -> Union[ClientAccount, ProcessingResult]:
        account = self._ledger.get_account(transaction.client_id)
        if account is None:
            return ProcessingResult.UNKNOWN_ACCOUNT
        if account.locked:
            return ProcessingResult.LOCKED_ACCOUNT
        return account

    def _find_deposit(self, transaction: Transaction) -> Union[Tuple[ClientAccount, StoredDeposit], ProcessingResult]:
        """
        Look up the deposit a dispute, resolve or chargeback refers to.
        Only the client's own deposits are searched, so referencing another
        client's tx id is an unknown transaction.
        """
        account = self._get_unlocked_account(transaction)
        if isinstance(account, ProcessingResult):
            return account

        deposit = account.deposits.get(transaction.transaction_id)
        if deposit is None:
            return ProcessingResult.UNKNOWN_TRANSACTION
        return account, deposit

    @staticmethod
    def _is_valid_amount(amount: Optional[Decimal]) -> bool:
        return amount is not None and amount.is_finite() and amount >= 0
