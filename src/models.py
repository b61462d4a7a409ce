from collections import Counter
from dataclasses import dataclass, field
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow
from enum import Enum
from typing import Dict, Optional

# Balance arithmetic never rounds: anything that does not fit raises Inexact.
LEDGER_CONTEXT = Context(prec=64, traps=[InvalidOperation, DivisionByZero, Overflow, Inexact])


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class ProcessingResult(Enum):
    SUCCESS = "success"
    INVALID_AMOUNT = "invalid amount"
    UNKNOWN_ACCOUNT = "unknown account"
    LOCKED_ACCOUNT = "locked account"
    DUPLICATE_TRANSACTION = "duplicate transaction id"
    INSUFFICIENT_FUNDS = "insufficient funds"
    UNKNOWN_TRANSACTION = "unknown transaction"
    ALREADY_DISPUTED = "already disputed"
    NOT_DISPUTED = "not disputed"
    PRECISION_EXCEEDED = "balance precision exceeded"

    @property
    def is_success(self) -> bool:
        return self is ProcessingResult.SUCCESS


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    @classmethod
    def deposit(cls, client_id: int, transaction_id: int, amount: Decimal) -> "Transaction":
        return cls(TransactionType.DEPOSIT, client_id, transaction_id, amount)

    @classmethod
    def withdrawal(cls, client_id: int, transaction_id: int, amount: Decimal) -> "Transaction":
        return cls(TransactionType.WITHDRAWAL, client_id, transaction_id, amount)

    @classmethod
    def dispute(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.DISPUTE, client_id, transaction_id)

    @classmethod
    def resolve(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.RESOLVE, client_id, transaction_id)

    @classmethod
    def chargeback(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.CHARGEBACK, client_id, transaction_id)

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class StoredDeposit:
    amount: Decimal
    under_dispute: bool = False


@dataclass
class ClientAccount:
    """
    Balances for one client plus the deposits that may later be disputed.
    Mutators do no validation; TransactionProcessor checks before calling them.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False
    deposits: Dict[int, StoredDeposit] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return LEDGER_CONTEXT.add(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        self._set_balances(LEDGER_CONTEXT.add(self.available, amount), self.held)

    def debit(self, amount: Decimal) -> None:
        self._set_balances(LEDGER_CONTEXT.subtract(self.available, amount), self.held)

    def hold(self, amount: Decimal) -> None:
        self._set_balances(
            LEDGER_CONTEXT.subtract(self.available, amount),
            LEDGER_CONTEXT.add(self.held, amount),
        )

    def release_hold(self, amount: Decimal) -> None:
        self._set_balances(
            LEDGER_CONTEXT.add(self.available, amount),
            LEDGER_CONTEXT.subtract(self.held, amount),
        )

    def remove_held(self, amount: Decimal) -> None:
        self._set_balances(self.available, LEDGER_CONTEXT.subtract(self.held, amount))

    def _set_balances(self, available: Decimal, held: Decimal) -> None:
        # total must stay exact too; raises Inexact before anything is assigned
        LEDGER_CONTEXT.add(available, held)
        self.available = available
        self.held = held

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Counters for the end-of-run report."""

    def __init__(self):
        self.processed = 0
        self.unparsable = 0
        self.rejected: Counter = Counter()

    def record_result(self, result: ProcessingResult) -> None:
        if result.is_success:
            self.processed += 1
        else:
            self.rejected[result] += 1

    def record_parse_failure(self) -> None:
        self.unparsable += 1

    @property
    def total_rejected(self) -> int:
        return sum(self.rejected.values())

    def summary(self) -> str:
        text = f"Processed: {self.processed}, Rejected: {self.total_rejected}, Unparsable: {self.unparsable}"
        if self.rejected:
            breakdown = ", ".join(
                f"{result.value}={count}"
                for result, count in sorted(self.rejected.items(), key=lambda item: item[0].value)
            )
            text += f" ({breakdown})"
        return text
