import logging
import os
import sys
from decimal import Decimal
from typing import Dict, TextIO

from models import LEDGER_CONTEXT, ClientAccount
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

OUTPUT_HEADER = "client,available,held,total,locked"


def format_decimal(value: Decimal) -> str:
    """Format decimal without exponent, removing trailing zeros."""
    normalized = value.normalize(LEDGER_CONTEXT)
    return f"{normalized:f}"


def write_accounts(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    print(OUTPUT_HEADER, file=stream)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        print(
            f"{client_id},"
            f"{format_decimal(account.available)},"
            f"{format_decimal(account.held)},"
            f"{format_decimal(account.total)},"
            f"{str(account.locked).lower()}",
            file=stream,
        )


def log_level_from_env() -> int:
    """Level named by LOG_LEVEL, falling back to WARNING for unknown names."""
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "WARNING").strip().upper())
    if not isinstance(level, int):
        return logging.WARNING
    return level


def configure_logging() -> None:
    logging.basicConfig(
        level=log_level_from_env(),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main():
    configure_logging()

    if len(sys.argv) != 2:
        print("Usage: python main.py <input.csv | ->", file=sys.stderr)
        sys.exit(1)

    filepath = sys.argv[1]
    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(filepath)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read input {filepath}: {e}")
        sys.exit(1)

    write_accounts(accounts, sys.stdout)


if __name__ == "__main__":
    main()
