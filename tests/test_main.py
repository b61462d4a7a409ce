import sys
import os
import io
import logging
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import main
from models import ClientAccount


class TestFormatDecimal:
    def test_trailing_zeros_removed(self):
        assert main.format_decimal(Decimal("100.0")) == "100"
        assert main.format_decimal(Decimal("1.5000")) == "1.5"

    def test_four_places_kept(self):
        assert main.format_decimal(Decimal("0.0001")) == "0.0001"

    def test_negative(self):
        assert main.format_decimal(Decimal("-30.00")) == "-30"


class TestWriteAccounts:
    def test_rows_sorted_by_client(self):
        accounts = {
            2: ClientAccount(client_id=2, available=Decimal("2.0")),
            1: ClientAccount(client_id=1, available=Decimal("1.5"), held=Decimal("0.5"), locked=True),
        }
        out = io.StringIO()

        main.write_accounts(accounts, out)

        assert out.getvalue().splitlines() == [
            "client,available,held,total,locked",
            "1,1.5,0.5,2,true",
            "2,2,0,2,false",
        ]

    def test_empty(self):
        out = io.StringIO()
        main.write_accounts({}, out)
        assert out.getvalue() == "client,available,held,total,locked\n"


class TestMain:
    def test_end_to_end(self, tmp_path, monkeypatch, capsys):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
            "oops, 1",
        ]))
        monkeypatch.setattr(sys, "argv", ["main.py", str(csv_file)])

        main.main()

        assert capsys.readouterr().out.splitlines() == [
            "client,available,held,total,locked",
            "1,1.5,0,1.5,false",
            "2,2,0,2,false",
        ]

    def test_reads_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["main.py", "-"])
        monkeypatch.setattr(sys, "stdin", io.StringIO("type,client,tx,amount\ndeposit,65535,4294967295,0.0001\n"))

        main.main()

        assert capsys.readouterr().out.splitlines()[1] == "65535,0.0001,0,0.0001,false"

    def test_oversized_field_does_not_abort(self, tmp_path, monkeypatch, capsys):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("\n".join([
            "type,client,tx,amount",
            "deposit,1,1,10",
            "deposit,1,2," + "1" * 200000,
            "deposit,1,3,5",
        ]))
        monkeypatch.setattr(sys, "argv", ["main.py", str(csv_file)])

        main.main()

        assert capsys.readouterr().out.splitlines() == [
            "client,available,held,total,locked",
            "1,15,0,15,false",
        ]

    def test_large_balance_printed_exactly(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["main.py", "-"])
        monkeypatch.setattr(sys, "stdin", io.StringIO(
            "type,client,tx,amount\ndeposit,1,1,1000000000000000000000000\ndeposit,1,2,0.0001\n"
        ))

        main.main()

        assert capsys.readouterr().out.splitlines()[1] == (
            "1,1000000000000000000000000.0001,0,1000000000000000000000000.0001,false"
        )

    def test_missing_file_exits_non_zero(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["main.py", str(tmp_path / "missing.csv")])

        with pytest.raises(SystemExit) as exc_info:
            main.main()

        assert exc_info.value.code == 1
        assert capsys.readouterr().out == ""

    def test_usage(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["main.py"])

        with pytest.raises(SystemExit) as exc_info:
            main.main()

        assert exc_info.value.code == 1
        assert "Usage" in capsys.readouterr().err


class TestLogLevel:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert main.log_level_from_env() == logging.WARNING

    def test_named_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert main.log_level_from_env() == logging.DEBUG

    def test_unknown_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "foo")
        assert main.log_level_from_env() == logging.WARNING
