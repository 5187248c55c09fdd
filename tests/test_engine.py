import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import TransactionSourceError
from ledger_engine import LedgerEngine
from payments_engine import PaymentsEngine


def process(tmp_path, lines, queue_capacity=2):
    csv_file = tmp_path / "test.csv"
    csv_file.write_text('\n'.join(lines))
    engine = PaymentsEngine(queue_capacity=queue_capacity)
    return {account.client_id: account for account in engine.process_file(str(csv_file))}


class TestPaymentsEngine:
    def test_basic_transactions(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        ])

        assert list(accounts) == [1, 2]

        assert accounts[1].available == Decimal("1.5")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("1.5")
        assert accounts[1].locked is False

        assert accounts[2].available == Decimal("2.0")
        assert accounts[2].held == Decimal("0")
        assert accounts[2].total == Decimal("2.0")
        assert accounts[2].locked is False

    def test_dispute_resolve(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
        ])

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_chargeback(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 10",
            "deposit, 1, 2, 5",
            "dispute, 1, 2,",
            "chargeback, 1, 2,",
        ])

        assert accounts[1].available == Decimal("10")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("10")
        assert accounts[1].locked is True

    def test_dispute_before_deposit_ignored(self, tmp_path):
        """Order matters: a dispute that arrives before its deposit finds nothing."""
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "dispute, 1, 1,",
            "deposit, 1, 1, 100.0",
        ])

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")

    def test_insufficient_funds(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 50.0",
            "withdrawal, 1, 2, 100.0",
        ])

        assert accounts[1].available == Decimal("50")
        assert accounts[1].total == Decimal("50")

    def test_decimal_precision(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 1.2345",
            "deposit, 1, 2, 0.0001",
            "withdrawal, 1, 3, 0.2346",
        ])

        # 1.2345 + 0.0001 - 0.2346 = 1.0000
        assert accounts[1].available == Decimal("1.0000")

    def test_dispute_withdrawal_ignored(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "withdrawal, 1, 2, 50.0",
            "dispute, 1, 2,",
        ])

        assert accounts[1].available == Decimal("50")
        assert accounts[1].held == Decimal("0")

    def test_duplicate_dispute_ignored(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "dispute, 1, 1,",
        ])

        assert accounts[1].available == Decimal("0")
        assert accounts[1].held == Decimal("100")

    def test_locked_account_keeps_processing(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 2, 50.0",
            "withdrawal, 1, 3, 10.0",
        ])

        assert accounts[1].available == Decimal("40")
        assert accounts[1].total == Decimal("40")
        assert accounts[1].locked is True

    def test_dispute_from_other_client_without_funds_ignored(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 2, 1,",
        ])

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[2].available == Decimal("0")
        assert accounts[2].held == Decimal("0")

    def test_resolve_without_dispute_ignored(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "resolve, 1, 1,",
        ])

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")

    def test_chargeback_after_resolve_ignored(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "chargeback, 1, 1,",
        ])

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_partial_withdrawal_then_dispute_rejected(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 10",
            "withdrawal, 1, 2, 5",
            "dispute, 1, 1,",
        ])

        assert accounts[1].available == Decimal("5")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("5")

    def test_multiple_disputes_same_client(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, 50.0",
            "dispute, 1, 1,",
            "dispute, 1, 2,",
            "resolve, 1, 1,",
            "chargeback, 1, 2,",
        ])

        # After resolve tx1: available=100, held=50
        # After chargeback tx2: available=100, held=0, total=100, locked=True
        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].total == Decimal("100")
        assert accounts[1].locked is True

    def test_no_redispute_after_resolve(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        ])

        assert accounts[1].available == Decimal("100")
        assert accounts[1].held == Decimal("0")
        assert accounts[1].locked is False

    def test_negative_deposit_skipped(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, -100.0",
            "deposit, 1, 2, 50.0",
        ])

        assert accounts[1].available == Decimal("50")
        assert accounts[1].total == Decimal("50")

    def test_malformed_rows_skipped(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 10",
            "Deposit, 1, 2, 10",
            "deposit, 1, 3",
            "deposit, 1, 4, ten",
            "withdrawal, 1, 5, 1",
        ]))

        engine = PaymentsEngine()
        accounts = engine.process_file(str(csv_file))

        assert len(accounts) == 1
        assert accounts[0].available == Decimal("9")
        assert engine.stats.skipped == 3
        assert engine.stats.applied == 2

    def test_duplicate_deposit_credits_again(self, tmp_path):
        accounts = process(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "deposit, 1, 1, 100.0",
        ])

        assert accounts[1].available == Decimal("200")

    def test_header_only(self, tmp_path):
        assert process(tmp_path, ["type, client, tx, amount"]) == {}

    def test_missing_file_is_fatal(self, tmp_path):
        engine = PaymentsEngine()
        with pytest.raises(TransactionSourceError):
            engine.process_file(str(tmp_path / "missing.csv"))

    def test_oversized_amount_skipped(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 900000000000000000000000",
            "deposit, 1, 2, 900000000000000000000000",
            "deposit, 2, 3, 1",
        ]))

        engine = PaymentsEngine()
        accounts = engine.process_file(str(csv_file))

        assert [(a.client_id, a.available) for a in accounts] == [(2, Decimal("1"))]
        assert engine.stats.skipped == 2

    def test_maximum_amounts_accumulate_exactly(self, tmp_path):
        lines = ["type, client, tx, amount"]
        lines += [f"deposit, 1, {tx_id}, 1000000000000000" for tx_id in range(1, 21)]
        lines.append("withdrawal, 1, 21, 0.0001")

        accounts = process(tmp_path, lines)

        assert accounts[1].available == Decimal("19999999999999999.9999")
        assert accounts[1].total == Decimal("19999999999999999.9999")

    def test_ledger_failure_drops_remaining_rows_and_reraises(self, tmp_path, monkeypatch):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join(
            ["type, client, tx, amount"] + [f"deposit, 1, {tx_id}, 1" for tx_id in range(1, 51)]
        ))
        original_apply = LedgerEngine.apply
        applied = []

        def failing_apply(self, transaction):
            if len(applied) == 3:
                raise RuntimeError("ledger unavailable")
            applied.append(transaction)
            original_apply(self, transaction)

        monkeypatch.setattr(LedgerEngine, "apply", failing_apply)
        engine = PaymentsEngine(queue_capacity=1)

        with pytest.raises(RuntimeError, match="ledger unavailable"):
            engine.process_file(str(csv_file))

        assert engine.stats.applied == 3
        # 3 applied, 1 failed, at most 1 left in the queue, the rest dropped
        assert 45 <= engine.stats.dropped <= 46
