import csv
from typing import Iterable, TextIO

from models import ClientAccount, format_amount

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]


def account_row(account: ClientAccount) -> list:
    return [
        account.client_id,
        format_amount(account.available),
        format_amount(account.held),
        format_amount(account.total),
        str(account.locked).lower(),
    ]


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    """Write the account snapshot as CSV, in the order given."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for account in accounts:
        writer.writerow(account_row(account))
