"""Transaction history and CSV export. Read-only: the log is append-only."""
import csv
import io
from typing import List

from sqlalchemy.orm import Session

from medai.core.exceptions import RecordNotFoundError
from medai.core.utils import filter_by_term
from medai.models.transaction import Transaction

EXPORT_HEADER = ["TXN ID", "Patient", "Date", "Amount", "Profit"]


def get_transaction(db: Session, transaction_id: str) -> Transaction:
    txn = db.get(Transaction, transaction_id) if transaction_id else None
    if not txn:
        raise RecordNotFoundError("Transaction", transaction_id)
    return txn


def list_transactions(db: Session, search: str | None = None) -> List[Transaction]:
    """Newest first; search on patient name, phone or transaction id."""
    rows = db.query(Transaction).order_by(Transaction.date.desc(), Transaction.seq.desc()).all()
    return filter_by_term(
        rows, search,
        lambda t: t.patient.name if t.patient else None,
        lambda t: t.patient.phone if t.patient else None,
        lambda t: t.id,
    )


def export_transactions_csv(db: Session, search: str | None = None) -> str:
    """
    Delimited export of the (filtered) history.
    Columns: TXN ID, Patient, Date, Amount, Profit
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_HEADER)

    for t in list_transactions(db, search):
        writer.writerow([
            t.id,
            t.patient.name if t.patient else "N/A",
            t.date.strftime("%Y-%m-%d") if t.date else "",
            f"{t.total_amount:.2f}",
            f"{t.profit:.2f}",
        ])

    return output.getvalue()
