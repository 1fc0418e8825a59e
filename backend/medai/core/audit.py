"""
Audit logging for ledger mutations.

Transactions and credits are never deleted, and every change to stock or to
an amount owed is written to the `audit` logger as one JSON line so the
books can be reconstructed independently of the database.
"""
import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")


def _default(value: Any):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class AuditLog:
    """Central audit logging for ledger events."""

    @staticmethod
    def log_action(
        action: str,  # "create", "sale", "adjust", "pay", "settle", "delete", "commit"
        resource_type: str,  # "medicine", "transaction", "credit", "agency_bill", ...
        resource_id: str,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a ledger-relevant action.

        Usage:
            AuditLog.log_action("sale", "transaction", txn.id, changes={"total": "150.00"})
            AuditLog.log_action("adjust", "medicine", med.id, changes={"stock": [10, 9]})
        """
        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "event_type": f"{resource_type}.{action}",
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=_default))

    @staticmethod
    def log_overpayment(bill_id: str, amount: Decimal, pending_before: Decimal):
        """
        Log an explicitly confirmed payment larger than the pending balance.

        The excess is not carried forward anywhere else, so this line is the
        only record of it.
        """
        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "event_severity": "WARNING",
            "event_type": "agency_bill.overpayment",
            "resource_id": bill_id,
            "amount": amount,
            "pending_before": pending_before,
            "excess": amount - pending_before,
        }

        audit_logger.warning(json.dumps(log_entry, default=_default))
