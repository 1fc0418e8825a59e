"""
Sales counter: cart, checkout and direct counter sale.

Checkout is the only path that moves `stock` and `sold` together, so every
sale keeps stock + sold constant for each medicine involved. Everything for
one sale (transaction, lines, stock, optional credit row) is committed at
once or not at all.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from medai.core.audit import AuditLog
from medai.core.exceptions import (
    InsufficientStockError,
    InvalidAmountError,
    MissingSelectionError,
)
from medai.core.utils import to_money
from medai.models.credit import Credit, CREDIT_PENDING
from medai.models.medicine import Medicine
from medai.models.transaction import Transaction, TransactionLine
from medai.services.medicine_service import find_by_name, get_medicine
from medai.services.patient_service import get_patient, get_or_create_walk_in_patient

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    medicine: Medicine
    quantity: int

    @property
    def price(self) -> Decimal:
        return to_money(self.medicine.mrp) * self.quantity

    @property
    def cost(self) -> Decimal:
        return to_money(self.medicine.cost_price) * self.quantity


class Cart:
    """
    Sale basket. Quantities are checked against current stock on every
    increment; checkout re-checks them against the database.
    """

    def __init__(self):
        self._lines: Dict[str, CartLine] = {}

    def add(self, medicine: Medicine, quantity: int = 1) -> CartLine:
        _check_quantity(quantity)
        line = self._lines.get(medicine.id)
        current = line.quantity if line else 0
        if current + quantity > medicine.stock:
            raise InsufficientStockError(medicine.name, current + quantity, medicine.stock)
        if line:
            line.quantity += quantity
        else:
            line = self._lines[medicine.id] = CartLine(medicine, quantity)
        return line

    def update_quantity(self, medicine_id: str, delta: int) -> CartLine:
        """Change a line by delta; never below 1, never above stock."""
        line = self._lines.get(medicine_id)
        if not line:
            raise MissingSelectionError("Medicine is not in the cart")
        new_quantity = max(1, line.quantity + delta)
        if new_quantity > line.medicine.stock:
            raise InsufficientStockError(line.medicine.name, new_quantity, line.medicine.stock)
        line.quantity = new_quantity
        return line

    def remove(self, medicine_id: str):
        self._lines.pop(medicine_id, None)

    def clear(self):
        self._lines.clear()

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total(self) -> Decimal:
        return sum((line.price for line in self._lines.values()), Decimal("0"))

    @property
    def total_cost(self) -> Decimal:
        return sum((line.cost for line in self._lines.values()), Decimal("0"))


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidAmountError(f"Quantity must be a positive whole number, got {quantity!r}")
    return quantity


def _line_pairs(lines: Iterable) -> List[Tuple[str, int]]:
    """Accept SaleLine-like objects or (medicine_id, quantity) pairs."""
    pairs = []
    for line in lines or []:
        if isinstance(line, (tuple, list)):
            medicine_id, quantity = line
        else:
            medicine_id, quantity = line.medicine_id, line.quantity
        pairs.append((medicine_id, quantity))
    return pairs


def checkout(
    db: Session,
    patient_id: Optional[str],
    lines: Iterable,
    is_credit: bool = False,
    amount_paid=None,
    notes: Optional[str] = None,
) -> Transaction:
    """
    Complete a sale.

    Args:
        patient_id: Selected patient (required)
        lines: (medicine_id, quantity) pairs; repeated medicines are merged
        is_credit: Defer part or all of the payment
        amount_paid: Amount received now on a credit sale (default 0)

    Returns:
        The appended Transaction. A pending Credit row is created when a
        credit sale leaves an amount owed.

    Raises:
        MissingSelectionError: no patient or empty cart
        RecordNotFoundError: unknown patient or medicine
        InsufficientStockError: any line exceeds current stock
        InvalidAmountError: bad quantity or negative amount_paid
    """
    if not patient_id:
        raise MissingSelectionError("Select a patient before completing the sale")
    pairs = _line_pairs(lines)
    if not pairs:
        raise MissingSelectionError("Cart is empty")

    patient = get_patient(db, patient_id)

    cart = Cart()
    for medicine_id, quantity in pairs:
        cart.add(get_medicine(db, medicine_id), _check_quantity(quantity))

    total_amount = cart.total
    total_cost = cart.total_cost

    if is_credit:
        paid = to_money(amount_paid if amount_paid is not None else 0)
        if paid < 0:
            raise InvalidAmountError("Amount paid cannot be negative")
        # no negative credit: anything above the total is change, not a balance
        paid = min(paid, total_amount)
        credit_amount = total_amount - paid
    else:
        paid = total_amount
        credit_amount = Decimal("0")

    try:
        txn = Transaction(
            patient_id=patient.id,
            total_amount=total_amount,
            paid_amount=paid,
            credit_amount=credit_amount,
            total_cost=total_cost,
            profit=total_amount - total_cost,
            is_credit=bool(is_credit),
        )
        for position, line in enumerate(cart.lines):
            medicine = line.medicine
            txn.lines.append(TransactionLine(
                position=position,
                medicine_id=medicine.id,
                medicine_name=medicine.name,
                quantity=line.quantity,
                unit_price=to_money(medicine.mrp),
                unit_cost=to_money(medicine.cost_price),
                price=line.price,
            ))
            medicine.stock -= line.quantity
            medicine.sold += line.quantity
        db.add(txn)
        db.flush()  # Get ID without committing

        if credit_amount > 0:
            db.add(Credit(
                patient_id=patient.id,
                transaction_id=txn.id,
                amount=credit_amount,
                status=CREDIT_PENDING,
                notes=notes,
                date=txn.date,
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(txn)
    logger.info(f"Sale {txn.id}: patient={patient.id}, total={total_amount}, credit={credit_amount}")
    AuditLog.log_action("sale", "transaction", txn.id, changes={
        "patient_id": patient.id,
        "lines": [[l.medicine_id, l.quantity] for l in txn.lines],
        "total_amount": total_amount,
        "paid_amount": paid,
        "credit_amount": credit_amount,
    })
    return txn


def quick_sale(db: Session, medicine_query: str, units: int = 1) -> Transaction:
    """
    Direct counter sale from the stock view: resolve the medicine by name,
    sell `units` of it to the walk-in patient as a cash sale.
    """
    _check_quantity(units)
    medicine = find_by_name(db, medicine_query)
    walk_in = get_or_create_walk_in_patient(db)
    return checkout(db, walk_in.id, [(medicine.id, units)])
