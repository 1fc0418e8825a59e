from medai.models.agency import Agency, AgencyBill
from medai.models.medicine import Medicine
from medai.models.patient import Patient
from medai.models.transaction import Transaction, TransactionLine
from medai.models.credit import Credit

__all__ = ["Agency", "AgencyBill", "Medicine", "Patient", "Transaction", "TransactionLine", "Credit"]
