#!/usr/bin/env python3
"""
Seed script to load a demo supplier, patients and medicine inventory.
Usage: python seed_medicines_inventory.py
"""

import sys
from datetime import date, timedelta
from pathlib import Path

# Add backend directory to path
backend_dir = Path(__file__).parent / "backend"
sys.path.insert(0, str(backend_dir))

from medai.core.exceptions import PharmacyError
from medai.db.init_db import init_db
from medai.db.session import SessionLocal
from medai.models.agency import Agency
from medai.models.medicine import Medicine
from medai.models.patient import Patient
from medai.schemas.medicine import MedicineCreate
from medai.services.agency_service import create_agency
from medai.services.medicine_service import batch_add_medicines
from medai.services.patient_service import create_patient

DEMO_AGENCY = {"name": "Sharma Pharma Distributors", "contact": "9876543210", "address": "Main Market"}

DEMO_PATIENTS = [
    ("Ramesh Kumar", "9811111111"),
    ("Sunita Devi", "9822222222"),
]

# name, category, cost price, mrp, stock, days to expiry
DEMO_MEDICINES = [
    ("Paracetamol 500mg", "Tablet", "18.00", "25.00", 120, 400),
    ("Amoxicillin 250mg", "Capsule", "42.50", "60.00", 45, 200),
    ("Cough Syrup 100ml", "Syrup", "55.00", "85.00", 8, 60),
    ("Cetirizine 10mg", "Tablet", "12.00", "20.00", 0, 300),
    ("Vitamin D3 60K", "Capsule", "90.00", "130.00", 30, 20),
]


def seed_medicines():
    """Load the demo data; skips records that already exist by name."""
    init_db()
    db = SessionLocal()

    try:
        agency = db.query(Agency).filter(Agency.name == DEMO_AGENCY["name"]).first()
        if not agency:
            agency = create_agency(db, **DEMO_AGENCY)
            print(f"✓ Created agency: {agency.name}")

        for name, phone in DEMO_PATIENTS:
            if db.query(Patient).filter(Patient.phone == phone).first():
                print(f"⊙ {name} already exists, skipping")
                continue
            create_patient(db, name, phone)
            print(f"✓ Added patient: {name}")

        existing = {name for (name,) in db.query(Medicine.name).all()}
        to_add = [
            MedicineCreate(
                name=name,
                category=category,
                cost_price=cost,
                mrp=mrp,
                stock=stock,
                expiry_date=date.today() + timedelta(days=days),
                agency_id=agency.id,
            )
            for name, category, cost, mrp, stock, days in DEMO_MEDICINES
            if name not in existing
        ]
        added = batch_add_medicines(db, to_add) if to_add else []
        for med in added:
            print(f"✓ Added: {med.name} (Qty: {med.stock}, MRP: ₹{med.mrp})")

        print(f"\n✅ Successfully seeded {len(added)} medicines!")
        return True

    except PharmacyError as e:
        db.rollback()
        print(f"\n❌ Error seeding data: {e.detail}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    print("🏥 MedAI Pharmacy - Demo Data Seeding\n")
    seed_medicines()
