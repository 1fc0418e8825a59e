"""AI bill editor: scan, review, correct, confirm."""
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from medai.api.deps import get_db, get_scanner
from medai.core.config import settings
from medai.core.exceptions import BusinessError
from medai.services.bill_scan_service import BillScanner, StagedBill

router = APIRouter()


class ItemUpdate(BaseModel):
    field: str
    value: Any = None


class ConfirmRequest(BaseModel):
    agency_id: Optional[str] = None


def _staged(staged: StagedBill) -> dict:
    return {
        "id": staged.id,
        "items": [item.model_dump(mode="json") for item in staged.items],
    }


@router.post("", response_model=dict, status_code=201)
def scan_bill(
    file: UploadFile = File(...),
    scanner: BillScanner = Depends(get_scanner),
):
    """Upload a bill photo. Returns the extracted rows for review; nothing is saved."""
    if file.content_type and not file.content_type.startswith("image/"):
        raise BusinessError.bad_request("Upload an image of the bill")
    content = file.file.read()
    if len(content) > settings.SCAN_MAX_IMAGE_BYTES:
        raise BusinessError.bad_request("Bill image is too large")
    return _staged(scanner.scan(content, file.content_type or "image/jpeg"))


@router.post("/manual", response_model=dict, status_code=201)
def start_manual(scanner: BillScanner = Depends(get_scanner)):
    """Empty staging list for entering a bill by hand."""
    return _staged(scanner.stage_manual())


@router.get("/{staged_id}", response_model=dict)
def get_staged(staged_id: str, scanner: BillScanner = Depends(get_scanner)):
    return _staged(scanner.get(staged_id))


@router.patch("/{staged_id}/items/{index}", response_model=dict)
def update_item(staged_id: str, index: int, body: ItemUpdate, scanner: BillScanner = Depends(get_scanner)):
    staged = scanner.get(staged_id)
    staged.update_item(index, body.field, body.value)
    return _staged(staged)


@router.post("/{staged_id}/items", response_model=dict, status_code=201)
def add_row(staged_id: str, scanner: BillScanner = Depends(get_scanner)):
    staged = scanner.get(staged_id)
    staged.add_row()
    return _staged(staged)


@router.delete("/{staged_id}/items/{index}", response_model=dict)
def remove_item(staged_id: str, index: int, scanner: BillScanner = Depends(get_scanner)):
    staged = scanner.get(staged_id)
    staged.remove_item(index)
    return _staged(staged)


@router.post("/{staged_id}/confirm", response_model=dict)
def confirm(
    staged_id: str,
    body: ConfirmRequest,
    db: Session = Depends(get_db),
    scanner: BillScanner = Depends(get_scanner),
):
    """Turn every staged row into a catalog medicine, optionally tagged with a supplier."""
    medicines = scanner.confirm(db, staged_id, body.agency_id)
    return {
        "message": f"Successfully added {len(medicines)} items to inventory",
        "medicine_ids": [m.id for m in medicines],
    }


@router.delete("/{staged_id}", response_model=dict)
def discard(staged_id: str, scanner: BillScanner = Depends(get_scanner)):
    scanner.discard(staged_id)
    return {"message": "Discarded", "id": staged_id}
