from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from backend.storage import MemStorage, get_storage

router = APIRouter(prefix="/api/services", tags=["Catalog API"])


@router.get("")
def list_services(storage: MemStorage = Depends(get_storage)) -> List[Dict[str, Any]]:
    """Catalogue public des services, trié par sortOrder (noms/descriptions en anglais et espagnol)."""
    return storage.get_service_types()


@router.get("/{service_id}")
def get_service(service_id: int, storage: MemStorage = Depends(get_storage)) -> Dict[str, Any]:
    service = storage.get_service_type(service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service
