from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_classifier, get_device_manager, get_device_monitor
from ..models import ActiveTransfer, Device
from ..services.classification import FilenameClassifier
from ..services.device_manager import DeviceManager
from ..services.device_monitor import DeviceMonitor

router = APIRouter(prefix="/api", tags=["devices"])


@router.get("/devices/active", response_model=List[Device])
async def get_active_devices(
    device_manager: DeviceManager = Depends(get_device_manager),
) -> List[Device]:
    """Devices currently being ingested."""
    return device_manager.get_active_devices()


@router.get("/transfers", response_model=List[ActiveTransfer])
async def get_active_transfers(
    device_manager: DeviceManager = Depends(get_device_manager),
) -> List[ActiveTransfer]:
    """Live statistics for every running device transfer."""
    return device_manager.get_active_transfers()


@router.get("/transfers/{device_name}", response_model=ActiveTransfer)
async def get_transfer(
    device_name: str,
    device_manager: DeviceManager = Depends(get_device_manager),
) -> ActiveTransfer:
    """
    Live statistics for one device.

    HTTP Status Codes:
        200: Device is being ingested
        404: No active transfer for this device
    """
    transfer = device_manager.get_active_transfer(device_name)
    if transfer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No active transfer for device: {device_name}",
        )
    return transfer


@router.get("/status")
async def get_status(
    device_monitor: DeviceMonitor = Depends(get_device_monitor),
    classifier: FilenameClassifier = Depends(get_classifier),
) -> Dict[str, Any]:
    """Monitor state and the classification rules in effect."""
    return {
        "monitor": device_monitor.get_monitor_info(),
        "classification": classifier.get_classifier_info(),
    }
