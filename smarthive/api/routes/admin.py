from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.api.dependencies import get_db, require_admin
from smarthive.schemas.purchase import ContainerAssignmentIn, ContainerAssignmentOut, PurchaseWithUser
from smarthive.services import purchases as purchase_service

router = APIRouter(
    prefix="/api/admin/purchases",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("")
async def list_purchases(db: AsyncSession = Depends(get_db)):
    purchases = await purchase_service.list_purchases(db)
    return {
        "success": True,
        "data": [PurchaseWithUser.model_validate(p).to_json() for p in purchases],
        "total": len(purchases),
    }


@router.post("/{purchase_id}/grant")
async def grant_access(purchase_id: int, db: AsyncSession = Depends(get_db)):
    purchase = await purchase_service.grant_access(db, purchase_id)
    return {
        "success": True,
        "message": "Access granted successfully",
        "data": PurchaseWithUser.model_validate(purchase).to_json(),
    }


@router.put("/{purchase_id}/containers")
async def assign_containers(
    purchase_id: int,
    data: ContainerAssignmentIn,
    db: AsyncSession = Depends(get_db),
):
    purchase = await purchase_service.assign_containers(
        db, purchase_id, data.containers, data.admin_notes
    )
    return {
        "success": True,
        "message": "Container assignments updated successfully",
        "data": PurchaseWithUser.model_validate(purchase).to_json(),
    }


@router.get("/{purchase_id}/containers")
async def get_containers(purchase_id: int, db: AsyncSession = Depends(get_db)):
    purchase = await purchase_service.get_containers(db, purchase_id)
    assignment = ContainerAssignmentOut(
        purchase_id=purchase.id,
        assigned_containers=purchase.assigned_containers or [],
        admin_notes=purchase.admin_notes,
    )
    return {"success": True, "data": assignment.to_json()}
