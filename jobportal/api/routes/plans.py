"""
Plan registry endpoints. Listing is public; writes need super admin or manager.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_db, require_roles
from jobportal.db.models.admin import Admin
from jobportal.db.models.enums import AdminRole
from jobportal.schemas.plan import PlanCreateRequest, PlanFeatureRequest, PlanUpdateRequest
from jobportal.services import plan_service
from jobportal.services.plan_service import serialize_feature, serialize_plan

router = APIRouter(prefix="/plans", tags=["Plans"])

plan_editor = require_roles(AdminRole.SUPER_ADMIN, AdminRole.MANAGER)


@router.get("")
def list_plans(
    owner_type: Optional[str] = Query(None, description="'employee' or 'employer'"),
    db: Session = Depends(get_db)
):
    return {"plans": [serialize_plan(plan) for plan in plan_service.list_plans(db, owner_type)]}


@router.get("/{plan_id}")
def get_plan(plan_id: int, db: Session = Depends(get_db)):
    return {"plan": serialize_plan(plan_service.get_plan(db, plan_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_plan(
    payload: PlanCreateRequest,
    admin: Admin = Depends(plan_editor),
    db: Session = Depends(get_db)
):
    plan = plan_service.create_plan(db, payload.model_dump())
    return {"message": "Plan created successfully", "plan": serialize_plan(plan)}


@router.put("/{plan_id}")
def update_plan(
    plan_id: int,
    payload: PlanUpdateRequest,
    admin: Admin = Depends(plan_editor),
    db: Session = Depends(get_db)
):
    plan = plan_service.update_plan(db, plan_id, payload.model_dump(exclude_unset=True))
    return {"message": "Plan updated successfully", "plan": serialize_plan(plan)}


@router.delete("/{plan_id}")
def delete_plan(
    plan_id: int,
    admin: Admin = Depends(plan_editor),
    db: Session = Depends(get_db)
):
    plan_service.delete_plan(db, plan_id)
    return {"message": "Plan deleted successfully"}


@router.post("/{plan_id}/features", status_code=status.HTTP_201_CREATED)
def add_plan_feature(
    plan_id: int,
    payload: PlanFeatureRequest,
    admin: Admin = Depends(plan_editor),
    db: Session = Depends(get_db)
):
    feature = plan_service.add_plan_feature(db, plan_id, payload.feature_name, payload.feature_value)
    return {"message": "Feature added successfully", "feature": serialize_feature(feature)}


@router.delete("/features/{feature_id}")
def remove_plan_feature(
    feature_id: int,
    admin: Admin = Depends(plan_editor),
    db: Session = Depends(get_db)
):
    plan_service.remove_plan_feature(db, feature_id)
    return {"message": "Feature removed successfully"}
