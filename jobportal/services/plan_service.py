"""
Plan registry: tiers, quotas, display features and the per-kind default plan.
"""
import logging
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from jobportal.core.exceptions import ConflictError, NotFoundError, ValidationError
from jobportal.core.money import format_money, to_decimal
from jobportal.db.models.enums import UserType
from jobportal.db.models.payment import Payment
from jobportal.db.models.plan import Plan, PlanFeature
from jobportal.db.models.subscription import SUBSCRIPTION_MODELS

logger = logging.getLogger(__name__)

OWNER_TYPES = tuple(kind.value for kind in UserType)


def _validate_plan_fields(data: Dict) -> None:
    """Check the fields present in `data`; raise ValidationError listing every bad one."""
    errors: Dict[str, List[str]] = {}

    if "name" in data and not (data["name"] or "").strip():
        errors["name"] = ["The name field is required."]
    if "owner_type" in data and data["owner_type"] not in OWNER_TYPES:
        errors["owner_type"] = ["The owner type must be employee or employer."]
    if "price" in data and data["price"] is not None and to_decimal(data["price"]) < 0:
        errors["price"] = ["The price must be at least 0."]
    if "validity_days" in data and data["validity_days"] is not None and data["validity_days"] < 1:
        errors["validity_days"] = ["The validity days must be at least 1."]

    if errors:
        raise ValidationError(errors)


def _clear_other_defaults(db: Session, owner_type: str, keep_id: Optional[int] = None) -> None:
    query = db.query(Plan).filter(Plan.owner_type == owner_type, Plan.is_default.is_(True))
    if keep_id is not None:
        query = query.filter(Plan.id != keep_id)
    query.update({Plan.is_default: False}, synchronize_session="fetch")


def get_plan(db: Session, plan_id: int) -> Plan:
    plan = db.query(Plan).filter(Plan.id == plan_id).first()
    if not plan:
        raise NotFoundError("Plan not found")
    return plan


def list_plans(db: Session, owner_type: Optional[str] = None) -> List[Plan]:
    query = db.query(Plan)
    if owner_type:
        query = query.filter(Plan.owner_type == owner_type)
    return query.order_by(Plan.price.asc(), Plan.id.asc()).all()


def get_default_plan(db: Session, owner_type: UserType) -> Optional[Plan]:
    """The plan new registrations of this kind start on, if one is configured."""
    return (
        db.query(Plan)
        .filter(Plan.owner_type == owner_type.value, Plan.is_default.is_(True))
        .order_by(Plan.id.asc())
        .first()
    )


def create_plan(db: Session, data: Dict) -> Plan:
    """
    Create a plan. When `is_default` is set, every other plan of the same
    owner kind loses the flag in the same transaction.
    """
    _validate_plan_fields(data)

    plan = Plan(**data)
    if plan.is_default:
        _clear_other_defaults(db, plan.owner_type)
    db.add(plan)
    db.commit()
    db.refresh(plan)

    logger.info(f"Plan created: plan_id={plan.id}, owner_type={plan.owner_type}, price={plan.price}, default={plan.is_default}")
    return plan


def update_plan(db: Session, plan_id: int, data: Dict) -> Plan:
    """Apply a partial update; keys absent from `data` are left untouched."""
    plan = get_plan(db, plan_id)
    if "owner_type" in data and data["owner_type"] != plan.owner_type:
        raise ValidationError.single("owner_type", "The owner type of an existing plan cannot be changed.")
    _validate_plan_fields(data)

    for field, value in data.items():
        setattr(plan, field, value)
    if data.get("is_default"):
        _clear_other_defaults(db, plan.owner_type, keep_id=plan.id)

    db.commit()
    db.refresh(plan)

    logger.info(f"Plan updated: plan_id={plan.id}, fields={sorted(data)}")
    return plan


def delete_plan(db: Session, plan_id: int) -> None:
    """Delete a plan nobody has bought or been put on."""
    plan = get_plan(db, plan_id)

    referenced = db.query(Payment.id).filter(Payment.plan_id == plan.id).first() is not None
    for model in SUBSCRIPTION_MODELS.values():
        if referenced:
            break
        referenced = db.query(model.id).filter(model.plan_id == plan.id).first() is not None

    if referenced:
        raise ConflictError("Cannot delete a plan that has subscriptions or payments")

    db.delete(plan)
    db.commit()
    logger.info(f"Plan deleted: plan_id={plan_id}")


def add_plan_feature(db: Session, plan_id: int, feature_name: str, feature_value: str) -> PlanFeature:
    plan = get_plan(db, plan_id)
    feature = PlanFeature(plan_id=plan.id, feature_name=feature_name, feature_value=feature_value)
    db.add(feature)
    db.commit()
    db.refresh(feature)
    return feature


def remove_plan_feature(db: Session, feature_id: int) -> None:
    feature = db.query(PlanFeature).filter(PlanFeature.id == feature_id).first()
    if not feature:
        raise NotFoundError("Plan feature not found")
    db.delete(feature)
    db.commit()


def serialize_feature(feature: PlanFeature) -> Dict:
    return {
        "id": feature.id,
        "feature_name": feature.feature_name,
        "feature_value": feature.feature_value,
    }


def serialize_plan(plan: Plan) -> Dict:
    return {
        "id": plan.id,
        "name": plan.name,
        "description": plan.description,
        "owner_type": plan.owner_type,
        "price": format_money(plan.price),
        "validity_days": plan.validity_days,
        "is_default": plan.is_default,
        "jobs_can_apply": plan.jobs_can_apply,
        "contact_details_can_view": plan.contact_details_can_view,
        "whatsapp_alerts": plan.whatsapp_alerts,
        "sms_alerts": plan.sms_alerts,
        "employer_can_view_contact_free": plan.employer_can_view_contact_free,
        "jobs_can_post": plan.jobs_can_post,
        "employee_contact_details_can_view": plan.employee_contact_details_can_view,
        "commission_rate": str(plan.commission_rate) if plan.commission_rate is not None else None,
        "features": [serialize_feature(feature) for feature in plan.features],
    }
