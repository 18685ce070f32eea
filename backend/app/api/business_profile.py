"""Business profile endpoints: branding used on invoices and emails."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.models.business_profile import BusinessProfile
from backend.app.models.user import User
from backend.app.schemas.business_profile import BusinessProfileRead, BusinessProfileUpsert

router = APIRouter(prefix="/business-profile", tags=["business-profile"])


@router.get("", response_model=BusinessProfileRead)
def get_business_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    profile = db.query(BusinessProfile).filter(BusinessProfile.user_id == current_user.id).first()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business profile not found")
    return profile


@router.put("", response_model=BusinessProfileRead)
def upsert_business_profile(
    payload: BusinessProfileUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = db.query(BusinessProfile).filter(BusinessProfile.user_id == current_user.id).first()
    if profile is None:
        profile = BusinessProfile(user_id=current_user.id, **payload.model_dump())
        db.add(profile)
    else:
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    return profile
