from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlalchemy import select, func  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore
from sqlalchemy.orm import selectinload  # type: ignore
from datetime import datetime
from typing import Optional

from hrms.db import get_db
from hrms.errors import ValidationFailed
from hrms.models import User as UserModel, Role
from hrms.services.access import check_access
from hrms.services.principal import Principal
from hrms.utils.action_log import log_user_action
from hrms.utils.request_info import get_client_ip
from hrms.utils.roles import ALL_ROLES
from hrms.utils.security import verify_password, create_access_token

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    role: Role
    employee_id: Optional[int] = None


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(UserModel)
        .where(func.lower(UserModel.email) == form_data.username.strip().lower())
        .options(selectinload(UserModel.employee))
    )
    user = result.scalar_one_or_none()
    if not user or not verify_password(form_data.password, user.hashed_password):
        log_user_action("LOGIN_FAILED", email=form_data.username, ip=get_client_ip(request))
        raise ValidationFailed("Incorrect email or password", code="INVALID_CREDENTIALS")

    if not user.is_active:
        raise ValidationFailed("User is inactive", code="INACTIVE_ACCOUNT")

    # sub is the account id; the role claim is informational, the gate re-reads it from the row
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role.value})

    user.last_login_at = datetime.utcnow()
    await db.commit()

    employee_id = user.employee.id if user.employee is not None else None
    log_user_action(
        "LOGIN",
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        employee_id=employee_id,
    )
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "role": user.role,
        "employee_id": employee_id,
    }


@router.get("/me")
async def read_me(principal: Principal = Depends(check_access(ALL_ROLES))):
    return {
        "status": "success",
        "data": {
            "userId": principal.user_id,
            "email": principal.email,
            "role": principal.role.value,
            "employeeId": principal.employee_id,
        },
    }
