"""
Authentication endpoints for API v1.

Clients log in with email and password and receive a bearer token.
The token identifies the user by email; role and name are looked up
on every request.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from plenpilot_api.app.core.security import create_access_token, get_current_user
from plenpilot_api.app.schemas.user import FcmTokenUpdate, UserLogin, UserRead
from plenpilot_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/login")
async def login(credentials: UserLogin) -> dict:
    """Authenticate a user and return an access token."""
    user = await UserService.authenticate(credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Feil e-post eller passord")
    token = create_access_token({"sub": user.email})
    return {"access_token": token, "token_type": "bearer", "user": user.model_dump()}


@router.get("/me", response_model=UserRead)
async def read_me(current_user: dict = Depends(get_current_user)) -> UserRead:
    user = await UserService.get_user_by_id(current_user["user_id"])
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.put("/me/fcm-token", status_code=status.HTTP_204_NO_CONTENT)
async def update_fcm_token(
    payload: FcmTokenUpdate,
    current_user: dict = Depends(get_current_user),
) -> None:
    """Register (or clear) the device token used for push notifications."""
    await UserService.set_fcm_token(current_user["user_id"], payload.token)
    return None
