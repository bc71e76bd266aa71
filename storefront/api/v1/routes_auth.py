from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.api.deps import get_db
from storefront.api.v1.schemas import LoginPayload, LoginResponse, RegisterPayload, RegisterResponse, UserRead
from storefront.core.config import settings
from storefront.db.models import User
from storefront.security.utils import create_access_token, hash_password, verify_password

router = APIRouter()  # main.py mounts at /api/v1/auth


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterPayload, db: Session = Depends(get_db)):
    email = str(payload.email).lower()
    taken = db.query(User).filter(or_(User.email == email, User.username == payload.username)).first()
    if taken:
        field = "Email" if taken.email == email else "Username"
        raise HTTPException(status_code=400, detail=f"{field} already in use")

    user = User(
        username=payload.username,
        email=email,
        password_hash=hash_password(payload.password),
        role="admin" if email in settings.ADMIN_EMAILS else "customer",
    )
    db.add(user); db.commit(); db.refresh(user)
    return RegisterResponse(message="User registered successfully", data=UserRead.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginPayload, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == str(payload.email).lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid password or email")

    token, _ = create_access_token(user.email, user.id, user.role)
    return LoginResponse(token=token, data=UserRead.model_validate(user), message="User logged in successfully")
