# barbershop/routers/auth_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import User
from barbershop.schemas import AuthResponse, ProfileUpdate, Token, UserCreate, UserPublic
from barbershop.auth import get_current_user, hash_password, verify_password, create_access_token
from barbershop.seed import normalize_phone

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/register", status_code=201, response_model=AuthResponse)
def register(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    email = user.email.strip().lower()

    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=400, detail="A user with this email already exists")

    # 2) Create user in DB
    db_user = User(
        name=user.name.strip(),
        email=email,
        phone=normalize_phone(user.phone),
        password_hash=hash_password(user.password),
        role="user",
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id
    logger.info("Registered user %s", db_user.email)

    token = create_access_token(db_user)
    return {"access_token": token, "token_type": "bearer", "user": db_user}


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    # Swagger OAuth2 "password" flow uses "username" field
    email = form_data.username.strip().lower()
    password = form_data.password

    user = session.exec(
        select(User).where(User.email == email)
    ).first()

    if user is None or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="User is inactive")

    token = create_access_token(user)
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserPublic)
def me(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return session.get(User, current_user["id"])


# alias kept for older clients
@router.get("/profile", response_model=UserPublic)
def get_profile(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return session.get(User, current_user["id"])


@router.put("/profile", response_model=UserPublic)
def update_profile(
    update: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    db_user = session.get(User, current_user["id"])

    if update.name is not None:
        db_user.name = update.name.strip()
    if update.phone is not None:
        db_user.phone = normalize_phone(update.phone)

    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return db_user
