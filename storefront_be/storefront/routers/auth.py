import logging

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.models.user import User, get_db
from storefront.schemas.user import SignupSchema, LoginSchema, SessionOut
from storefront.utils.responses import ok, fail
from storefront.utils.security import (
    blacklist_token,
    create_access_token,
    decode_access_token,
    get_current_user,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()
bearer = HTTPBearer(auto_error=False)


def _first_error(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return "Invalid input"
    return str(errors[0].get("msg", "Invalid input")).removeprefix("Value error, ")


@router.post("/signup")
def signup(payload: dict, db: Session = Depends(get_db)):
    try:
        values = SignupSchema.model_validate(payload)
    except ValidationError as e:
        return fail(_first_error(e))

    if db.query(User.id).filter(User.email == values.email).first():
        return fail("User already exists. Use another email.")
    user = User(
        email=values.email,
        first_name=values.firstName,
        last_name=values.lastName,
        name=f"{values.firstName} {values.lastName}",
        password=hash_password(values.password),
        role="USER",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return fail("User already exists. Use another email.")
    except Exception:
        db.rollback()
        logger.exception("SIGNUP_ERROR")
        return fail("Something went wrong. Please try again.")
    return ok()


@router.post("/login")
def login(payload: dict, db: Session = Depends(get_db)):
    try:
        credentials = LoginSchema.model_validate(payload)
    except ValidationError:
        return fail("Invalid email or password")
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password):
        return fail("Invalid email or password")
    token = create_access_token(subject=user.id)
    return ok({"access_token": token, "token_type": "bearer", "role": user.role})


@router.post("/logout")
def logout(creds: HTTPAuthorizationCredentials = Depends(bearer), db: Session = Depends(get_db)):
    if not creds or not creds.credentials:
        return ok()
    try:
        payload = decode_access_token(creds.credentials)
    except JWTError:
        # Respond the same either way to avoid token probing
        return ok()
    jti = payload.get("jti")
    if jti:
        blacklist_token(db, jti)
    return ok()


@router.get("/session", response_model=SessionOut)
def get_session(current_user: User = Depends(get_current_user)):
    return SessionOut(
        id=current_user.id,
        email=current_user.email,
        firstName=current_user.first_name,
        lastName=current_user.last_name,
        name=current_user.name,
        role=current_user.role,
    )
