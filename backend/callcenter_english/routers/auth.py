from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field
import logging

from ..settings import settings
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import User
from ..schemas import CamelModel, UserOut, dump

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")

INVALID_CREDENTIALS = "Invalid email or password"


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class SignupRequest(CamelModel):
	email: str = Field(min_length=3, max_length=256)
	password: str = Field(min_length=1)
	first_name: str = Field(min_length=1, max_length=128)
	last_name: str = Field(min_length=1, max_length=128)


class LoginRequest(CamelModel):
	email: str = Field(min_length=1)
	password: str = Field(min_length=1)


def _bcrypt_safe(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_safe(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	try:
		return pwd_context.verify(_bcrypt_safe(plain_password), hashed_password)
	except ValueError:
		return False


def _normalize_email(email: str) -> str:
	return (email or "").strip().lower()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
	user = db.query(User).filter(User.email == _normalize_email(email)).first()
	if user is None or not verify_password(password, user.password_hash):
		return None
	return user


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=7)
	now = datetime.now(timezone.utc)
	try:
		return now + delta
	except OverflowError:
		return datetime.max.replace(tzinfo=timezone.utc)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	to_encode.update({"exp": _resolve_expiry(expires_delta)})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def token_for(user: User) -> str:
	return create_access_token({"sub": str(user.id)})


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
	credentials_exception = HTTPException(
		status_code=401,
		detail="Could not validate credentials",
		headers={"WWW-Authenticate": "Bearer"},
	)
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
		subject = payload.get("sub")
		if subject is None:
			raise credentials_exception
		user_id = int(subject)
	except (JWTError, ValueError):
		raise credentials_exception
	user = db.get(User, user_id)
	if user is None:
		raise credentials_exception
	return user


@router.post("/signup", status_code=201)
async def signup(req: SignupRequest, db: Session = Depends(get_db)):
	email = _normalize_email(req.email)
	first_name = req.first_name.strip()
	last_name = req.last_name.strip()
	if not email or not first_name or not last_name:
		raise HTTPException(status_code=400, detail="Missing required fields")
	existing = db.query(User).filter(User.email == email).first()
	if existing:
		raise HTTPException(status_code=400, detail="User already exists")
	user = User(
		email=email,
		password_hash=hash_password(req.password),
		first_name=first_name,
		last_name=last_name,
	)
	db.add(user)
	db.commit()
	db.refresh(user)
	logger.info("Created user %s", user.id)
	return {
		"message": "User created successfully",
		"token": token_for(user),
		"user": dump(UserOut, user),
	}


@router.post("/login")
async def login(req: LoginRequest, db: Session = Depends(get_db)):
	user = authenticate_user(db, req.email, req.password)
	if not user:
		raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
	return {
		"message": "Login successful",
		"token": token_for(user),
		"user": dump(UserOut, user),
	}


@router.post("/token", response_model=Token)
async def token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
	# OAuth2 password form for the interactive docs; username is the email
	user = authenticate_user(db, form_data.username, form_data.password)
	if not user:
		raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
	return Token(access_token=token_for(user))


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
	return dump(UserOut, user)
