from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Header
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from sqlalchemy.orm import Session
import logging

from ..settings import Settings, get_settings
from ..db import get_db
from ..models import LearnerAccount

router = APIRouter(prefix="/api/auth", tags=["auth"])

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class RegisterRequest(BaseModel):
	username: str = ""
	password: str = ""
	email: Optional[str] = None


class LoginRequest(BaseModel):
	username: str = ""
	password: str = ""


class Learner(BaseModel):
	id: str
	username: str
	email: Optional[str] = None


class LoginResponse(BaseModel):
	token: str
	user_id: str
	username: str


def _bcrypt_safe(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def create_access_token(data: dict, config: Settings, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	if expires_delta is None:
		expires_delta = timedelta(minutes=max(1, config.access_token_expire_minutes))
	to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
	return jwt.encode(to_encode, config.jwt_secret_key, algorithm=config.jwt_algorithm)


@router.post("/register", response_model=Learner)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	username = (req.username or "").strip()
	password = req.password or ""
	if not username or not password.strip():
		raise HTTPException(status_code=400, detail="username and password are required")
	if len(username) > 128:
		raise HTTPException(status_code=400, detail="username must be at most 128 characters")
	existing = db.query(LearnerAccount).filter(LearnerAccount.username == username).first()
	if existing:
		raise HTTPException(status_code=409, detail="username already exists")
	row = LearnerAccount(
		username=username,
		password_hash=pwd_context.hash(_bcrypt_safe(password)),
		email=(req.email or "").strip() or None,
	)
	db.add(row)
	db.commit()
	return Learner(id=row.id, username=row.username, email=row.email)


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, db: Session = Depends(get_db), config: Settings = Depends(get_settings)):
	row = db.query(LearnerAccount).filter(LearnerAccount.username == req.username).first()
	if not row or not pwd_context.verify(_bcrypt_safe(req.password), row.password_hash):
		raise HTTPException(status_code=401, detail="Invalid credentials")
	token = create_access_token({"sub": row.username, "uid": row.id}, config)
	return LoginResponse(token=token, user_id=row.id, username=row.username)


def get_current_learner(
	x_learner_token: Optional[str] = Header(default=None),
	db: Session = Depends(get_db),
	config: Settings = Depends(get_settings),
) -> Learner:
	# Authorization is taken by the HMAC scheme, so learner sessions ride in X-Learner-Token
	credentials_exception = HTTPException(status_code=401, detail="Could not validate learner token")
	if not x_learner_token:
		raise credentials_exception
	try:
		payload = jwt.decode(x_learner_token, config.jwt_secret_key, algorithms=[config.jwt_algorithm])
	except JWTError:
		raise credentials_exception
	uid: str | None = payload.get("uid")
	row = db.get(LearnerAccount, uid) if uid else None
	if row is None:
		raise credentials_exception
	return Learner(id=row.id, username=row.username, email=row.email)


@router.get("/me", response_model=Learner)
async def me(learner: Learner = Depends(get_current_learner)):
	return learner
