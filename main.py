import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings
from contact import send_contact_message
from database import get_client, get_db
from errors import PortfolioError, ValidationError
from mailer import EmailSender, get_email_sender
from repositories import AdminSettingsRepository, WorkRepository
from schemas import AdminSettings, ContactMessage, ImageAsset, WorkCreate, WorkItem, WorkPage
from uploads import ADMIN_FOLDER, WORKS_FOLDER, ImageUploader, get_uploader

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# =====================
# Auth / Security Setup
# =====================
# Use pbkdf2_sha256 to avoid external bcrypt dependency issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@lru_cache(maxsize=1)
def admin_password_hash() -> str:
    # Support providing a precomputed hash; otherwise hash the configured password
    return settings.admin_password_hash or pwd_context.hash(settings.admin_password)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: str
    password: str


# ==================
# FastAPI app config
# ==================
app = FastAPI(title="Portfolio API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.storage_backend == "local":
    app.mount("/static", StaticFiles(directory=str(settings.upload_dir), check_dir=False), name="static")


# ==============
# Error handling
# ==============
@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc.__cause__ or exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"] if p not in ("body", "query", "path", "form"))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    logger.warning("%s %s invalid request: %s", request.method, request.url.path, parts)
    return JSONResponse(status_code=400, content={"error": "; ".join(parts) or "Invalid request"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("%s %s crashed", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# =========
# Utilities
# =========

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def get_current_admin(authorization: Optional[str] = Header(None)):
    if not settings.admin_auth_enabled:
        return None
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    email: str = payload.get("sub")
    role: str = payload.get("role")
    if email != settings.admin_email or role != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return {"email": email, "role": role}


def get_work_repository(db: Database = Depends(get_db)) -> WorkRepository:
    return WorkRepository(db)


def get_admin_repository(db: Database = Depends(get_db)) -> AdminSettingsRepository:
    return AdminSettingsRepository(db)


def read_upload(file: Optional[UploadFile]) -> Optional[bytes]:
    if file is None:
        return None
    data = file.file.read()
    return data or None


# ======
# Routes
# ======
@app.get("/")
def root():
    return {"status": "ok", "service": "portfolio-api"}


@app.get("/test")
def test_database():
    client = get_client()
    ok = client is not None and bool(settings.database_name)
    collections = []
    if ok:
        try:
            collections = client[settings.database_name].list_collection_names()
        except PyMongoError as exc:
            logger.warning("Database ping failed: %s", exc)
            ok = False
    return {"backend": "running", "database": "connected" if ok else "not-available", "collections": collections[:10]}


# Auth
@app.post("/api/auth/login", response_model=Token)
def login(data: LoginRequest):
    if data.email.lower() != settings.admin_email.lower() or not verify_password(data.password, admin_password_hash()):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = create_access_token({"sub": settings.admin_email, "role": "admin"})
    return Token(access_token=token)


# Works
@app.get("/api/works", response_model=WorkPage)
def list_works(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    repo: WorkRepository = Depends(get_work_repository),
):
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    return repo.list(page, limit)


@app.post("/api/works", response_model=WorkItem)
def create_work(work: WorkCreate, repo: WorkRepository = Depends(get_work_repository), _: dict = Depends(get_current_admin)):
    return repo.create(work)


@app.get("/api/works/{work_id}", response_model=WorkItem)
def get_work(work_id: str, repo: WorkRepository = Depends(get_work_repository)):
    return repo.get_by_id(work_id)


@app.delete("/api/works/{work_id}")
def delete_work(work_id: str, repo: WorkRepository = Depends(get_work_repository), _: dict = Depends(get_current_admin)):
    return {"success": repo.delete(work_id)}


# Admin details
@app.get("/api/admin-details", response_model=AdminSettings, response_model_exclude_none=True)
def get_admin_details(repo: AdminSettingsRepository = Depends(get_admin_repository)):
    return repo.get()


@app.post("/api/admin-details", response_model=AdminSettings, response_model_exclude_none=True)
def update_admin_details(
    email: str = Form(""),
    phone: str = Form(""),
    bannerImage: Optional[UploadFile] = File(None),
    repo: AdminSettingsRepository = Depends(get_admin_repository),
    uploader: ImageUploader = Depends(get_uploader),
    _: dict = Depends(get_current_admin),
):
    # Reject bad contact details before anything is uploaded.
    email, phone = repo.check_contact(email, phone)
    banner = None
    data = read_upload(bannerImage)
    if data is not None:
        banner = uploader.upload(
            data, filename=bannerImage.filename, content_type=bannerImage.content_type, folder=ADMIN_FOLDER
        )
    return repo.update(email, phone, banner_image=banner)


# Contact
@app.post("/api/contact-form")
def contact_form(msg: ContactMessage, sender: EmailSender = Depends(get_email_sender)):
    send_contact_message(sender, settings.contact_destination, msg)
    return {"success": True}


# Uploads
@app.post("/api/upload", response_model=ImageAsset)
def upload_image(
    file: Optional[UploadFile] = File(None),
    uploader: ImageUploader = Depends(get_uploader),
    _: dict = Depends(get_current_admin),
):
    data = read_upload(file)
    if data is None:
        raise ValidationError("No file provided")
    return uploader.upload(data, filename=file.filename, content_type=file.content_type, folder=WORKS_FOLDER)
