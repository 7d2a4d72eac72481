import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer

from auth import AuthService
from database import BlogRepository, UserRepository, connect
from errors import AppError
from identity import FirebaseVerifier
from media import MediaUploader
from publish import PublishService
from schemas import (
    BlogCreated,
    CreateBlogRequest,
    GoogleAuthRequest,
    SessionPayload,
    SigninRequest,
    SignupRequest,
    UploadRequest,
    UploadResponse,
)
from security import PasswordHasher, TokenIssuer
from settings import Settings
from usernames import UsernameAllocator

log = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/signin", auto_error=False)


def create_app(
    settings: Optional[Settings] = None,
    users=None,
    blogs=None,
    verifier=None,
    uploader=None,
    db=None,
) -> FastAPI:
    """
    Build the API. Storage and third-party clients can be passed in; anything
    omitted is built from settings.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(asctime)s %(name)s %(message)s")

    if users is None or blogs is None:
        db = db if db is not None else connect(settings)
        if db is None:
            raise RuntimeError("Database not available, set DATABASE_URL")
        users = users or UserRepository(db)
        blogs = blogs or BlogRepository(db)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await run_in_threadpool(users.ensure_indexes)
        await run_in_threadpool(blogs.ensure_indexes)
        log.info("Database indexes ready")
        yield

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    tokens = TokenIssuer(settings.secret_key, settings.algorithm)
    app.state.settings = settings
    app.state.tokens = tokens
    app.state.auth = AuthService(
        users=users,
        hasher=PasswordHasher(settings.bcrypt_rounds),
        tokens=tokens,
        usernames=UsernameAllocator(users),
        verifier=verifier or FirebaseVerifier(settings.firebase_credentials),
    )
    app.state.publisher = PublishService(users, blogs)
    app.state.uploader = uploader or MediaUploader(
        settings.cloudinary_cloud_name, settings.cloudinary_upload_preset, settings.upload_folder
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
            message = f"Invalid {field}: {first.get('msg')}"
        else:
            message = "Invalid request"
        return JSONResponse(status_code=403, content={"error": message})

    register_routes(app)
    return app


# Auth helpers
async def get_current_user_id(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> str:
    user_id = request.app.state.tokens.verify(token)
    request.state.user_id = user_id
    return user_id


def register_routes(app: FastAPI) -> None:
    @app.get("/")
    def read_root():
        return {"message": "Blogging API is running"}

    @app.post("/signup", response_model=SessionPayload)
    async def signup(payload: SignupRequest, request: Request):
        return await request.app.state.auth.signup(payload.fullname, payload.email, payload.password)

    @app.post("/signin", response_model=SessionPayload)
    async def signin(payload: SigninRequest, request: Request):
        return await request.app.state.auth.signin(payload.email, payload.password)

    @app.post("/google-auth", response_model=SessionPayload)
    async def google_auth(payload: GoogleAuthRequest, request: Request):
        return await request.app.state.auth.google_auth(payload.access_token)

    @app.post("/create-blog", response_model=BlogCreated)
    async def create_blog(payload: CreateBlogRequest, request: Request, user_id: str = Depends(get_current_user_id)):
        blog_id = await request.app.state.publisher.publish(
            user_id,
            title=payload.title,
            des=payload.des,
            banner=payload.banner,
            content=payload.content,
            tags=payload.tags,
            draft=payload.draft,
        )
        return BlogCreated(id=blog_id)

    @app.post("/upload", response_model=UploadResponse)
    async def upload(payload: UploadRequest, request: Request):
        url = await request.app.state.uploader.upload(payload.image)
        return UploadResponse(url=url)


if __name__ == "__main__":
    import uvicorn

    settings = Settings.from_env()
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(create_app(settings), host="0.0.0.0", port=port)
