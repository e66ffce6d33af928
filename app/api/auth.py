# Authentication API routes for user registration, login, and current user lookup

from fastapi import APIRouter, Depends, status

from app.db_handlers.user import UserDBHandler
from app.dependencies.auth import get_current_user
from app.errors import AppError
from app.models import User
from app.schemas import LoginRequest, RegisterRequest, serialize_user, success
from app.utils.auth import create_user_token, get_password_hash, verify_password
from app.utils.logger import setup_logger

logger = setup_logger("api.auth")

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: RegisterRequest,
    user_db_handler: UserDBHandler = Depends(),
):
    """Register a new user and return a token for immediate use."""
    existing_user = await user_db_handler.get_by_email_or_username(
        email=user_data.email, username=user_data.username
    )
    if existing_user:
        logger.info(f"Registration rejected, user exists: {user_data.username}")
        raise AppError("User already exists", status_code=status.HTTP_400_BAD_REQUEST)

    # Password is hashed using bcrypt before storage
    user = await user_db_handler.create(
        {
            "username": user_data.username,
            "email": user_data.email,
            "hashed_password": get_password_hash(user_data.password),
            "first_name": user_data.first_name,
            "last_name": user_data.last_name,
        }
    )
    logger.info(f"User registered: {user.username} ({user.id})")

    return success(
        "User registered successfully",
        token=create_user_token(user.id),
        user=serialize_user(user),
    )


@router.post("/login")
async def login_user(
    user_data: LoginRequest,
    user_db_handler: UserDBHandler = Depends(),
):
    """Authenticate with email or username and return a JWT for API access."""
    user = await user_db_handler.get_login_user(
        email=user_data.email, username=user_data.username
    )

    if not user or not verify_password(user_data.password, user.hashed_password):
        logger.warning(
            f"Failed login attempt for {user_data.email or user_data.username}"
        )
        raise AppError("Invalid credentials", status_code=status.HTTP_400_BAD_REQUEST)

    logger.info(f"User logged in: {user.username} ({user.id})")

    return success(
        "Login successful",
        token=create_user_token(user.id),
        user=serialize_user(user),
    )


@router.get("/me")
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
):
    """Retrieve the authenticated user's profile."""
    return success(user=serialize_user(current_user))
