"""
Chat API endpoints: registration, login, chat exchange and history.

Services raise application errors (see app.core.errors); the handlers
registered in app.main turn them into JSON error responses.
"""

from fastapi import APIRouter, Depends, Path, status

from app.api.deps import get_conversation_service, get_user_directory
from app.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ConversationInfo,
    HistoryResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from app.services.conversation_service import ConversationService
from app.services.user_directory import UserDirectory

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    request: RegisterRequest,
    users: UserDirectory = Depends(get_user_directory),
) -> RegisterResponse:
    """
    Register a new user by name.

    **Request Body:**
    ```json
    {"name": "Ada"}
    ```

    The returned `userId` must be sent again with the name to log in.
    """
    user = await users.register(request.name)
    return RegisterResponse(user_id=user.user_id, name=user.name)


@router.post("/login", response_model=LoginResponse)
async def login_user(
    request: LoginRequest,
    users: UserDirectory = Depends(get_user_directory),
) -> LoginResponse:
    """
    Log in with the exact name and userId pair returned at registration.

    Returns the user and up to 20 of their conversations, newest first.
    The userId is the only credential; it is not a secret token.
    """
    user, conversations = await users.login(request.name, request.user_id)
    return LoginResponse(
        user=UserInfo.model_validate(user),
        conversations=[ConversationInfo.model_validate(c) for c in conversations],
    )


@router.post("", response_model=ChatResponse)
async def generate_chat_response(
    request: ChatRequest,
    service: ConversationService = Depends(get_conversation_service),
) -> ChatResponse:
    """
    Send a message and receive the assistant's reply.

    **Request Body:**
    ```json
    {"message": "Hello!", "userId": "lq2x8k3a-4fz9qe"}
    ```

    The response carries the reply plus the full updated conversation.
    """
    result = await service.exchange(request.user_id, request.message)
    return ChatResponse(response=result.reply, conversation=result.messages)


@router.get("/history/{user_id}", response_model=HistoryResponse)
async def get_conversation_history(
    user_id: str = Path(..., description="The user whose conversation to return"),
    service: ConversationService = Depends(get_conversation_service),
) -> HistoryResponse:
    """Return the stored conversation for a user, or 404 if none exists."""
    messages = await service.get_history(user_id)
    return HistoryResponse(conversation=messages)
