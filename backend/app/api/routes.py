from fastapi import APIRouter

from app.api.ai import router as ai_router
from app.api.channels import router as channels_router
from app.api.conversations import router as conversations_router
from app.api.files import router as files_router
from app.api.messages import router as messages_router
from app.api.search import router as search_router
from app.api.users import router as users_router

router = APIRouter()

router.include_router(users_router)
router.include_router(channels_router)
router.include_router(messages_router)
router.include_router(conversations_router)
router.include_router(files_router)
router.include_router(search_router)
router.include_router(ai_router)


@router.get("/", tags=["root"])
def read_root() -> dict[str, str]:
    return {"message": "Welcome to the Huddle API"}
