from songbird.router.api.config import router as config_router
from songbird.router.api.v1.chat import router as chat_router

routers = [config_router, chat_router]
