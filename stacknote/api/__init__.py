# StackNote API
from stacknote.api.router import api_router

__all__ = ["api_router"]
