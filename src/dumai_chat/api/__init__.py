"""HTTP API for DumAI chat."""

from dumai_chat.api.routes import router

__all__ = ["router"]
