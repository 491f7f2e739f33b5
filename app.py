"""What To Eat - recipe recommendation service.

Single entry point for the HTTP service:
- FastAPI app with CORS and the /api routes (recipes, chat, models)
- Chat agent registered with AgentOS, which serves its own endpoints alongside

Run with: python app.py
"""

from agno.os import AgentOS
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from whattoeat.agents.agent import build_chat_agent
from whattoeat.api.routes import router
from whattoeat.utils.config import config
from whattoeat.utils.logger import logger


def create_app() -> FastAPI:
    """Build the FastAPI app with CORS and the recipe routes."""
    base_app = FastAPI(
        title="What To Eat API",
        description="Recipe recommendations from TheMealDB with keyword expansion and translation",
        version="1.0.0",
    )
    base_app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    base_app.include_router(router)

    @base_app.get("/")
    async def root():
        return {
            "message": "What To Eat API",
            "endpoints": ["GET /api/recipes", "POST /api/recipes", "POST /api/chat", "GET /api/models"],
        }

    return base_app


logger.info("Configuring What To Eat service...")
if not config.llm_enabled:
    logger.warning("GEMINI_API_KEY not set: keyword expansion, translation and chat are disabled")

agent_os = AgentOS(
    description="What To Eat recipe recommendation service",
    agents=[build_chat_agent()],
    base_app=create_app(),
)
app = agent_os.get_app()
logger.info("Service configured successfully")


if __name__ == "__main__":
    logger.info(f"Starting What To Eat service on port {config.PORT}")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    agent_os.serve(app="app:app", port=config.PORT)
