# Run from project root: uvicorn pottery_agent.main:app --reload

import logging

from fastapi import FastAPI

from pottery_agent.api.a2a_routes import router as a2a_router
from pottery_agent.api.routes import router
from pottery_agent.api.tools_routes import tools_router
from pottery_agent.core.config import LOG_LEVEL

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))


app = FastAPI(
    title="Pottery Expert Agent",
    description="RAG pottery agent over Pinecone + OpenAI, exposed via A2A JSON-RPC and REST.",
)
app.include_router(router)
app.include_router(a2a_router)
app.include_router(tools_router)
