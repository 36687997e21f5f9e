"""Main FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from advisor import __version__
from advisor.api.endpoints import router
from advisor.utils.logging import setup_logging

setup_logging()

# Create FastAPI application
app = FastAPI(
    title="Quantum AI Advisor",
    description=(
        "A conversational financial advisor that answers questions about balances, "
        "transactions, investments and ledger accounts by calling tools."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    tags_metadata=[
        {
            "name": "Conversation",
            "description": "Send messages to the advisor and inspect or reset a session's conversation.",
        },
        {
            "name": "Tools",
            "description": "The catalogue of tools the advisor may call.",
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("advisor.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
