"""FastAPI server exposing event publishing and execution lookups."""

from __future__ import annotations

import copy
import logging
from typing import Any

import uvicorn
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from ..features.events import EventPayload, UnknownEventError, publish
from .worker import Worker

logger = logging.getLogger(__name__)


class PublishEventRequest(BaseModel):
    """Body of ``POST /api/v1/events``."""

    topic: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


def create_app(worker: Worker) -> FastAPI:
    """Build the FastAPI application for ``worker``.

    Endpoints:
        POST /api/v1/events               start the workflows triggered by an event
        GET  /api/v1/executions/{id}      status, result or error of an execution
        GET  /health                      health check
    """
    app = FastAPI(title="appforge worker")

    @app.post("/api/v1/events", status_code=status.HTTP_202_ACCEPTED)
    async def publish_event(request: PublishEventRequest):
        """Publish an event; each triggered workflow runs in the background."""
        event = EventPayload(topic=request.topic, data=request.data)
        try:
            records = publish(worker, event)
        except UnknownEventError as e:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(e)})
        except ValidationError as e:
            return JSONResponse(
                status_code=422,
                content={
                    "error": "Invalid event data",
                    "detail": e.errors(include_url=False, include_context=False),
                },
            )

        return {
            "event_id": event.id,
            "execution_ids": [r.execution_id for r in records],
        }

    @app.get("/api/v1/executions/{execution_id}")
    async def get_execution(execution_id: str):
        """Get an execution; failed runs report their error text."""
        record = worker.get_execution(execution_id)
        if record is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": "Execution not found", "execution_id": execution_id},
            )
        return record.model_dump(mode="json")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


class AppServer:
    """Runs the FastAPI application with uvicorn."""

    def __init__(self, worker: Worker, host: str = "127.0.0.1", port: int = 8000):
        self.host = host
        self.port = port
        self.app = create_app(worker)
        self.server: uvicorn.Server | None = None

    async def run(self):
        """Run the server until it is shut down."""
        # Route module loggers (using __name__) through uvicorn's default handler
        from uvicorn.config import LOGGING_CONFIG

        logging_config = copy.deepcopy(LOGGING_CONFIG)
        if "" not in logging_config["loggers"]:
            logging_config["loggers"][""] = {}
        logging_config["loggers"][""].update(
            {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            }
        )
        # Suppress httpx INFO request logs
        logging_config["loggers"]["httpx"] = {
            "handlers": ["default"],
            "level": "WARNING",
            "propagate": False,
        }

        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="info",
            log_config=logging_config,
        )
        self.server = uvicorn.Server(config)
        await self.server.serve()

    async def shutdown(self):
        """Shutdown the server gracefully."""
        if self.server:
            self.server.should_exit = True
