"""
Service Factory Module

Common FastAPI app creation and uvicorn startup for the sheet mirror service.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import ServiceSettings

logger = logging.getLogger(__name__)


class ServiceInfo:
    """Service configuration container"""

    def __init__(
        self,
        name: str,
        title: str,
        description: str,
        version: str = "1.0.0",
        port: int = 3001,
        host: str = "0.0.0.0",
        tags: Optional[List[Dict[str, str]]] = None
    ):
        self.name = name
        self.title = title
        self.description = description
        self.version = version
        self.port = port
        self.host = host
        self.tags = tags or []


def create_fastapi_service(
    service_info: ServiceInfo,
    lifespan: Optional[Callable] = None,
    service_settings: Optional[ServiceSettings] = None,
    include_logging_middleware: bool = True,
) -> FastAPI:
    """
    Create a FastAPI application with CORS and request logging configured.

    Args:
        service_info: Service configuration
        lifespan: Optional lifespan context manager
        service_settings: CORS settings source (defaults from the environment)
        include_logging_middleware: Whether to log every request
    """
    openapi_tags = [{"name": "Health", "description": "Health check and service status"}]
    openapi_tags.extend(service_info.tags)

    app = FastAPI(
        title=service_info.title,
        description=service_info.description,
        version=service_info.version,
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    _configure_cors(app, service_settings or ServiceSettings())

    if include_logging_middleware:
        _add_logging_middleware(app)

    logger.info(f"✅ {service_info.name} FastAPI 앱 생성 완료")
    return app


def _configure_cors(app: FastAPI, service_settings: ServiceSettings) -> None:
    if not service_settings.cors_enabled:
        logger.info("🚫 CORS disabled")
        return
    origins = service_settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"🌐 CORS enabled with origins: {origins}")


def _add_logging_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(
            f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.4f}s"
        )
        return response


def create_uvicorn_config(service_info: ServiceInfo, reload: bool = False) -> Dict[str, Any]:
    logger.info(f"🔓 HTTP enabled for {service_info.name} on port {service_info.port}")
    return {
        "host": service_info.host,
        "port": service_info.port,
        "reload": reload,
        "log_config": None,
    }


def run_service(service_info: ServiceInfo, app_module_path: str, reload: bool = False) -> None:
    """
    Run the service with uvicorn.

    Args:
        service_info: Service configuration
        app_module_path: Module path for uvicorn (e.g., "dashboard.main:app")
        reload: Enable auto-reload for development
    """
    uvicorn.run(app_module_path, **create_uvicorn_config(service_info, reload))
