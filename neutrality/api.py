"""
HTTP API for the neutrality service.

Routes:
    GET  /                       - Liveness ("OK")
    GET  /health                 - Liveness ("OK")
    GET  /llm-status             - Readiness of the model back-end
    GET  /models                 - Registered models
    POST /neutrality/test        - Fan a prompt out to several models
    POST /neutrality/test/stream - Same, streamed as NDJSON as each model settles
    POST /neutrality/model       - Run a single model
    POST /analysis               - Score responses with the analyst model
"""

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from config.config_loader import load_config
from neutrality.analysis_schema import AnalysisResult
from neutrality.errors import AnalysisError, ConfigurationError
from neutrality.models import ModelResult
from neutrality.registry import list_descriptors
from neutrality.schemas import (
    AnalyzeRequest,
    ModelResultPayload,
    NeutralityModelRequest,
    NeutralityTestRequest,
    NeutralityTestResponse,
    ReadinessPayload,
)
from neutrality.service import NeutralityService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> NeutralityService:
    return request.app.state.service


@router.get("/", response_class=PlainTextResponse)
@router.get("/health", response_class=PlainTextResponse)
async def health_check(service: NeutralityService = Depends(get_service)) -> str:
    return service.health_check()


@router.get("/llm-status", response_model=ReadinessPayload)
async def llm_status(service: NeutralityService = Depends(get_service)) -> ReadinessPayload:
    readiness = await service.llm_status()
    return ReadinessPayload(ready=readiness.ready, reason=readiness.reason)


@router.get("/models")
async def models() -> list[dict[str, str]]:
    return [
        {
            "id": d.id.value,
            "name": d.display_name,
            "provider": d.provider_name,
            "description": d.description,
        }
        for d in list_descriptors()
    ]


@router.post("/neutrality/test", response_model=NeutralityTestResponse)
async def run_neutrality_test(
    body: NeutralityTestRequest,
    service: NeutralityService = Depends(get_service),
) -> NeutralityTestResponse:
    """Run every requested model; per-model failures are reported inline."""
    result = await service.run_neutrality_test(body)
    return NeutralityTestResponse.from_result(result)


@router.post("/neutrality/test/stream")
async def stream_neutrality_test(
    body: NeutralityTestRequest,
    service: NeutralityService = Depends(get_service),
) -> StreamingResponse:
    """One JSON line per model, written as soon as that model settles."""
    results = service.stream_neutrality_test(body)

    async def ndjson() -> AsyncIterator[str]:
        async for result in results:
            yield ModelResultPayload.from_result(result).model_dump_json(by_alias=True) + "\n"

    return StreamingResponse(ndjson(), media_type="application/x-ndjson")


@router.post("/neutrality/model", response_model=ModelResultPayload)
async def run_neutrality_model(
    body: NeutralityModelRequest,
    service: NeutralityService = Depends(get_service),
) -> ModelResultPayload:
    result: ModelResult = await service.run_neutrality_model(body)
    return ModelResultPayload.from_result(result)


@router.post("/analysis", response_model=AnalysisResult)
async def analyze_responses(
    body: AnalyzeRequest,
    service: NeutralityService = Depends(get_service),
) -> AnalysisResult:
    return await service.analyze_responses(body)


async def _configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": exc.message})


async def _analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    logger.error("Analysis failed: %s", exc.message)
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": exc.message})


def create_app(service: NeutralityService | None = None) -> FastAPI:
    """Build the FastAPI application around a NeutralityService."""
    app = FastAPI(title="Neural Net Neutrality", version="0.1.0")
    app.state.service = service or NeutralityService(load_config())
    app.include_router(router)
    app.add_exception_handler(ConfigurationError, _configuration_error_handler)
    app.add_exception_handler(AnalysisError, _analysis_error_handler)
    return app
