"""
Main entry point for the Growth Accelerator AI service.
Exposes resilient Gemini generation, prompt templates and company research over HTTP.
"""

from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from google import genai
from pydantic import BaseModel, Field

from common.logging import get_logger, configure_logging
from config.settings import APP_ENV, LOG_LEVEL, GEMINI_API_KEY
from db.db import Database
from impl.config_store import ConfigStore
from impl.research import CompanyResearchProvider
from services.ai_service import AIService
from services.exceptions import GenerationFailedError, ResearchError, TemplateNotFoundError

configure_logging(env=APP_ENV, level=LOG_LEVEL)
logger = get_logger(__name__)

SERVICE_NAME = "growth-ai-service"


class GenerationOptions(BaseModel):
    temperature: Optional[float] = None
    top_k: Optional[int] = None
    top_p: Optional[float] = None
    max_output_tokens: Optional[int] = None
    use_search: Optional[bool] = None
    response_schema: Optional[Dict[str, Any]] = None


class GenerateBody(BaseModel):
    prompt: str = Field(min_length=1)
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class TemplateBody(BaseModel):
    variables: Dict[str, Any] = Field(default_factory=dict)
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class ResearchBody(BaseModel):
    company_name: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup/shutdown).
    A missing configuration database is not fatal: generation runs on the built-in models.
    """
    logger.info("Application startup initiated")

    db = None
    try:
        db = Database()
        logger.info("Configuration database connected")
    except Exception as e:
        logger.critical("Failed to connect configuration database", extra={"error": str(e)})

    app.state.db = db
    app.state.ai_service = AIService(ConfigStore(db), api_key=GEMINI_API_KEY)

    app.state.research_provider = None
    if GEMINI_API_KEY:
        app.state.research_provider = CompanyResearchProvider(genai.Client(api_key=GEMINI_API_KEY))
        logger.debug("Gemini research client initialized")
    else:
        logger.warning("No API key configured, running in simulation mode")

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown initiated")
    if app.state.db is not None:
        try:
            app.state.db.close()
        except Exception as e:
            logger.error("Error during database shutdown", extra={"error": str(e)})
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Growth Accelerator AI Service",
    description="Resilient Gemini generation with database-driven models and prompts",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health(request: Request):
    service: AIService = request.app.state.ai_service
    return {"status": "ok", "service": SERVICE_NAME, "simulation_mode": service.simulation_mode}


@app.post("/generate")
async def generate(body: GenerateBody, request: Request):
    service: AIService = request.app.state.ai_service
    options = body.options.model_dump(exclude_none=True)
    try:
        text = await run_in_threadpool(service.generate, body.prompt, **options)
    except GenerationFailedError as e:
        return JSONResponse(status_code=502, content={"error": str(e)})
    return {"text": text}


@app.post("/templates/{prompt_key}/generate")
async def generate_from_template(prompt_key: str, body: TemplateBody, request: Request):
    service: AIService = request.app.state.ai_service
    options = body.options.model_dump(exclude_none=True)
    try:
        text = await run_in_threadpool(
            service.generate_from_template, prompt_key, body.variables, **options
        )
    except TemplateNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": str(e)})
    except GenerationFailedError as e:
        return JSONResponse(status_code=502, content={"error": str(e)})
    return {"text": text}


@app.get("/models")
async def list_models(request: Request):
    service: AIService = request.app.state.ai_service
    config = await run_in_threadpool(service.config_store.fetch_config)
    return {
        "models": [m.to_dict() for m in config.models],
        "blocked": service.blocklist.blocked_models(),
        "fallback": config.is_fallback,
    }


@app.get("/models/discover")
async def discover_models(request: Request):
    service: AIService = request.app.state.ai_service
    if service.simulation_mode:
        return JSONResponse(status_code=503, content={"error": "No API key configured"})
    models = await run_in_threadpool(service.provider.discover_models)
    return {"models": [m.to_dict() for m in models]}


@app.post("/research")
async def research(body: ResearchBody, request: Request):
    provider: Optional[CompanyResearchProvider] = request.app.state.research_provider
    if provider is None:
        return JSONResponse(status_code=503, content={"error": "No API key configured"})
    try:
        profile = await run_in_threadpool(provider.research_company, body.company_name)
    except ValueError as e:
        return JSONResponse(status_code=422, content={"error": str(e)})
    except ResearchError as e:
        return JSONResponse(status_code=502, content={"error": str(e)})
    return asdict(profile)
