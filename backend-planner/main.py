import os
import logging
from typing import Annotated, Any, List, Optional, Union
from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, BeforeValidator
from config import settings
from database import UserStore, get_store
from dependencies import get_current_user, require_admin
from models import User
from errors import AppError, NotFoundError, UnexpectedError, ValidationError, app_error_handler, request_validation_handler
from auth import register_user, login_user, validate_admin_secret
from chains.plan_chain import generate_plan
import crud

# Tracing
from opentelemetry import trace
from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.cloud_trace_propagator import (
    CloudTraceFormatPropagator,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# Configure Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# --- Setup Tracing ---
if settings.TRACING_ENABLED:
    set_global_textmap(CloudTraceFormatPropagator())
    tracer_provider = TracerProvider()
    tracer_provider.add_span_processor(BatchSpanProcessor(CloudTraceSpanExporter()))
    trace.set_tracer_provider(tracer_provider)

app = FastAPI(title="Omnifica Ads Planner", version="1.0.0")

# Instrument FastAPI
FastAPIInstrumentor.instrument_app(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)


def _scalar_to_text(value):
    # Clients send numeric plans/passwords as JSON numbers
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value

ScalarText = Annotated[str, BeforeValidator(_scalar_to_text)]

class RegisterRequest(BaseModel):
    name: Optional[ScalarText] = None
    email: Optional[ScalarText] = None
    password: Optional[ScalarText] = None
    plan: Optional[ScalarText] = None

class LoginRequest(BaseModel):
    email: Optional[ScalarText] = None
    password: Optional[ScalarText] = None

class PlanRequest(BaseModel):
    segmento: Optional[Union[str, int, float, List[Any]]] = None
    objetivo: Optional[Union[str, int, float, List[Any]]] = None
    orcamento: Optional[Union[str, int, float, List[Any]]] = None
    plataformas: Optional[Union[str, int, float, List[Any]]] = None

class AdminLoginRequest(BaseModel):
    password: Optional[ScalarText] = None

class UpdateStatusRequest(BaseModel):
    userId: Optional[ScalarText] = None
    status: Optional[ScalarText] = None


@app.get("/health")
def health_check():
    return {"status": "healthy"}

@app.post("/api/auth/register")
def register_endpoint(request: Optional[RegisterRequest] = None, store: UserStore = Depends(get_store)):
    request = request or RegisterRequest()
    try:
        message = register_user(store, request.name, request.email, request.password, request.plan)
        return {"ok": True, "message": message}
    except AppError:
        raise
    except Exception:
        logger.error("Error in /api/auth/register", exc_info=True)
        raise UnexpectedError("Erro ao criar conta.")

@app.post("/api/auth/login")
def login_endpoint(request: Optional[LoginRequest] = None, store: UserStore = Depends(get_store)):
    request = request or LoginRequest()
    try:
        result = login_user(store, request.email, request.password)
        return {"ok": True, **result}
    except AppError:
        raise
    except Exception:
        logger.error("Error in /api/auth/login", exc_info=True)
        raise UnexpectedError("Erro ao fazer login.")

@app.post("/api/plan")
async def plan_endpoint(request: Optional[PlanRequest] = None, user: User = Depends(get_current_user)):
    """
    Generates a 30-day paid media plan for an approved user.
    """
    request = request or PlanRequest()
    try:
        plan_text = await generate_plan(
            user,
            segment=request.segmento,
            objective=request.objetivo,
            budget=request.orcamento,
            platforms=request.plataformas,
        )
        return {"ok": True, "plan": plan_text}
    except AppError:
        raise
    except Exception:
        logger.error("Error in /api/plan", exc_info=True)
        raise UnexpectedError("Erro ao gerar planejamento.")

@app.post("/api/admin/login")
def admin_login_endpoint(request: Optional[AdminLoginRequest] = None):
    request = request or AdminLoginRequest()
    try:
        validate_admin_secret(request.password, mismatch_message="Senha incorreta.")
        return {"ok": True}
    except AppError:
        raise
    except Exception:
        logger.error("Error in /api/admin/login", exc_info=True)
        raise UnexpectedError("Erro ao validar senha.")

@app.get("/api/admin/users", dependencies=[Depends(require_admin)])
def admin_users_endpoint(store: UserStore = Depends(get_store)):
    try:
        return {"ok": True, "users": crud.list_users(store.load())}
    except AppError:
        raise
    except Exception:
        logger.error("Error in /api/admin/users", exc_info=True)
        raise UnexpectedError("Erro ao listar usuários.")

@app.post("/api/admin/update-user-status", dependencies=[Depends(require_admin)])
def update_user_status_endpoint(request: Optional[UpdateStatusRequest] = None, store: UserStore = Depends(get_store)):
    request = request or UpdateStatusRequest()
    try:
        if not request.userId or not request.status:
            raise ValidationError("Informe usuário e status.")
        with store.transaction() as data:
            user = crud.update_user_status(data, request.userId, request.status)
            if not user:
                raise NotFoundError("Usuário não encontrado.")
        logger.info(f"User {request.userId} status set to {request.status}")
        return {"ok": True}
    except AppError:
        raise
    except Exception:
        logger.error("Error in /api/admin/update-user-status", exc_info=True)
        raise UnexpectedError("Erro ao atualizar status.")

# Static pages are served from the frontend build directory when it is deployed alongside the API
if os.path.isdir(settings.STATIC_DIR):
    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Omnifica Ads Planner running on http://localhost:{settings.PORT}")
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
