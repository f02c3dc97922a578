"""
HTTP API for Coinshire

A thin JSON boundary over ExpenseFlow. Every route forwards to the flow;
no business logic lives here.

Run with any ASGI server, e.g. `uvicorn coinshire.api:app`.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Query, Request, Response, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coinshire import __version__
from coinshire.log import configure_logging
from coinshire.models.expense import Balance, Expense, ExpenseCreate, ValidationIssue
from coinshire.orchestrator import ExpenseFlow, create_app_components
from coinshire.services.storage import NotFoundError, StorageError
from coinshire.validation import InvalidExpenseError

logger = structlog.get_logger(__name__)

EXPENSES_PATH = "/api/expenses"


def _invalid_payload(issues: list[ValidationIssue]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid payload",
            "issues": [issue.model_dump() for issue in issues],
        },
    )


def _issue_from_request_error(error: dict) -> ValidationIssue:
    """Turn one FastAPI request validation error into a ValidationIssue."""
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body"
    return ValidationIssue(
        field=field,
        issue_type=error.get("type", "invalid_value"),
        message=f"{field}: {error.get('msg', 'invalid value')}",
        severity="error",
    )


def create_api(flow: Optional[ExpenseFlow] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        flow: The expense flow to serve. Built from configuration if None.
    """
    if flow is None:
        configure_logging()
        flow, _ = create_app_components()

    settings = flow.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await flow.initialize()
        logger.info("api_started", environment=settings.app_environment)
        yield

    app = FastAPI(title="Coinshire API", version=__version__, lifespan=lifespan)
    app.state.flow = flow

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error mapping
    @app.exception_handler(InvalidExpenseError)
    async def invalid_expense_handler(request: Request, exc: InvalidExpenseError):
        return _invalid_payload(exc.result.issues)

    # Badly typed or unparseable expense bodies share the 400 shape above;
    # every other route keeps FastAPI's 422.
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        if request.method == "POST" and request.url.path == EXPENSES_PATH:
            logger.warning("expense_rejected", errors=len(exc.errors()))
            return _invalid_payload([_issue_from_request_error(e) for e in exc.errors()])
        return await request_validation_exception_handler(request, exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Expense not found"},
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("storage_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Storage failure"},
        )

    # Routes
    @app.get("/api/health")
    async def health_check():
        return {"ok": True}

    @app.get("/api/users")
    async def list_users():
        users = await flow.list_users()
        return {"users": [user.model_dump(by_alias=True, mode="json") for user in users]}

    @app.get(EXPENSES_PATH)
    async def list_expenses(
        limit: int = Query(default=settings.page_size, ge=1, le=settings.max_page_size),
        offset: int = Query(default=0, ge=0),
    ):
        expenses = await flow.list_expenses(limit=limit, offset=offset)
        return {
            "expenses": [
                expense.model_dump(by_alias=True, mode="json") for expense in expenses
            ]
        }

    @app.post(
        EXPENSES_PATH,
        response_model=Expense,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_expense(payload: ExpenseCreate):
        return await flow.create_expense(payload)

    @app.delete(
        EXPENSES_PATH + "/{expense_id}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def delete_expense(expense_id: str):
        await flow.delete_expense(expense_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/api/balance", response_model=Balance)
    async def get_balance(user_id: str = Query(..., alias="userId", min_length=1)):
        return await flow.get_balance(user_id)

    return app


app = create_api()
