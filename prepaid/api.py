from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .exceptions import (
    InsufficientFundsError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from .logging_config import configure_logging
from .models import (
    AuthorizationActionResponse,
    AuthorizationResponse,
    BalanceResponse,
    BlockedBalanceResponse,
    CaptureRequest,
    CardResponse,
    CreateAuthorizationRequest,
    CreateCardRequest,
    LoadMoneyRequest,
    MerchantResponse,
    RefundRequest,
    ReverseRequest,
)
from .service import PrepaidCardService

configure_logging()


def create_app(card_service: Optional[PrepaidCardService] = None, root_path: str = "") -> FastAPI:
    card_service = card_service or PrepaidCardService()

    app = FastAPI(
        title="Prepaid Card API",
        description="Prepaid card ledger with merchant holds, partial captures and reversals",
        version="1.0.0",
        root_path=root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service errors map straight to status codes.
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(InsufficientFundsError)
    async def declined_handler(request: Request, exc: InsufficientFundsError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_402_PAYMENT_REQUIRED, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

    @app.exception_handler(InvalidStateTransitionError)
    async def conflict_handler(request: Request, exc: InvalidStateTransitionError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": settings.service_name}

    @app.post("/cards", response_model=CardResponse, status_code=status.HTTP_201_CREATED, tags=["Cards"])
    def create_card(request: CreateCardRequest) -> CardResponse:
        return card_service.create_card(request)

    @app.get("/cards/{card_id}", response_model=CardResponse, tags=["Cards"])
    def get_card(card_id: int) -> CardResponse:
        return card_service.get_card(card_id)

    @app.post("/cards/{card_id}/load-money", response_model=CardResponse, tags=["Cards"])
    def load_money(card_id: int, request: LoadMoneyRequest) -> CardResponse:
        return card_service.load_money(card_id, request)

    @app.get("/cards/{card_id}/balance", response_model=BalanceResponse, tags=["Cards"])
    def get_balance(card_id: int) -> BalanceResponse:
        return card_service.get_balance(card_id)

    @app.get("/cards/{card_id}/blocked-balance", response_model=BlockedBalanceResponse, tags=["Cards"])
    def get_blocked_balance(card_id: int) -> BlockedBalanceResponse:
        return card_service.get_blocked_balance(card_id)

    @app.post("/cards/{card_id}/refunds", response_model=CardResponse, tags=["Cards"])
    def receive_refund(card_id: int, request: RefundRequest) -> CardResponse:
        return card_service.receive_refund(card_id, request)

    @app.post(
        "/cards/{card_id}/authorizations",
        response_model=AuthorizationActionResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Authorizations"],
    )
    def authorize(card_id: int, request: CreateAuthorizationRequest) -> AuthorizationActionResponse:
        return card_service.authorize(card_id, request)

    @app.get("/authorizations/{request_id}", response_model=AuthorizationResponse, tags=["Authorizations"])
    def get_authorization(request_id: int) -> AuthorizationResponse:
        return card_service.get_authorization(request_id)

    @app.post(
        "/authorizations/{request_id}/capture",
        response_model=AuthorizationActionResponse,
        tags=["Authorizations"],
    )
    def capture(request_id: int, request: CaptureRequest) -> AuthorizationActionResponse:
        return card_service.capture(request_id, request)

    @app.post(
        "/authorizations/{request_id}/reverse",
        response_model=AuthorizationActionResponse,
        tags=["Authorizations"],
    )
    def reverse(request_id: int, request: Optional[ReverseRequest] = None) -> AuthorizationActionResponse:
        return card_service.reverse(request_id, request)

    @app.post("/merchants", response_model=MerchantResponse, status_code=status.HTTP_201_CREATED, tags=["Merchants"])
    def create_merchant() -> MerchantResponse:
        return card_service.create_merchant()

    @app.get("/merchants/{merchant_id}", response_model=MerchantResponse, tags=["Merchants"])
    def get_merchant(merchant_id: int) -> MerchantResponse:
        return card_service.get_merchant(merchant_id)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
