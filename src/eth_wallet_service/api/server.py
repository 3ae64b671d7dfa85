"""FastAPI HTTP API for eth-wallet-service."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eth_wallet_service.config import ServiceConfig, load_config
from eth_wallet_service.wallet.errors import WalletError
from eth_wallet_service.wallet.manager import WalletService

logger = logging.getLogger("eth_wallet_service.api")

_app = FastAPI(title="Ethereum Wallet Service")
_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
_service: WalletService | None = None


def set_service(service: WalletService) -> FastAPI:
    """Install the service the routes operate on and return the app."""
    global _service
    _service = service
    return _app


def _require_service() -> WalletService:
    if _service is None:
        raise RuntimeError("Wallet service not configured; call set_service() first.")
    return _service


@_app.on_event("startup")
async def startup():
    global _service
    if _service is None:
        _service = WalletService.from_config(load_config())
    logger.info(f"Wallet service started with {len(_service.candidates)} RPC endpoints")


@_app.exception_handler(WalletError)
async def wallet_error_handler(request: Request, exc: WalletError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "kind": exc.kind},
    )


# ------------------------------------------------------------------
# API routes
# ------------------------------------------------------------------


@_app.post("/api/wallet/create")
def api_create_wallet():
    record = _require_service().create_wallet()
    return {"success": True, "wallet": record.to_public_dict()}


@_app.get("/api/wallet/balance/{address}")
def api_balance(address: str):
    result = _require_service().get_balance(address)
    return {"success": True, **result.to_dict()}


@_app.get("/api/wallet/transactions/{address}")
def api_transactions(address: str):
    transactions = _require_service().get_transactions(address)
    return {"success": True, "transactions": [t.to_dict() for t in transactions]}


@_app.post("/api/wallet/send")
def api_send(body: dict):
    outcome = _require_service().send(
        from_address=body.get("fromAddress"),
        to_address=body.get("toAddress"),
        amount=body.get("amount"),
        private_key=body.get("privateKey"),
    )
    return {"success": True, **outcome.to_dict()}


@_app.delete("/api/wallet/{address}")
def api_delete_wallet(address: str):
    removed = _require_service().delete_wallet(address)
    return {"success": True, "address": address, "removed": removed}


@_app.get("/api/health")
def api_health():
    return _require_service().health()


# ------------------------------------------------------------------
# Runner
# ------------------------------------------------------------------


def run_server(config: ServiceConfig, host: str | None = None, port: int | None = None) -> None:
    set_service(WalletService.from_config(config))
    uvicorn.run(
        _app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_level="info",
    )
