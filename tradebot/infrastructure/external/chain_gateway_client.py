# tradebot/infrastructure/external/chain_gateway_client.py
"""
Chain gateway client.

Talks to a JSON HTTP gateway that fronts the chain RPC and DEX router:

  GET  /balances/{address}   → {"balances": [{"symbol", "address", "amount"}]}
  POST /quotes               → {"amountOut", "priceImpact"}
  POST /trades               → {"transaction": {...unsigned tx...}, "amountOut"}
  POST /transfers            → {"transaction": {...unsigned tx...}}
  POST /transactions         → {"txHash"}

Trades and transfers come back unsigned; they are signed locally with the
user's key and submitted through ``/transactions``.  Keys never leave the
process.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from tradebot.domain.errors import ChainError
from tradebot.domain.ports import Quote, TokenBalance, TxResult, WalletCrypto, WalletRecord

logger = logging.getLogger("chain_gateway_client")

# Timeout for all gateway calls (seconds)
_TIMEOUT = 30


class ChainGatewayClient:
    def __init__(
        self,
        base_url: str,
        crypto: WalletCrypto,
        *,
        api_key: str = "",
        timeout: float = _TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base = base_url.rstrip("/")
        self.crypto = crypto
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json_body: dict | None = None,
    ) -> Dict[str, Any]:
        url = f"{self.base}{path}"
        logger.info("Gateway %s %s", method, path)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                r = await client.request(method, url, headers=self._headers(), json=json_body)
                r.raise_for_status()
                return r.json()
            except httpx.HTTPStatusError as exc:
                body: Dict[str, Any] = {}
                try:
                    body = exc.response.json()
                except ValueError:
                    pass
                status = exc.response.status_code
                logger.error("Gateway HTTP error: %s %s -> %d %s", method, path, status, body)
                # 4xx bodies carry a message meant for the user (e.g. insufficient liquidity)
                user_message = body.get("error") if isinstance(body, dict) and 400 <= status < 500 else None
                raise ChainError(f"Gateway error {status}", user_message=user_message) from exc
            except httpx.TimeoutException as exc:
                logger.error("Gateway timeout: %s %s", method, path)
                raise ChainError("Gateway timeout") from exc
            except httpx.HTTPError as exc:
                logger.error("Gateway transport error: %s %s: %s", method, path, exc)
                raise ChainError(f"Gateway unreachable: {exc}") from exc
            except ValueError as exc:
                logger.error("Gateway returned non-JSON body: %s %s", method, path)
                raise ChainError("Gateway returned an invalid response") from exc

    # ----------------------------------------------------------------
    # Reads
    # ----------------------------------------------------------------

    async def get_balances(self, address: str) -> List[TokenBalance]:
        data = await self._request("GET", f"/balances/{address}")
        return [
            TokenBalance(
                symbol=item.get("symbol", "?"),
                address=item.get("address"),
                amount=float(item.get("amount", 0)),
            )
            for item in data.get("balances", [])
        ]

    async def quote(self, token_in: str, token_out: str, amount: float) -> Quote:
        data = await self._request(
            "POST",
            "/quotes",
            {"tokenIn": token_in, "tokenOut": token_out, "amount": amount},
        )
        return Quote(
            token_in=token_in,
            token_out=token_out,
            amount_in=amount,
            amount_out=float(data.get("amountOut", 0)),
            price_impact=float(data.get("priceImpact", 0)),
        )

    # ----------------------------------------------------------------
    # Writes (signed locally)
    # ----------------------------------------------------------------

    async def _sign_and_submit(self, wallet: WalletRecord, tx: Dict[str, Any]) -> str:
        if not tx:
            raise ChainError("Gateway returned no transaction to sign")
        raw = self.crypto.sign(wallet.encrypted_secret, tx)
        data = await self._request("POST", "/transactions", {"rawTransaction": raw})
        tx_hash = data.get("txHash")
        if not tx_hash:
            raise ChainError("Gateway did not return a transaction hash")
        return tx_hash

    async def execute_trade(
        self,
        wallet: WalletRecord,
        token_in: str,
        token_out: str,
        amount: float,
        *,
        slippage: float,
        gas_priority: str,
    ) -> TxResult:
        data = await self._request(
            "POST",
            "/trades",
            {
                "from": wallet.address,
                "tokenIn": token_in,
                "tokenOut": token_out,
                "amount": amount,
                "slippage": slippage,
                "gasPriority": gas_priority,
            },
        )
        tx_hash = await self._sign_and_submit(wallet, data.get("transaction") or {})
        return TxResult(tx_hash, {"amountOut": data.get("amountOut")})

    async def send_funds(
        self,
        wallet: WalletRecord,
        to: str,
        amount: float,
        *,
        gas_priority: str,
    ) -> TxResult:
        data = await self._request(
            "POST",
            "/transfers",
            {"from": wallet.address, "to": to, "amount": amount, "gasPriority": gas_priority},
        )
        tx_hash = await self._sign_and_submit(wallet, data.get("transaction") or {})
        return TxResult(tx_hash)
