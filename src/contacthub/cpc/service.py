"""
CPC validation service.

Wraps the partner API that decides whether a (contract, phone, segment) may be
contacted today:

- GET  {base}/validate-contract    contract exists on the partner side
- GET  {base}/check-acionamento    no CPC contact recorded today
- POST {base}/register-acionamento record a new CPC contact

Every call returns the partner's ``{sucesso, mensagem}`` shape. Transport and
HTTP failures are logged and folded into ``sucesso=False`` responses, never
raised. When the integration is disabled (flag off or no base URL) every
operation succeeds immediately without touching the network.
"""

from typing import Any
from urllib.parse import quote, urlencode

import httpx

from contacthub.cpc.config import CPCConfig, get_cpc_config
from contacthub.cpc.models import CanContactResult, CPCApiResponse, CPCFailure
from contacthub.cpc.phone import format_phone_for_partner
from contacthub.shared.logging import get_logger

logger = get_logger(__name__)

CPC_TIMEOUT_SECONDS = 30.0

DISABLED_MESSAGE = "CPC API disabled"
ALLOWED_REASON = "Client may be contacted"
UNAVAILABLE_MESSAGE = "partner API unavailable - timeout"

# Escapes like JavaScript's encodeURIComponent: spaces become %20, never "+".
_QUERY_SAFE_CHARS = "!~*'()"

# The request went out (or tried to) but no response came back.
_NO_RESPONSE_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    httpx.ProxyError,
)


def _build_query(params: dict[str, str]) -> str:
    return urlencode(params, safe=_QUERY_SAFE_CHARS, quote_via=quote)


def _error_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}


class CPCValidationService:
    """Client for the partner CPC API.

    Configuration is captured once at construction, so a single instance can be
    shared across concurrent requests.
    """

    def __init__(
        self,
        config: CPCConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_cpc_config()
        self._base_url = self._config.base_url
        self._enabled = self._config.enabled and bool(self._base_url)

        self._auth = httpx.BasicAuth(self._config.user, self._config.password)

        self._http_client = http_client
        self._owns_client = http_client is None

        if self._enabled:
            logger.info(
                "CPC validation service initialized",
                extra={"base_url": self._base_url},
            )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(CPC_TIMEOUT_SECONDS))
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def validate_contract(
        self,
        contract: str,
        segment: str,
        phone: str | None = None,
    ) -> CPCApiResponse:
        """Check that the contract exists on the partner side.

        Args:
            contract: Partner contract identifier.
            segment: Partner segment.
            phone: Optional phone; sent in partner (local) format.
        """
        if not self._enabled:
            return CPCApiResponse(sucesso=True, mensagem=DISABLED_MESSAGE)

        params = {"contrato": contract, "segmento": segment}
        if phone:
            params["telefone"] = format_phone_for_partner(phone)

        return await self._call(
            "GET",
            "validate-contract",
            params=params,
            context={"contrato": contract, "segmento": segment},
        )

    async def check_acionamento(
        self,
        contract: str,
        phone: str,
        segment: str,
    ) -> CPCApiResponse:
        """Check whether a CPC contact was already recorded today."""
        if not self._enabled:
            return CPCApiResponse(sucesso=True, mensagem=DISABLED_MESSAGE)

        params = {
            "contrato": contract,
            "telefone": format_phone_for_partner(phone),
            "segmento": segment,
        }
        return await self._call(
            "GET",
            "check-acionamento",
            params=params,
            context={"contrato": contract, "telefone": phone, "segmento": segment},
        )

    async def register_acionamento(
        self,
        contract: str,
        phone: str,
        segment: str,
    ) -> CPCApiResponse:
        """Record a CPC contact for today."""
        if not self._enabled:
            return CPCApiResponse(sucesso=True, mensagem=DISABLED_MESSAGE)

        payload = {
            "telefone": format_phone_for_partner(phone),
            "contrato": contract,
            "segmento": segment,
        }
        return await self._call(
            "POST",
            "register-acionamento",
            payload=payload,
            context={"contrato": contract, "telefone": phone, "segmento": segment},
        )

    async def can_contact(
        self,
        contract: str,
        phone: str,
        segment: str,
    ) -> CanContactResult:
        """Decide whether the client may be contacted now.

        The contract is validated first; the same-day check only runs when
        validation succeeds. Nothing is registered here.
        """
        if not self._enabled:
            return CanContactResult(allowed=True, reason=DISABLED_MESSAGE)

        validation = await self.validate_contract(contract, segment, phone)
        if not validation.sucesso:
            return CanContactResult(allowed=False, reason=validation.mensagem)

        check = await self.check_acionamento(contract, phone, segment)
        if not check.sucesso:
            return CanContactResult(allowed=False, reason=check.mensagem)

        return CanContactResult(allowed=True, reason=ALLOWED_REASON)

    async def _call(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
        context: dict[str, Any],
    ) -> CPCApiResponse:
        url = f"{self._base_url}/{endpoint}"
        if params:
            url = f"{url}?{_build_query(params)}"

        log_ctx = {"endpoint": endpoint, **context}
        logger.info(
            "CPC request",
            extra={**log_ctx, "http_method": method, "url": url},
        )

        try:
            response = await self._get_client().request(
                method,
                url,
                auth=self._auth,
                json=payload,
                timeout=CPC_TIMEOUT_SECONDS,
            )
        except _NO_RESPONSE_ERRORS as exc:
            logger.error(
                "CPC API timeout/no response",
                exc_info=True,
                extra={**log_ctx, "failure": CPCFailure.UNAVAILABLE.value, "error": str(exc)},
            )
            return CPCApiResponse(sucesso=False, mensagem=UNAVAILABLE_MESSAGE)
        except Exception as exc:
            return self._internal_error(exc, log_ctx)

        if response.is_error:
            error_data = _error_body(response)
            partner_message = error_data.get("mensagem") if isinstance(error_data, dict) else None
            if not isinstance(partner_message, str):
                partner_message = None
            logger.error(
                "CPC API error response",
                extra={
                    **log_ctx,
                    "failure": CPCFailure.REJECTED.value,
                    "status_code": response.status_code,
                    "error": error_data,
                },
            )
            return CPCApiResponse(
                sucesso=False,
                mensagem=partner_message or f"API error: {response.status_code}",
            )

        try:
            result = CPCApiResponse.model_validate(response.json())
        except ValueError as exc:
            return self._internal_error(exc, log_ctx)

        logger.info(
            "CPC response",
            extra={**log_ctx, "sucesso": result.sucesso, "mensagem": result.mensagem},
        )
        return result

    def _internal_error(self, exc: Exception, log_ctx: dict[str, Any]) -> CPCApiResponse:
        logger.error(
            "CPC API internal error",
            exc_info=exc,
            extra={**log_ctx, "failure": CPCFailure.CONFIG_ERROR.value, "error": str(exc)},
        )
        return CPCApiResponse(sucesso=False, mensagem=f"internal error: {exc}")
