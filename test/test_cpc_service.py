"""
Tests for the CPC validation service against a mocked partner API.
"""

import base64
import json
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
import respx

from contacthub.cpc.config import CPCConfig
from contacthub.cpc.service import (
    ALLOWED_REASON,
    CPC_TIMEOUT_SECONDS,
    DISABLED_MESSAGE,
    UNAVAILABLE_MESSAGE,
    CPCValidationService,
)


@pytest_asyncio.fixture
async def service(cpc_config: CPCConfig) -> AsyncIterator[CPCValidationService]:
    svc = CPCValidationService(config=cpc_config)
    yield svc
    await svc.aclose()


@pytest.fixture
def partner(cpc_config: CPCConfig) -> respx.MockRouter:
    with respx.mock(base_url=cpc_config.base_url, assert_all_called=False) as mock:
        yield mock


def _ok(message: str = "OK") -> httpx.Response:
    return httpx.Response(200, json={"sucesso": True, "mensagem": message})


class TestValidateContract:
    """Tests for contract validation."""

    @pytest.mark.asyncio
    async def test_sends_encoded_query_and_basic_auth(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        route = partner.get("/validate-contract").mock(return_value=_ok("Contrato valido"))

        result = await service.validate_contract("ABC 123", "2")

        assert result.sucesso is True
        assert result.mensagem == "Contrato valido"
        request = route.calls.last.request
        assert request.url.query == b"contrato=ABC%20123&segmento=2"
        expected = base64.b64encode(b"Vend:s3cret").decode("ascii")
        assert request.headers["Authorization"] == f"Basic {expected}"

    @pytest.mark.asyncio
    async def test_optional_phone_is_normalized(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        route = partner.get("/validate-contract").mock(return_value=_ok())

        await service.validate_contract("C1", "2", phone="+55 11 91234-5678")

        params = route.calls.last.request.url.params
        assert params["telefone"] == "11912345678"

    @pytest.mark.asyncio
    async def test_error_status_uses_partner_message(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(
            return_value=httpx.Response(
                404,
                json={"sucesso": False, "mensagem": "Contrato inexistente"},
            )
        )

        result = await service.validate_contract("C1", "2")

        assert result.sucesso is False
        assert result.mensagem == "Contrato inexistente"

    @pytest.mark.asyncio
    async def test_error_status_without_message(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(return_value=httpx.Response(503))

        result = await service.validate_contract("C1", "2")

        assert result.sucesso is False
        assert result.mensagem == "API error: 503"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mensagem", [404, {"code": "X"}, ["a"]])
    async def test_error_status_with_non_text_message(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
        mensagem: object,
    ) -> None:
        partner.get("/validate-contract").mock(
            return_value=httpx.Response(400, json={"sucesso": False, "mensagem": mensagem})
        )

        result = await service.validate_contract("C1", "2")

        assert result.sucesso is False
        assert result.mensagem == "API error: 400"

    @pytest.mark.asyncio
    async def test_error_status_with_text_body(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(
            return_value=httpx.Response(500, text="Internal Server Error")
        )

        result = await service.validate_contract("C1", "2")

        assert result.sucesso is False
        assert result.mensagem == "API error: 500"

    @pytest.mark.asyncio
    async def test_timeout_is_reported_as_unavailable(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(side_effect=httpx.ConnectTimeout)

        result = await service.validate_contract("C1", "2")

        assert result.sucesso is False
        assert result.mensagem == UNAVAILABLE_MESSAGE

    @pytest.mark.asyncio
    async def test_connection_error_is_reported_as_unavailable(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(side_effect=httpx.ConnectError)

        result = await service.validate_contract("C1", "2")

        assert result.sucesso is False
        assert result.mensagem == UNAVAILABLE_MESSAGE

    @pytest.mark.asyncio
    async def test_malformed_success_body_is_internal_error(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(
            return_value=httpx.Response(200, text="<html>maintenance</html>")
        )

        result = await service.validate_contract("C1", "2")

        assert result.sucesso is False
        assert result.mensagem.startswith("internal error: ")

    @pytest.mark.asyncio
    async def test_missing_message_defaults_to_empty(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(
            return_value=httpx.Response(200, json={"sucesso": True, "mensagem": None})
        )

        result = await service.validate_contract("C1", "2")

        assert result.sucesso is True
        assert result.mensagem == ""


class TestCheckAndRegister:
    """Tests for same-day check and registration calls."""

    @pytest.mark.asyncio
    async def test_check_sends_all_params(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        route = partner.get("/check-acionamento").mock(
            return_value=httpx.Response(
                200,
                json={"sucesso": False, "mensagem": "Cliente ja acionado hoje"},
            )
        )

        result = await service.check_acionamento("C1", "5511912345678", "3")

        assert result.sucesso is False
        assert result.mensagem == "Cliente ja acionado hoje"
        params = route.calls.last.request.url.params
        assert params["contrato"] == "C1"
        assert params["telefone"] == "11912345678"
        assert params["segmento"] == "3"

    @pytest.mark.asyncio
    async def test_register_posts_json_body(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        route = partner.post("/register-acionamento").mock(return_value=_ok("Registrado"))

        result = await service.register_acionamento("C1", "+55 (11) 91234-5678", "3")

        assert result.sucesso is True
        request = route.calls.last.request
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "telefone": "11912345678",
            "contrato": "C1",
            "segmento": "3",
        }


class TestCanContact:
    """Tests for the composite can-contact decision."""

    @pytest.mark.asyncio
    async def test_allowed_when_both_checks_pass(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        validate = partner.get("/validate-contract").mock(return_value=_ok())
        check = partner.get("/check-acionamento").mock(return_value=_ok())
        register = partner.post("/register-acionamento").mock(return_value=_ok())

        result = await service.can_contact("C1", "5511912345678", "2")

        assert result.allowed is True
        assert result.reason == ALLOWED_REASON
        assert validate.call_count == 1
        assert check.call_count == 1
        assert register.call_count == 0
        assert [call.request.url.path for call in partner.calls] == [
            "/api/validate-contract",
            "/api/check-acionamento",
        ]

    @pytest.mark.asyncio
    async def test_invalid_contract_skips_check(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(
            return_value=httpx.Response(
                200,
                json={"sucesso": False, "mensagem": "Contrato invalido"},
            )
        )
        check = partner.get("/check-acionamento").mock(return_value=_ok())

        result = await service.can_contact("C1", "5511912345678", "2")

        assert result.allowed is False
        assert result.reason == "Contrato invalido"
        assert check.call_count == 0

    @pytest.mark.asyncio
    async def test_already_contacted_today(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(return_value=_ok())
        partner.get("/check-acionamento").mock(
            return_value=httpx.Response(
                200,
                json={"sucesso": False, "mensagem": "Cliente ja acionado hoje"},
            )
        )

        result = await service.can_contact("C1", "5511912345678", "2")

        assert result.allowed is False
        assert result.reason == "Cliente ja acionado hoje"

    @pytest.mark.asyncio
    async def test_partner_outage_blocks_contact(
        self,
        service: CPCValidationService,
        partner: respx.MockRouter,
    ) -> None:
        partner.get("/validate-contract").mock(side_effect=httpx.ReadTimeout)
        check = partner.get("/check-acionamento").mock(return_value=_ok())

        result = await service.can_contact("C1", "5511912345678", "2")

        assert result.allowed is False
        assert result.reason == UNAVAILABLE_MESSAGE
        assert check.call_count == 0


class TestDisabled:
    """Tests for the disabled integration."""

    @pytest.mark.asyncio
    async def test_flag_off_short_circuits_every_call(
        self,
        disabled_cpc_config: CPCConfig,
        partner: respx.MockRouter,
    ) -> None:
        partner.route().mock(return_value=_ok())
        service = CPCValidationService(config=disabled_cpc_config)

        validation = await service.validate_contract("C1", "2")
        check = await service.check_acionamento("C1", "5511912345678", "2")
        register = await service.register_acionamento("C1", "5511912345678", "2")
        decision = await service.can_contact("C1", "5511912345678", "2")

        assert service.enabled is False
        for response in (validation, check, register):
            assert response.sucesso is True
            assert response.mensagem == DISABLED_MESSAGE
        assert decision.allowed is True
        assert decision.reason == DISABLED_MESSAGE
        assert partner.calls.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_url_disables_even_when_flag_on(
        self,
        partner: respx.MockRouter,
    ) -> None:
        partner.route().mock(return_value=_ok())
        service = CPCValidationService(config=CPCConfig(url="", enabled=True))

        result = await service.can_contact("C1", "5511912345678", "2")

        assert service.enabled is False
        assert result.allowed is True
        assert partner.calls.call_count == 0


class TestHttpClient:
    """Tests for HTTP client handling."""

    @pytest.mark.asyncio
    async def test_unexpected_client_error_is_internal_error(self, cpc_config: CPCConfig) -> None:
        client = AsyncMock(spec=httpx.AsyncClient)
        client.request.side_effect = httpx.UnsupportedProtocol("Request URL is missing a scheme")
        service = CPCValidationService(config=cpc_config, http_client=client)

        result = await service.register_acionamento("C1", "5511912345678", "2")

        assert result.sucesso is False
        assert result.mensagem == "internal error: Request URL is missing a scheme"

    @pytest.mark.asyncio
    async def test_request_uses_fixed_timeout(self, cpc_config: CPCConfig) -> None:
        client = AsyncMock(spec=httpx.AsyncClient)
        client.request.return_value = _ok()
        service = CPCValidationService(config=cpc_config, http_client=client)

        await service.validate_contract("C1", "2")

        _, kwargs = client.request.call_args
        assert kwargs["timeout"] == CPC_TIMEOUT_SECONDS
        assert isinstance(kwargs["auth"], httpx.BasicAuth)
        assert "headers" not in kwargs
        assert kwargs["json"] is None

    @pytest.mark.asyncio
    async def test_trailing_slash_in_base_url_is_ignored(self, cpc_config: CPCConfig) -> None:
        client = AsyncMock(spec=httpx.AsyncClient)
        client.request.return_value = _ok()
        config = cpc_config.model_copy(update={"url": f"{cpc_config.base_url}/"})
        service = CPCValidationService(config=config, http_client=client)

        await service.register_acionamento("C1", "5511912345678", "2")

        args, _ = client.request.call_args
        assert args == ("POST", f"{cpc_config.base_url}/register-acionamento")

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self, cpc_config: CPCConfig) -> None:
        client = AsyncMock(spec=httpx.AsyncClient)
        service = CPCValidationService(config=cpc_config, http_client=client)

        await service.aclose()

        client.aclose.assert_not_awaited()
