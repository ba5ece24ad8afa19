"""Tests for the device authorization flow with mocked HTTP."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

import httpx
import pytest

from auth0_mcp.config import DeviceFlowConfig, OAuthConfig
from auth0_mcp.exceptions import (
    DeviceFlowCancelledError,
    DeviceFlowDeniedError,
    DeviceFlowError,
    DeviceFlowExpiredError,
)
from auth0_mcp.security.auth.device_flow import (
    DeviceCodeResponse,
    DeviceFlow,
    DeviceFlowState,
    request_authorization,
)
from auth0_mcp.security.credential_store import CredentialStore, KeychainSlot


def _response(status_code: int, body: dict) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


PENDING = _response(400, {"error": "authorization_pending"})


@pytest.fixture
def device_code_response_data() -> dict:
    """Sample Auth0 device code response."""
    return {
        "device_code": "device-code-123",
        "user_code": "HDFC-LQRT",
        "verification_uri": "https://login.example.com/activate",
        "verification_uri_complete": "https://login.example.com/activate?user_code=HDFC-LQRT",
        "expires_in": 900,
        "interval": 5,
    }


@pytest.fixture
def device_code(device_code_response_data: dict) -> DeviceCodeResponse:
    return DeviceCodeResponse.from_response(device_code_response_data)


class TestDeviceCodeResponse:
    def test_from_response_parses_all_fields(self, device_code_response_data: dict) -> None:
        response = DeviceCodeResponse.from_response(device_code_response_data)

        assert response.device_code == "device-code-123"
        assert response.user_code == "HDFC-LQRT"
        assert response.verification_uri_complete.endswith("user_code=HDFC-LQRT")
        assert response.interval == 5

    def test_missing_verification_uri_falls_back_to_complete(self) -> None:
        response = DeviceCodeResponse.from_response(
            {"device_code": "d", "user_code": "u", "verification_uri_complete": "https://x/activate?c=u"}
        )

        assert response.verification_uri == "https://x/activate?c=u"


class TestRequestDeviceCode:
    def test_posts_form_fields(self, oauth_config: OAuthConfig, device_code_response_data: dict) -> None:
        """Given scopes and an audience, both are sent with the client ID."""
        # Arrange
        config = oauth_config.model_copy(update={"audience": "https://*.tus.auth0.com/api/v2/"})
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.return_value = _response(200, device_code_response_data)
        flow = DeviceFlow(config, http_client=mock_client)

        # Act
        response = flow.request_device_code(["offline_access", "read:clients"])

        # Assert
        assert response.user_code == "HDFC-LQRT"
        assert flow.state is DeviceFlowState.CODE_REQUESTED
        url = mock_client.post.call_args.args[0]
        data = mock_client.post.call_args.kwargs["data"]
        assert url == "https://login.example.com/oauth/device/code"
        assert data == {
            "client_id": "test-client-id",
            "audience": "https://*.tus.auth0.com/api/v2/",
            "scope": "offline_access read:clients",
        }

    def test_omits_empty_scope_and_audience(self, oauth_config: OAuthConfig, device_code_response_data: dict) -> None:
        # Arrange
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.return_value = _response(200, device_code_response_data)

        # Act
        DeviceFlow(oauth_config, http_client=mock_client).request_device_code([])

        # Assert
        assert mock_client.post.call_args.kwargs["data"] == {"client_id": "test-client-id"}

    def test_raises_on_http_error(self, oauth_config: OAuthConfig) -> None:
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.side_effect = httpx.ConnectError("Connection failed")

        with pytest.raises(DeviceFlowError, match="HTTP error"):
            DeviceFlow(oauth_config, http_client=mock_client).request_device_code()

    def test_raises_on_error_body(self, oauth_config: OAuthConfig) -> None:
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.return_value = _response(
            403, {"error": "unauthorized_client", "error_description": "Grant type not allowed"}
        )

        with pytest.raises(DeviceFlowError, match="Grant type not allowed"):
            DeviceFlow(oauth_config, http_client=mock_client).request_device_code()

    def test_raises_on_malformed_body(self, oauth_config: OAuthConfig) -> None:
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.return_value = _response(200, {"user_code": "ABC"})

        with pytest.raises(DeviceFlowError, match="Malformed"):
            DeviceFlow(oauth_config, http_client=mock_client).request_device_code()


class TestPollForToken:
    def test_pending_twice_then_success_sends_three_requests(
        self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse
    ) -> None:
        """Given pending, pending, success, exactly three token requests are made."""
        # Arrange
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.side_effect = [
            PENDING,
            PENDING,
            _response(200, {"access_token": "access-token-123", "refresh_token": "rt", "expires_in": 86400}),
        ]
        flow = DeviceFlow(oauth_config, http_client=mock_client)

        # Act
        with patch("time.sleep") as mock_sleep:
            token_set = flow.poll_for_token(device_code)

        # Assert
        assert token_set.access_token == "access-token-123"
        assert token_set.refresh_token == "rt"
        assert mock_client.post.call_count == 3
        assert mock_sleep.call_count == 2
        assert flow.state is DeviceFlowState.AUTHORIZED
        data = mock_client.post.call_args.kwargs["data"]
        assert data == {
            "client_id": "test-client-id",
            "device_code": "device-code-123",
            "grant_type": "urn:ietf:params:oauth:grant-type:device_code",
        }

    def test_access_denied_stops_after_one_request(
        self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse
    ) -> None:
        # Arrange
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.return_value = _response(403, {"error": "access_denied", "error_description": "User denied"})
        flow = DeviceFlow(oauth_config, http_client=mock_client)

        # Act & Assert
        with patch("time.sleep") as mock_sleep, pytest.raises(DeviceFlowDeniedError):
            flow.poll_for_token(device_code)

        assert mock_client.post.call_count == 1
        mock_sleep.assert_not_called()
        assert flow.state is DeviceFlowState.DENIED

    def test_expired_token_raises_expired(self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse) -> None:
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.return_value = _response(400, {"error": "expired_token"})

        with patch("time.sleep"), pytest.raises(DeviceFlowExpiredError):
            DeviceFlow(oauth_config, http_client=mock_client).poll_for_token(device_code)

    def test_unknown_error_raises(self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse) -> None:
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.return_value = _response(400, {"error": "invalid_grant", "error_description": "bad code"})

        with patch("time.sleep"), pytest.raises(DeviceFlowError, match="bad code"):
            DeviceFlow(oauth_config, http_client=mock_client).poll_for_token(device_code)

    def test_slow_down_increases_interval(self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse) -> None:
        """Given slow_down, the wait grows by five seconds."""
        # Arrange
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.side_effect = [
            _response(400, {"error": "slow_down"}),
            _response(200, {"access_token": "tok"}),
        ]

        # Act
        with patch("time.sleep") as mock_sleep:
            DeviceFlow(oauth_config, http_client=mock_client).poll_for_token(device_code)

        # Assert
        mock_sleep.assert_called_once_with(10)

    def test_network_error_is_retried(self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse) -> None:
        # Arrange
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.side_effect = [
            httpx.ReadTimeout("timed out"),
            _response(200, {"access_token": "tok"}),
        ]

        # Act
        with patch("time.sleep"):
            token_set = DeviceFlow(oauth_config, http_client=mock_client).poll_for_token(device_code)

        # Assert
        assert token_set.access_token == "tok"
        assert mock_client.post.call_count == 2

    def test_server_error_without_oauth_error_is_retried(
        self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse
    ) -> None:
        """Given a 503 HTML page from a proxy, polling continues."""
        # Arrange
        unavailable = MagicMock()
        unavailable.status_code = 503
        unavailable.json.side_effect = ValueError("not json")
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.side_effect = [unavailable, _response(200, {"access_token": "tok"})]
        flow = DeviceFlow(oauth_config, http_client=mock_client)

        # Act
        with patch("time.sleep"):
            token_set = flow.poll_for_token(device_code)

        # Assert
        assert token_set.access_token == "tok"
        assert mock_client.post.call_count == 2
        assert flow.state is DeviceFlowState.AUTHORIZED

    def test_cancel_event_stops_loop(self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse) -> None:
        """Given the cancel event is set, polling stops between iterations."""
        # Arrange
        cancel = threading.Event()
        mock_client = MagicMock(spec=httpx.Client)

        def post(*args: object, **kwargs: object) -> MagicMock:
            cancel.set()
            return PENDING

        mock_client.post.side_effect = post

        # Act & Assert
        with pytest.raises(DeviceFlowCancelledError):
            DeviceFlow(oauth_config, http_client=mock_client).poll_for_token(device_code, cancel=cancel)

        assert mock_client.post.call_count == 1

    def test_deadline_raises_expired(self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse) -> None:
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.return_value = PENDING

        with pytest.raises(DeviceFlowExpiredError, match="timed out"):
            DeviceFlow(oauth_config, http_client=mock_client).poll_for_token(device_code, timeout=0)

        mock_client.post.assert_not_called()

    def test_on_poll_called_per_request(self, oauth_config: OAuthConfig, device_code: DeviceCodeResponse) -> None:
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.side_effect = [PENDING, _response(200, {"access_token": "tok"})]
        on_poll = MagicMock()

        with patch("time.sleep"):
            DeviceFlow(oauth_config, http_client=mock_client).poll_for_token(device_code, on_poll=on_poll)

        assert on_poll.call_count == 2


class TestRequestAuthorization:
    def test_stores_credentials_with_domain_from_token(
        self,
        oauth_config: OAuthConfig,
        store: CredentialStore,
        device_code_response_data: dict,
        token_factory,
    ) -> None:
        """Given a successful flow, the tenant is read from the token audience."""
        # Arrange
        token = token_factory("dev-abc123.eu.auth0.com")
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.side_effect = [
            _response(200, device_code_response_data),
            _response(200, {"access_token": token, "refresh_token": "rt-1", "expires_in": 3600}),
        ]
        display = MagicMock()

        # Act
        creds = request_authorization(
            oauth_config,
            store,
            display,
            scopes=["read:clients"],
            flow_config=DeviceFlowConfig(poll_interval_seconds=1),
            http_client=mock_client,
        )

        # Assert
        display.assert_called_once_with(
            "HDFC-LQRT",
            "https://login.example.com/activate",
            "https://login.example.com/activate?user_code=HDFC-LQRT",
        )
        assert creds.domain == "dev-abc123.eu.auth0.com"
        assert store.get(KeychainSlot.ACCESS_TOKEN) == token
        assert store.get(KeychainSlot.DOMAIN) == "dev-abc123.eu.auth0.com"
        assert store.get(KeychainSlot.REFRESH_TOKEN) == "rt-1"
        assert store.get_expires_at() == creds.expires_at

    def test_token_without_management_audience_stores_nothing(
        self, oauth_config: OAuthConfig, store: CredentialStore, device_code_response_data: dict
    ) -> None:
        # Arrange
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.post.side_effect = [
            _response(200, device_code_response_data),
            _response(200, {"access_token": "not-a-jwt", "expires_in": 3600}),
        ]

        # Act & Assert
        with pytest.raises(DeviceFlowError, match="tenant"):
            request_authorization(oauth_config, store, MagicMock(), http_client=mock_client)

        assert store.load_credentials() is None
