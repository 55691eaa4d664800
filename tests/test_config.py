"""Environment selection and id resolution."""

from storepay.common.config import SANDBOX_APPLICATION_ID, SANDBOX_LOCATION_ID, resolve_square_config
from storepay.services.gateway.service import PaymentGatewayService


def test_explicit_square_environment_wins_over_node_env(settings_factory):
    """SQUARE_ENVIRONMENT beats NODE_ENV."""

    cfg = settings_factory(square_environment="sandbox", node_env="production")
    assert resolve_square_config(cfg).environment == "sandbox"


def test_node_env_production_used_when_square_environment_unset(settings_factory):
    """NODE_ENV=production selects production with no default ids."""

    cfg = settings_factory(square_environment="", node_env="production")
    square = resolve_square_config(cfg)
    assert square.environment == "production"
    assert square.base_url == "https://connect.squareup.com"
    assert square.js_url == "https://web.squarecdn.com/v1/square.js"
    assert square.application_id == ""
    assert square.location_id == ""


def test_defaults_to_sandbox(settings_factory):
    """With nothing set the sandbox and its shared ids are used."""

    square = resolve_square_config(settings_factory(square_environment="", node_env=""))
    assert square.environment == "sandbox"
    assert square.base_url == "https://connect.squareupsandbox.com"
    assert square.application_id == SANDBOX_APPLICATION_ID
    assert square.location_id == SANDBOX_LOCATION_ID


def test_application_id_precedence(settings_factory):
    """SQUARE_APPLICATION_ID beats the legacy APPLICATION_ID."""

    cfg = settings_factory(square_application_id="sq-app", application_id="legacy-app")
    assert resolve_square_config(cfg).application_id == "sq-app"
    cfg = settings_factory(square_application_id="", application_id="legacy-app")
    assert resolve_square_config(cfg).application_id == "legacy-app"


def test_location_override(settings_factory):
    """LOCATION_ID overrides the location in any environment."""

    cfg = settings_factory(square_environment="production", location_id="LOC-PROD")
    assert resolve_square_config(cfg).location_id == "LOC-PROD"


def test_client_config_shape(settings_factory):
    """Client config carries exactly what Square.js needs."""

    service = PaymentGatewayService(settings_factory())
    assert service.client_config() == {
        "squareEnvironment": "sandbox",
        "applicationId": SANDBOX_APPLICATION_ID,
        "locationId": SANDBOX_LOCATION_ID,
        "squareJsUrl": "https://sandbox.web.squarecdn.com/v1/square.js",
    }
