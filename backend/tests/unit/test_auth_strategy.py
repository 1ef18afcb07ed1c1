import pytest
from unittest.mock import Mock
from backend.src.services.auth import AuthService, AuthError, StaticTokenValidator, JWTValidator
from backend.src.services.config import AppConfig

# Mock config
@pytest.fixture
def mock_config():
    config = Mock(spec=AppConfig)
    config.enable_local_mode = True
    config.local_dev_token = "local-test"
    config.local_dev_user_id = "local-dev"
    config.jwt_secret_key = "a-secure-secret-value-123"
    return config

def test_static_token_validator():
    validator = StaticTokenValidator("my-secret", "test-user")

    # Valid token
    payload = validator.validate("my-secret")
    assert payload is not None
    assert payload.sub == "test-user"

    # Invalid token
    assert validator.validate("wrong") is None
    assert validator.validate("") is None

def test_static_token_validator_disabled_without_token():
    validator = StaticTokenValidator(None, "test-user")
    assert validator.validate("") is None
    assert validator.validate("anything") is None

def test_auth_service_strategies(mock_config):
    auth = AuthService(config=mock_config)

    # Local Dev
    payload = auth.validate_jwt("local-test")
    assert payload.sub == "local-dev"

    # Signed JWT
    payload = auth.validate_jwt(auth.create_jwt("user-42"))
    assert payload.sub == "user-42"

    # Invalid
    with pytest.raises(AuthError, match="Invalid authentication credentials"):
        auth.validate_jwt("invalid-token")

def test_auth_service_priority(mock_config):
    # Order is Local -> JWT
    auth = AuthService(config=mock_config)
    assert isinstance(auth.validators[0], StaticTokenValidator)
    assert auth.validators[0].static_token == "local-test"
    assert isinstance(auth.validators[1], JWTValidator)

def test_local_mode_off_drops_static_token(mock_config):
    mock_config.enable_local_mode = False
    auth = AuthService(config=mock_config)

    assert len(auth.validators) == 1
    with pytest.raises(AuthError):
        auth.validate_jwt("local-test")
