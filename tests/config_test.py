from pathlib import Path

import pytest
import yaml

from gatecheck.core.config import DEFAULT_EPSS_URL
from gatecheck.core.config import get_settings
from gatecheck.core.config import reset_settings
from gatecheck.core.container import Container
from gatecheck.core.errors import BundleValidationError
from gatecheck.core.errors import DecodeTimeoutError
from gatecheck.core.errors import EncodingError
from gatecheck.core.errors import exit_code_for
from gatecheck.core.errors import FileAccessError
from gatecheck.core.errors import KEVValidationError
from gatecheck.core.errors import UserInputError
from gatecheck.core.logging import LoggingConfig
from gatecheck.models.policy import default_config
from gatecheck.models.policy import PolicyConfig
from gatecheck.services.policy import load_policy_config


class TestSettings:
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv('GATECHECK_KEV_URL', 'https://mirror.example/kev.json')
        monkeypatch.setenv('GATECHECK_DECODE_TIMEOUT', '0.5')
        monkeypatch.setenv('GATECHECK_CACHE_DIR', '/tmp/gatecheck-cache')
        reset_settings()
        try:
            settings = get_settings()
            assert settings.feeds.kev_url == 'https://mirror.example/kev.json'
            assert settings.feeds.epss_url == DEFAULT_EPSS_URL
            assert settings.decode_timeout == 0.5
            assert settings.cache.http_cache_path == Path('/tmp/gatecheck-cache/http_cache')
        finally:
            reset_settings()

    def test_settings_are_cached(self, fresh_container):
        assert get_settings() is get_settings()

    def test_rows_name_their_variables(self, fresh_container):
        variables = [row[1] for row in get_settings().as_rows()]
        assert 'GATECHECK_DECODE_TIMEOUT' in variables
        assert all(v.startswith('GATECHECK_') for v in variables)

    @pytest.mark.parametrize('verbose, silent, level', [
        (False, False, 'INFO'),
        (True, False, 'DEBUG'),
        (False, True, 'WARNING'),
        (True, True, 'DEBUG'),
    ])
    def test_logging_flags(self, monkeypatch, verbose, silent, level):
        monkeypatch.delenv('ENV', raising=False)
        config = LoggingConfig.from_flags(verbose=verbose, silent=silent)
        assert config.level == level
        assert config.json is False

    def test_production_logs_json(self, monkeypatch):
        monkeypatch.setenv('ENV', 'production')
        assert LoggingConfig.from_flags().json is True


class TestContainer:
    def test_singleton(self, fresh_container):
        assert Container.get_instance() is Container.get_instance()

    def test_file_and_fetch_are_exclusive(self, fresh_container, tmp_path):
        container = Container.get_instance()
        with pytest.raises(UserInputError):
            container.get_kev_service(tmp_path / 'kev.json', fetch=True)
        with pytest.raises(UserInputError):
            container.get_epss_service(tmp_path / 'epss.csv', fetch=True)

    def test_no_feeds_requested(self, fresh_container):
        container = Container.get_instance()
        assert container.get_kev_service() is None
        assert container.get_epss_service() is None

    def test_validation_service_uses_settings_timeout(self, fresh_container, monkeypatch):
        monkeypatch.setenv('GATECHECK_DECODE_TIMEOUT', '7')
        reset_settings()
        Container.reset()
        service = Container.get_instance().create_validation_service()
        assert service.timeout == 7.0
        assert Container.get_instance().create_validation_service(timeout=1).timeout == 1


class TestPolicyFile:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileAccessError):
            load_policy_config(tmp_path / 'gatecheck.yaml')

    def test_invalid_file(self, tmp_path):
        path = tmp_path / 'gatecheck.yaml'
        path.write_text('version: "1"\ngrype: [1, 2\n')
        with pytest.raises(EncodingError):
            load_policy_config(path)

    def test_load(self, tmp_path, config_bytes):
        path = tmp_path / 'gatecheck.yaml'
        path.write_bytes(config_bytes)
        config = load_policy_config(path)
        assert config.gitleaks.secrets_allowed is False
        assert config.required() == []

    def test_default_config_round_trips(self):
        document = yaml.safe_dump(default_config().to_document(), sort_keys=False)
        loaded = PolicyConfig.model_validate(yaml.safe_load(document))
        assert loaded.model_dump() == default_config().model_dump()
        assert document.startswith("version: '1'")
        assert 'secretsAllowed: true' in document
        assert 'epssDenyThreshold: 1.0' in document

    def test_numeric_version_is_accepted(self):
        assert PolicyConfig.model_validate({'version': 1}).version == '1'


@pytest.mark.parametrize('error, code', [
    (None, 0),
    (KEVValidationError('N/A', []), 1),
    (BundleValidationError({}, ['grype']), 1),
    (FileAccessError('nope'), 2),
    (DecodeTimeoutError('late'), -1),
    (UserInputError('both'), -1),
    (RuntimeError('boom'), -1),
])
def test_exit_codes(error, code):
    assert exit_code_for(error) == code
