"""Tests for configflow.binding"""

from dataclasses import dataclass, field, fields
from typing import List, Optional

import pytest

from configflow.binding import (
    FieldBinder,
    FieldMetadata,
    FieldSpec,
    dataclass_fields,
    instantiate,
    known_keys,
    setting,
)
from configflow.exceptions import ConfigurationError, FieldAssignmentError, ValidationError
from configflow.validators import ValidatorRegistry


@dataclass
class ServiceConfig:
    port: int = setting(cfg="port", env="APP_PORT", default="8080")
    name: str = setting(cfg="app.name", default="MyApp")
    debug: bool = setting(default="false")
    ratio: float = setting(cfg="ratio")
    tags: List[str] = setting(cfg="tags")
    _secret: str = setting(cfg="secret", initial="hidden")


@pytest.fixture
def binder():
    return FieldBinder(ValidatorRegistry())


class TestSetting:
    """Tests for the setting() field declaration helper"""

    def test_metadata_keys(self):
        """Test that annotations are stored as field metadata"""
        port = next(f for f in fields(ServiceConfig) if f.name == "port")
        assert port.metadata["cfg"] == "port"
        assert port.metadata["env"] == "APP_PORT"
        assert port.metadata["default"] == "8080"
        assert port.metadata["validate"] is None

    def test_initial_value(self):
        """Test that initial gives the attribute a dataclass default"""

        @dataclass
        class WithInitial:
            host: str = setting(cfg="host", initial="localhost")

        assert WithInitial().host == "localhost"

    def test_without_initial_is_keyword_only(self):
        """Test that fields without initial must be passed by keyword"""

        @dataclass
        class Plain:
            host: str = setting(cfg="host")
            port: int = 1

        with pytest.raises(TypeError):
            Plain()  # type: ignore[call-arg]
        assert Plain(host="h").host == "h"


class TestFieldMetadata:
    """Tests for FieldMetadata"""

    def test_lookup_order(self):
        """Test that the env key (lower-cased) is tried before the config key"""
        meta = FieldMetadata(config_key="port", env_key="APP_PORT")
        assert meta.lookup_keys() == ["app_port", "port"]

    def test_empty_strings_mean_absent(self):
        """Test that empty annotations are treated as missing"""
        meta = FieldMetadata.from_metadata({"cfg": "", "env": "", "validate": "", "default": ""})
        assert meta.lookup_keys() == []
        assert meta.validate is None
        assert not meta.has_default

    def test_non_string_default(self):
        """Test that non-string defaults count as defaults"""
        assert FieldMetadata(default=0).has_default


class TestIntrospection:
    """Tests for dataclass field discovery"""

    def test_dataclass_fields_skip_private(self):
        """Test that private fields are not bindable"""
        names = [spec.name for spec in dataclass_fields(ServiceConfig)]
        assert names == ["port", "name", "debug", "ratio", "tags"]

    def test_kinds(self):
        """Test kind detection, with unsupported kinds as None"""
        kinds = {spec.name: spec.kind for spec in dataclass_fields(ServiceConfig)}
        assert kinds == {"port": int, "name": str, "debug": bool, "ratio": float, "tags": None}

    def test_instantiate_uses_zero_values(self):
        """Test that fields without defaults start at zero values"""
        config = instantiate(ServiceConfig)
        assert config.port == 0
        assert config.name == ""
        assert config.debug is False
        assert config.ratio == 0.0
        assert config.tags is None
        assert config._secret == "hidden"

    def test_known_keys(self):
        """Test the set of keys fields bind from"""
        assert known_keys(dataclass_fields(ServiceConfig)) == {
            "port",
            "app_port",
            "app.name",
            "ratio",
            "tags",
        }


class TestFieldBinder:
    """Tests for FieldBinder.bind"""

    def test_resolved_values_and_defaults(self, binder):
        """Test the value, default and zero-value paths together"""
        config = instantiate(ServiceConfig)
        assigned = binder.bind(config, {"port": 3000, "app.name": "TestApp"})

        assert config.port == 3000
        assert config.name == "TestApp"
        assert config.debug is False
        assert config.ratio == 0.0
        assert assigned == 3

    def test_env_key_before_config_key(self, binder):
        """Test that the env key wins when both keys are present"""
        config = instantiate(ServiceConfig)
        binder.bind(config, {"port": 3000, "app_port": 8080})
        assert config.port == 8080

    def test_none_value_is_unresolved(self, binder):
        """Test that a present None (YAML null) falls back to the default"""
        config = instantiate(ServiceConfig)
        binder.bind(config, {"port": None})
        assert config.port == 8080

    def test_unsupported_kind_is_left_unset(self, binder):
        """Test that list fields are skipped without error"""
        config = instantiate(ServiceConfig)
        binder.bind(config, {"tags": ["a", "b"]})
        assert config.tags is None

    def test_private_field_is_not_bound(self, binder):
        """Test that private fields keep their value"""
        config = instantiate(ServiceConfig)
        binder.bind(config, {"secret": "leaked"})
        assert config._secret == "hidden"

    def test_coercion_failure_names_field(self, binder):
        """Test that conversion errors are wrapped with the field name"""
        config = instantiate(ServiceConfig)
        with pytest.raises(FieldAssignmentError) as exc_info:
            binder.bind(config, {"port": "not-a-number"})

        assert exc_info.value.field == "port"
        assert "failed to set field port" in exc_info.value.message
        assert exc_info.value.__cause__ is not None

    def test_bad_default_raises(self, binder):
        """Test that an unconvertible default is reported as a default failure"""

        @dataclass
        class BadDefault:
            port: int = setting(default="eighty")

        with pytest.raises(FieldAssignmentError) as exc_info:
            binder.bind(instantiate(BadDefault), {})
        assert exc_info.value.details["default"] is True

    def test_partial_application_on_error(self, binder):
        """Test that fields before the failing one stay assigned"""

        @dataclass
        class Ordered:
            first: str = setting(cfg="first")
            second: int = setting(cfg="second")

        config = instantiate(Ordered)
        with pytest.raises(FieldAssignmentError):
            binder.bind(config, {"first": "set", "second": "bad"})
        assert config.first == "set"

    def test_validation_runs_on_resolved_values(self, binder):
        """Test that validate rules reject bad values"""

        @dataclass
        class Contact:
            email: str = setting(cfg="email", validate="required,email")

        with pytest.raises(ValidationError) as exc_info:
            binder.bind(instantiate(Contact), {"email": "invalid-email"})
        assert exc_info.value.rule == "email"
        assert exc_info.value.field == "email"

    def test_defaults_and_absent_values_are_not_validated(self, binder):
        """Test that only resolved values go through validation"""

        @dataclass
        class Limits:
            port: int = setting(cfg="port", validate="range:1000,9999", default="80")
            email: str = setting(cfg="email", validate="required,email")

        config = instantiate(Limits)
        binder.bind(config, {})
        assert config.port == 80
        assert config.email == ""

    def test_validation_disabled(self):
        """Test that validation can be switched off"""

        @dataclass
        class Contact:
            email: str = setting(cfg="email", validate="email")

        binder = FieldBinder(ValidatorRegistry(), validation_enabled=False)
        config = instantiate(Contact)
        binder.bind(config, {"email": "invalid-email"})
        assert config.email == "invalid-email"

    def test_optional_annotation(self, binder):
        """Test that Optional[int] fields bind as int"""

        @dataclass
        class Opt:
            workers: Optional[int] = setting(cfg="workers", initial=None)

        config = Opt()
        binder.bind(config, {"workers": "4"})
        assert config.workers == 4


class TestExplicitFieldSpecs:
    """Tests for binding through explicit descriptors"""

    def test_plain_object_with_setters(self, binder):
        """Test binding onto a dict through setters"""
        target: dict = {}
        specs = [
            FieldSpec("port", int, config_key="server.port", default="8080",
                      setter=lambda v: target.__setitem__("port", v)),
            FieldSpec("host", str, env_key="HOST",
                      setter=lambda v: target.__setitem__("host", v)),
        ]

        binder.bind(target, {"host": "example.org"}, specs)
        assert target == {"port": 8080, "host": "example.org"}

    def test_plain_object_with_setattr(self, binder):
        """Test that specs without setters assign attributes"""

        class Settings:
            pass

        target = Settings()
        binder.bind(target, {"debug": "true"}, [FieldSpec("debug", bool, config_key="debug")])
        assert target.debug is True

    def test_spec_with_unsupported_kind(self, binder):
        """Test that explicit unsupported kinds are skipped"""
        target: dict = {}
        spec = FieldSpec("hosts", list, config_key="hosts", setter=lambda v: target.update(hosts=v))
        binder.bind(target, {"hosts": ["a"]}, [spec])
        assert target == {}


class TestTargetChecks:
    """Tests for invalid targets"""

    def test_non_dataclass_without_specs(self, binder):
        """Test that plain objects need explicit fields"""
        with pytest.raises(ConfigurationError, match="dataclass instance"):
            binder.bind(object(), {})

    def test_dataclass_type_is_rejected(self, binder):
        """Test that the binder needs an instance"""
        with pytest.raises(ConfigurationError):
            binder.bind(ServiceConfig, {})

    def test_frozen_dataclass(self, binder):
        """Test that frozen dataclasses cannot be bound"""

        @dataclass(frozen=True)
        class Frozen:
            port: int = field(default=0, metadata={"cfg": "port"})

        with pytest.raises(ConfigurationError, match="frozen"):
            binder.bind(Frozen(), {"port": 1})
