"""
Tests for the configuration management system.
"""

import os
import tempfile
import yaml
import pytest
from unittest.mock import patch

from adaptive_engine.src.domain.models import AdaptationPriority, ResourceThresholds
from adaptive_engine.src.framework.configuration import (
    AdaptiveEngineConfiguration,
    ConfigurationBuilder,
    ConfigurationValidationError,
    ConfigurationValidator,
    DictConfigurationSource,
    EngineConfiguration,
    EngineSettings,
    EnvironmentConfigurationSource,
    EvaluatorConfiguration,
    LoggingConfiguration,
    OrchestratorConfiguration,
    ResourceThresholdConfiguration,
    YAMLConfigurationSource,
    load_configuration_from_file,
    load_default_configuration
)
from adaptive_engine.src.infrastructure.exceptions import ConfigurationError


def write_yaml(data) -> str:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(data, f)
        return f.name


class TestConfigurationModels:
    """Test configuration data models."""

    def test_defaults(self):
        """Test default values of the root configuration."""
        config = AdaptiveEngineConfiguration()

        assert config.engine.evaluation_interval_seconds == 30.0
        assert config.engine.max_pending_triggers == 1000
        assert config.orchestrator.selection_mode == "single_winner"
        assert config.evaluator.window_size == 10
        assert config.evaluator.expected_improvement_baseline == 0.1
        assert config.thresholds.cpu == 0.90

    def test_immediate_priority_level(self):
        """Test the configured immediate priority maps onto the priority enum."""
        assert EngineConfiguration().immediate_priority_level == AdaptationPriority.HIGH
        assert EngineConfiguration(immediate_priority="CRITICAL").immediate_priority_level == \
            AdaptationPriority.CRITICAL

    def test_unknown_strategy_rejected(self):
        """Test enabling a strategy that does not exist."""
        with pytest.raises(ValueError, match="Unknown strategies: caching"):
            EngineConfiguration(enabled_strategies=["resource", "caching"])

    def test_invalid_selection_mode(self):
        """Test orchestrator selection mode validation."""
        with pytest.raises(ValueError):
            OrchestratorConfiguration(selection_mode="random")

    def test_evaluator_bounds(self):
        """Test evaluator window and baseline bounds."""
        with pytest.raises(ValueError):
            EvaluatorConfiguration(window_size=0)
        with pytest.raises(ValueError):
            EvaluatorConfiguration(expected_improvement_baseline=0.0)

    def test_thresholds_convert_to_domain_object(self):
        """Test threshold configuration produces domain thresholds."""
        thresholds = ResourceThresholdConfiguration(cpu=0.7, network=0.5).to_thresholds()
        assert thresholds == ResourceThresholds(cpu=0.7, memory=0.85, disk=0.90, network=0.5)

    def test_threshold_out_of_range(self):
        with pytest.raises(ValueError):
            ResourceThresholdConfiguration(memory=1.2)

    def test_logging_configuration_file_output_requires_path(self):
        """Test file logging without a path."""
        with pytest.raises(ValueError, match="file_path is required"):
            LoggingConfiguration(output="file")


class TestConfigurationSources:
    """Test configuration sources."""

    def test_yaml_source_valid_file(self):
        """Test YAML source with valid file."""
        config_data = {'evaluator': {'window_size': 20}, 'thresholds': {'cpu': 0.75}}
        temp_file = write_yaml(config_data)

        try:
            source = YAMLConfigurationSource(temp_file)
            assert source.load() == config_data
            assert source.get_priority() == 100
        finally:
            os.unlink(temp_file)

    def test_yaml_source_missing_file(self):
        """Test YAML source with missing file."""
        source = YAMLConfigurationSource("/nonexistent/engine.yaml")

        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            source.load()

    def test_yaml_source_invalid_yaml(self):
        """Test YAML source with invalid YAML."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("invalid: yaml: content: [")
            temp_file = f.name

        try:
            source = YAMLConfigurationSource(temp_file)
            with pytest.raises(ConfigurationError, match="Invalid YAML"):
                source.load()
        finally:
            os.unlink(temp_file)

    def test_yaml_source_requires_mapping(self):
        temp_file = write_yaml(["not", "a", "mapping"])

        try:
            with pytest.raises(ConfigurationError, match="must contain a mapping"):
                YAMLConfigurationSource(temp_file).load()
        finally:
            os.unlink(temp_file)

    def test_empty_yaml_file_is_empty_config(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            temp_file = f.name

        try:
            assert YAMLConfigurationSource(temp_file).load() == {}
        finally:
            os.unlink(temp_file)

    def test_environment_source_nested_keys(self):
        """Test environment variables map onto nested sections."""
        with patch.dict(os.environ, {
            'AE_TEST_EVALUATOR__WINDOW_SIZE': '20',
            'AE_TEST_ORCHESTRATOR__RECORD_HISTORY': 'false',
            'AE_TEST_THRESHOLDS__CPU': '0.75',
        }):
            config = EnvironmentConfigurationSource("AE_TEST_").load()

        assert config['evaluator']['window_size'] == 20
        assert config['orchestrator']['record_history'] is False
        assert config['thresholds']['cpu'] == 0.75

    def test_environment_source_list_parsing(self):
        """Test comma separated values become lists."""
        environ = {'ADAPTIVE_ENGINE_ENGINE__ENABLED_STRATEGIES': 'resource, performance'}

        config = EnvironmentConfigurationSource(environ=environ).load()

        assert config['engine']['enabled_strategies'] == ['resource', 'performance']

    def test_environment_source_ignores_other_prefixes(self):
        environ = {'OTHER_EVALUATOR__WINDOW_SIZE': '5', 'ADAPTIVE_ENGINE_LOGGING__LEVEL': 'DEBUG'}

        config = EnvironmentConfigurationSource(environ=environ).load()

        assert config == {'logging': {'level': 'DEBUG'}}

    def test_dict_source_returns_copy(self):
        data = {'engine': {'max_pending_triggers': 5}}
        source = DictConfigurationSource(data)

        source.load()['extra'] = True

        assert 'extra' not in data
        assert source.get_priority() == 50


class TestConfigurationValidation:
    """Test configuration validation."""

    def test_validation_valid_config(self):
        """Test validation with valid configuration."""
        warnings = ConfigurationValidator.validate_configuration({
            'engine': {'evaluation_interval_seconds': 5},
            'evaluator': {'window_size': 20},
        })
        assert warnings == []

    def test_validation_invalid_config(self):
        """Test validation errors carry their location."""
        with pytest.raises(ConfigurationValidationError) as exc_info:
            ConfigurationValidator.validate_configuration({
                'evaluator': {'window_size': -1},
                'orchestrator': {'selection_mode': 'random'},
            })

        locations = [error['loc'] for error in exc_info.value.validation_errors]
        assert ['evaluator', 'window_size'] in locations
        assert ['orchestrator', 'selection_mode'] in locations
        assert "evaluator -> window_size" in exc_info.value.get_detailed_message()

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigurationValidationError) as exc_info:
            ConfigurationValidator.validate_configuration({'engine': 'fast'})

        assert exc_info.value.validation_errors[0]['loc'] == ['engine']

    def test_validation_unknown_keys(self):
        """Test unknown sections and fields produce warnings."""
        warnings = ConfigurationValidator.validate_configuration({
            'engine': {'turbo': True},
            'unknown_key': 'value',
        })

        assert "Unknown configuration key: engine.turbo" in warnings
        assert "Unknown configuration key: unknown_key" in warnings


class TestEngineSettings:
    """Test merged settings."""

    def test_default_configuration(self):
        """Test settings without sources use defaults."""
        settings = EngineSettings()

        assert settings.config == AdaptiveEngineConfiguration()
        assert settings.get_raw_config() == {}

    def test_configuration_precedence(self):
        """Test higher priority sources override individual keys."""
        temp_file = write_yaml({'evaluator': {'window_size': 20, 'lookback_hours': 12}})
        environ = {'ADAPTIVE_ENGINE_EVALUATOR__WINDOW_SIZE': '30'}

        try:
            settings = (ConfigurationBuilder()
                        .add_dict_source({'evaluator': {'window_size': 5, 'trend_interval_minutes': 15}})
                        .add_yaml_source(temp_file)
                        .add_environment_source(environ=environ)
                        .build())
        finally:
            os.unlink(temp_file)

        evaluator = settings.config.evaluator
        assert evaluator.window_size == 30
        assert evaluator.lookback_hours == 12
        assert evaluator.trend_interval_minutes == 15

    def test_warnings_are_kept(self):
        settings = EngineSettings([DictConfigurationSource({'mystery': 1})])
        assert settings.warnings == ["Unknown configuration key: mystery"]

    def test_invalid_source_raises(self):
        with pytest.raises(ConfigurationValidationError):
            EngineSettings([DictConfigurationSource({'engine': {'max_pending_triggers': 0}})])

    def test_configuration_reload(self):
        """Test reload picks up changed sources and notifies callbacks."""
        data = {'engine': {'max_pending_triggers': 10}}
        settings = EngineSettings([DictConfigurationSource(data)])
        seen = []
        settings.add_reload_callback(lambda config: seen.append(config.engine.max_pending_triggers))

        data['engine'] = {'max_pending_triggers': 20}
        settings.reload_configuration()

        assert settings.config.engine.max_pending_triggers == 20
        assert seen == [20]

    def test_failed_reload_keeps_previous_configuration(self):
        data = {'engine': {'max_pending_triggers': 10}}
        settings = EngineSettings([DictConfigurationSource(data)])

        data['engine'] = {'max_pending_triggers': -5}
        with pytest.raises(ConfigurationValidationError):
            settings.reload_configuration()

        assert settings.config.engine.max_pending_triggers == 10

    def test_failing_callback_does_not_block_others(self):
        settings = EngineSettings([DictConfigurationSource({})])
        seen = []

        def broken(config):
            raise RuntimeError("callback failed")

        settings.add_reload_callback(broken)
        settings.add_reload_callback(lambda config: seen.append(config))
        settings.reload_configuration()

        assert len(seen) == 1

    def test_remove_reload_callback(self):
        settings = EngineSettings()
        seen = []
        callback = seen.append
        settings.add_reload_callback(callback)
        settings.remove_reload_callback(callback)
        settings.add_source(DictConfigurationSource({}))

        settings.reload_configuration()

        assert seen == []


class TestUtilityFunctions:
    """Test utility functions."""

    def test_load_configuration_from_file(self):
        """Test loading configuration from a file."""
        temp_file = write_yaml({'orchestrator': {'selection_mode': 'fan_out'}})

        try:
            settings = load_configuration_from_file(temp_file)
            assert settings.config.orchestrator.selection_mode == "fan_out"
        finally:
            os.unlink(temp_file)

    def test_load_default_configuration(self):
        """Test loading default configuration."""
        with patch.dict(os.environ, {'ADAPTIVE_ENGINE_ENGINE__IMMEDIATE_PRIORITY': 'CRITICAL'}):
            settings = load_default_configuration()

        assert settings.config.engine.immediate_priority == "CRITICAL"
