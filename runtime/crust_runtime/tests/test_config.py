"""
Test suite for RuntimeConfig
"""

import pytest
import sys
import os

# Add grandparent directory to path for imports (to find crust_runtime package)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from crust_runtime.config import RuntimeConfig, TICKS_PER_SECOND
from crust_runtime.errors import CrustError, E_VALUE_ERROR


class TestRuntimeConfig:
    """Test defaults, validation and conversions"""

    def test_defaults(self):
        config = RuntimeConfig()
        assert config.ticks_per_second == TICKS_PER_SECOND
        assert config.scheduling == "cursor"
        assert config.rearm_broadcasts is True
        assert config.rearm_conditions is False
        assert not config.replay

    def test_seconds_to_ticks(self):
        config = RuntimeConfig()
        assert config.seconds_to_ticks(1.0) == 60
        assert config.seconds_to_ticks(0.01) == 1
        assert config.seconds_to_ticks(-2.0) == 0

    def test_custom_tick_rate(self):
        assert RuntimeConfig(ticks_per_second=30).seconds_to_ticks(1.0) == 30

    @pytest.mark.parametrize("seconds", [float('inf'), float('-inf'), float('nan')])
    def test_non_finite_duration(self, seconds):
        with pytest.raises(CrustError) as excinfo:
            RuntimeConfig().seconds_to_ticks(seconds)
        assert excinfo.value.code == E_VALUE_ERROR

    def test_unknown_policy(self):
        with pytest.raises(CrustError) as excinfo:
            RuntimeConfig(scheduling="eager")
        assert excinfo.value.code == E_VALUE_ERROR

    def test_non_positive_tick_rate(self):
        with pytest.raises(CrustError):
            RuntimeConfig(ticks_per_second=0)

    def test_from_mapping(self):
        config = RuntimeConfig.from_mapping({'scheduling': 'replay', 'seed': 3})
        assert config.replay
        assert config.seed == 3

    def test_from_mapping_rejects_unknown_keys(self):
        with pytest.raises(CrustError) as excinfo:
            RuntimeConfig.from_mapping({'fps': 30})
        assert "fps" in excinfo.value.message


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
