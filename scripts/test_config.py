import sys
from pathlib import Path

import numpy as np
import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from walkgen.config import GaitConfig
from walkgen.errors import ConfigurationError, WalkgenError


def test_defaults_are_valid():
    config = GaitConfig()
    config.validate()
    assert config.switch_ratio == 0.2
    assert not config.pause_active
    assert config.nominal_swing_time == pytest.approx(0.64)
    assert config.max_switch_time == pytest.approx(0.21)


def test_constructor_validates():
    with pytest.raises(ConfigurationError):
        GaitConfig(switch_ratio=0.0)
    with pytest.raises(ConfigurationError):
        GaitConfig(left_stance_zmp=[0.0, 0.0, 0.0])


@pytest.mark.parametrize("setter, args, field", [
    ("set_switch_ratio", (1.5,), "switch_ratio"),
    ("set_terminal_half_switch_time", (-0.1,), "terminal_half_switch_time"),
    ("set_step_height", (-0.02,), "step_height"),
    ("set_foot_apex_time", (0.0,), "apex_ratio"),
    ("set_pause_conditions", (0.5, 0.8), "max_step_time"),
    ("set_com_height_settings", (0.5, -0.6), "com_height"),
    ("set_stance_zmp_delta", ([np.nan, 0.0],), "left_stance_zmp"),
])
def test_setters_raise_without_mutating(setter, args, field):
    config = GaitConfig()
    before = np.copy(getattr(config, field))
    with pytest.raises(ConfigurationError):
        getattr(config, setter)(*args)
    np.testing.assert_array_equal(getattr(config, field), before)
    assert not config.pause_active


def test_errors_are_value_errors():
    assert issubclass(ConfigurationError, WalkgenError)
    assert issubclass(WalkgenError, ValueError)


def test_right_offsets_are_mirrored_by_default():
    config = GaitConfig()
    config.set_stance_zmp_delta([0.01, 0.02])
    config.set_initial_switch_zmp_delta([0.03, -0.01])
    np.testing.assert_array_equal(config.stance_zmp("right"), [0.01, -0.02])
    np.testing.assert_array_equal(config.switch_zmp("right"), [0.03, 0.01])

    config.set_stance_zmp_delta([0.01, 0.02], [0.0, 0.0])
    np.testing.assert_array_equal(config.stance_zmp("right"), [0.0, 0.0])


def test_pause_conditions():
    config = GaitConfig()
    config.set_pause_conditions(1.2, 1.0)
    assert config.pause_active
    assert config.max_swing_time == pytest.approx(0.96)
    config.disable_pause()
    assert not config.pause_active


def main():
    config = GaitConfig()
    config.set_stance_zmp_delta([0.01, 0.02])
    print(config)


if __name__ == "__main__":
    main()
