"""Clock error models and local/wall-clock time mapping"""

from .error_model import (
    ConstantError,
    PiecewiseLinearError,
    PerNodeErrors,
    make_error,
    error_at,
    initial_error,
)
from .time_mapper import local_to_realtime, realtime_to_local
from .monitors import (
    FrequencyChecker,
    TimeLimitStopper,
    check_freq_is_positive,
    sim_is_done,
)

__all__ = [
    'ConstantError',
    'PiecewiseLinearError',
    'PerNodeErrors',
    'make_error',
    'error_at',
    'initial_error',
    'local_to_realtime',
    'realtime_to_local',
    'FrequencyChecker',
    'TimeLimitStopper',
    'check_freq_is_positive',
    'sim_is_done',
]
