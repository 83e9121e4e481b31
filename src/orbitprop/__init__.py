"""
orbitprop is a small two-body orbit propagation library built on an adaptive Dormand-Prince 5(4) integrator implemented in JAX.
"""

from .constants import (
    SECONDS_PER_DAY,
    AU,
    R_EARTH,
    GM_EARTH,
    GM_SUN,
    GM_SUN_ROUNDED,
    GM_MOON,
)

from .config import set_dtype, get_dtype

from .errors import (
    IntegrationError,
    InvalidConfig,
    SingularState,
    NonFiniteResult,
    StepSizeUnderflow,
    MaxStepsExceeded,
)

from .state import StateVector

from .dynamics import (
    DynamicsModel,
    TwoBodyDynamics,
    accel_point_mass,
)

from .integrators import (
    IntegrationConfig,
    IntegrationStats,
    IntegratorStatus,
    StepDecision,
    StepSizeController,
    TrialStep,
    compute_error_norm,
    dp54_trial_step,
)

from .trajectory import (
    Trajectory,
    TrajectoryRecorder,
    TrajectorySample,
)

from .propagator import (
    DormandPrinceIntegrator,
    propagate,
    propagate_batch,
)

from .orbits import (
    specific_energy,
    angular_momentum,
    semimajor_axis_from_state,
    orbital_period,
    orbital_period_from_state,
    anomaly_mean_to_eccentric,
    state_koe_to_cartesian,
)

__all__ = [
    # Constants
    "SECONDS_PER_DAY",
    "AU",
    "R_EARTH",
    "GM_EARTH",
    "GM_SUN",
    "GM_SUN_ROUNDED",
    "GM_MOON",
    # Config
    "set_dtype",
    "get_dtype",
    # Errors
    "IntegrationError",
    "InvalidConfig",
    "SingularState",
    "NonFiniteResult",
    "StepSizeUnderflow",
    "MaxStepsExceeded",
    # State
    "StateVector",
    # Dynamics
    "DynamicsModel",
    "TwoBodyDynamics",
    "accel_point_mass",
    # Integrators
    "IntegrationConfig",
    "IntegrationStats",
    "IntegratorStatus",
    "StepDecision",
    "StepSizeController",
    "TrialStep",
    "compute_error_norm",
    "dp54_trial_step",
    # Trajectory
    "Trajectory",
    "TrajectoryRecorder",
    "TrajectorySample",
    # Propagation
    "DormandPrinceIntegrator",
    "propagate",
    "propagate_batch",
    # Orbits
    "specific_energy",
    "angular_momentum",
    "semimajor_axis_from_state",
    "orbital_period",
    "orbital_period_from_state",
    "anomaly_mean_to_eccentric",
    "state_koe_to_cartesian",
]
