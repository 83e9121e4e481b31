"""Adaptive two-body propagation with the Dormand-Prince 5(4) method.

:class:`DormandPrinceIntegrator` drives the compiled DP54 trial step from
``t_start`` to ``t_end``:

1. Validate the configuration and initial state (``INITIALIZING``).
2. Attempt a step, clipped so that it never overshoots ``t_end``
   (``STEPPING``).
3. Ask the :class:`~orbitprop.integrators.StepSizeController` whether to
   accept it (``ACCEPTED``, the sample is recorded) or retry with a smaller
   step (``REJECTED``).
4. Stop at ``t_end`` exactly (``CONVERGED``) or raise one of the
   :mod:`orbitprop.errors` types (``FAILED``).

Failures are raised, never swallowed.  The partial trajectory accepted
before the failure is attached to the exception as ``error.trajectory``.

:func:`propagate` is the one-call entry point for a single state, and
:func:`propagate_batch` runs many independent propagations, collecting a
trajectory or an error per input so that one failure does not abort its
siblings.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

from jax.typing import ArrayLike

from orbitprop.dynamics import DEFAULT_SINGULARITY_EPS, DynamicsModel, TwoBodyDynamics
from orbitprop.errors import (
    IntegrationError,
    InvalidConfig,
    MaxStepsExceeded,
    NonFiniteResult,
    SingularState,
    StepSizeUnderflow,
)
from orbitprop.integrators import (
    IntegrationConfig,
    IntegrationStats,
    IntegratorStatus,
    StepSizeController,
    dp54_trial_step_jit,
)
from orbitprop.integrators.dp54 import FSAL_EVALUATIONS
from orbitprop.state import StateVector, as_state_array
from orbitprop.trajectory import Trajectory, TrajectoryRecorder

logger = logging.getLogger(__name__)


class DormandPrinceIntegrator:
    """Adaptive DP54 propagator for a fixed dynamics model and configuration.

    The integrator holds only read-only configuration; every call to
    :meth:`integrate` keeps its loop state locally, so one instance may be
    shared between threads.

    Args:
        dynamics: Model providing ``derivative(t, x)`` and
            ``is_singular(x)``.  Must be hashable (e.g. a frozen
            dataclass) so the trial step can be compiled once per model.
        config: Tolerances and step bounds. Defaults to
            :class:`~orbitprop.integrators.IntegrationConfig`.

    Raises:
        InvalidConfig: If *config* fails validation.

    Examples:
        ```python
        from orbitprop import DormandPrinceIntegrator, IntegrationConfig, TwoBodyDynamics
        from orbitprop.constants import GM_EARTH
        integrator = DormandPrinceIntegrator(
            TwoBodyDynamics(GM_EARTH), IntegrationConfig(rel_tol=1e-9, abs_tol=1e-9)
        )
        traj = integrator.integrate([7000.0, 0.0, 0.0, 0.0, 7.546, 0.0], 0.0, 5400.0)
        ```
    """

    def __init__(
        self,
        dynamics: DynamicsModel,
        config: IntegrationConfig | None = None,
    ) -> None:
        if config is None:
            config = IntegrationConfig()
        self._dynamics = dynamics
        self._config = config.validate()
        self._controller = StepSizeController.from_config(self._config)

    @property
    def dynamics(self) -> DynamicsModel:
        return self._dynamics

    @property
    def config(self) -> IntegrationConfig:
        return self._config

    @property
    def controller(self) -> StepSizeController:
        return self._controller

    def integrate(
        self,
        initial_state: StateVector | ArrayLike,
        t_start: float,
        t_end: float,
    ) -> Trajectory:
        """Propagate *initial_state* from *t_start* to *t_end*.

        Backward propagation (``t_end < t_start``) is supported; the step
        size magnitude is taken from the configuration and its sign from
        the direction of time.

        Args:
            initial_state: ``[x, y, z, vx, vy, vz]`` at *t_start*.
            t_start: Start time.
            t_end: End time. The last sample lands on it exactly.

        Returns:
            Trajectory: Accepted samples from ``(t_start, initial_state)``
            to ``t_end``, with ``stats.status == CONVERGED``.

        Raises:
            InvalidConfig: Non-finite times or initial state.
            SingularState: A stage state came within ``singularity_eps``
                of the attractor.
            NonFiniteResult: A stage or solution became NaN or infinite.
            StepSizeUnderflow: The step size fell below ``min_step``.
            MaxStepsExceeded: ``max_steps`` accepted steps did not reach
                *t_end*.
        """
        cfg = self._config
        t_start = float(t_start)
        t_end = float(t_end)
        if not (math.isfinite(t_start) and math.isfinite(t_end)):
            raise InvalidConfig(f"t_start and t_end must be finite, got {t_start}, {t_end}")

        try:
            y = as_state_array(initial_state)
        except ValueError as exc:
            raise InvalidConfig(str(exc)) from exc
        if not bool(StateVector.from_array(y).is_finite()):
            raise InvalidConfig("initial_state must have finite components")

        direction = 1.0 if t_end >= t_start else -1.0
        recorder = TrajectoryRecorder(direction)
        recorder.append(t_start, y)

        t = t_start
        n_accepted = 0
        n_rejected = 0
        n_evaluations = 0

        def fail(error_cls, message):
            stats = IntegrationStats(
                n_accepted, n_rejected, n_evaluations, IntegratorStatus.FAILED
            )
            logger.warning("Propagation failed at t=%s: %s", t, message)
            raise error_cls(message, t=t, trajectory=recorder.to_trajectory(stats))

        if bool(self._dynamics.is_singular(y)):
            fail(SingularState, f"Initial position magnitude is singular at t={t}")

        if t_end == t_start:
            return recorder.to_trajectory(
                IntegrationStats(status=IntegratorStatus.CONVERGED)
            )

        h = direction * min(cfg.initial_step, cfg.max_step)
        k_first = self._dynamics.derivative(t, y)
        n_evaluations += 1
        after_rejection = False
        status = IntegratorStatus.STEPPING

        while status is not IntegratorStatus.CONVERGED:
            remaining = t_end - t
            last_step = abs(h) >= abs(remaining)
            h_try = remaining if last_step else h
            if not last_step and t + h_try == t:
                fail(StepSizeUnderflow, f"Step {h_try} no longer advances time at t={t}")

            trial = dp54_trial_step_jit(
                self._dynamics, t, y, h_try, cfg.abs_tol, cfg.rel_tol, k_first
            )
            n_evaluations += FSAL_EVALUATIONS

            if bool(trial.singular):
                fail(SingularState, f"Position magnitude became singular in step from t={t}")
            if not bool(trial.finite):
                fail(NonFiniteResult, f"Non-finite stage or solution in step from t={t}")

            error = float(trial.error_estimate)
            decision = self._controller.evaluate(error, h_try, after_rejection)

            if decision.accept:
                status = IntegratorStatus.ACCEPTED
                n_accepted += 1
                t = t_end if last_step else t + h_try
                y = trial.state_high
                k_first = trial.k_last
                after_rejection = False
                recorder.append(t, y)

                if t == t_end:
                    status = IntegratorStatus.CONVERGED
                elif n_accepted >= cfg.max_steps:
                    fail(
                        MaxStepsExceeded,
                        f"Reached {cfg.max_steps} accepted steps before t_end={t_end}",
                    )
                elif decision.underflow:
                    fail(
                        StepSizeUnderflow,
                        f"Proposed step below min_step={cfg.min_step} at t={t}",
                    )
            else:
                status = IntegratorStatus.REJECTED
                n_rejected += 1
                after_rejection = True
                logger.debug(
                    "Rejected step h=%s at t=%s (error=%s), retrying with h=%s",
                    h_try, t, error, decision.next_h,
                )
                if decision.underflow:
                    fail(
                        StepSizeUnderflow,
                        f"Step size driven below min_step={cfg.min_step} at t={t}",
                    )

            if status is not IntegratorStatus.CONVERGED:
                h = decision.next_h
                status = IntegratorStatus.STEPPING

        stats = IntegrationStats(
            n_accepted, n_rejected, n_evaluations, IntegratorStatus.CONVERGED
        )
        logger.info(
            "Propagation converged at t=%s: %d accepted, %d rejected, %d evaluations",
            t, n_accepted, n_rejected, n_evaluations,
        )
        return recorder.to_trajectory(stats)


def _build_integrator(
    mu: float,
    initial_step: float,
    rtol: float,
    atol: float,
    max_steps: int,
    min_step: float,
    max_step: float,
    singularity_eps: float,
) -> DormandPrinceIntegrator:
    config = IntegrationConfig(
        rel_tol=rtol,
        abs_tol=atol,
        initial_step=initial_step,
        max_steps=max_steps,
        min_step=min_step,
        max_step=max_step,
    ).validate()
    try:
        dynamics = TwoBodyDynamics(mu=mu, singularity_eps=singularity_eps)
    except (TypeError, ValueError) as exc:
        raise InvalidConfig(str(exc)) from exc
    return DormandPrinceIntegrator(dynamics, config)


def propagate(
    initial_state: StateVector | ArrayLike,
    mu: float,
    t_start: float,
    t_end: float,
    initial_step: float,
    rtol: float,
    atol: float,
    max_steps: int,
    *,
    min_step: float = 1e-10,
    max_step: float = math.inf,
    singularity_eps: float = DEFAULT_SINGULARITY_EPS,
) -> Trajectory:
    """Propagate a state under point-mass gravity with adaptive DP54.

    Units are the caller's: distances, velocities, times and *mu* must
    form a consistent set (e.g. km, km/s, s, km^3/s^2).

    Args:
        initial_state: ``[x, y, z, vx, vy, vz]`` at *t_start*, as a
            :class:`~orbitprop.state.StateVector` or length-6 array-like.
        mu: Gravitational parameter of the central body.
        t_start: Start time.
        t_end: End time; may precede *t_start* for backward propagation.
        initial_step: Magnitude of the first trial step.
        rtol: Relative error tolerance.
        atol: Absolute error tolerance.
        max_steps: Maximum number of accepted steps.
        min_step: Step-size floor below which the propagation fails.
        max_step: Step-size ceiling.
        singularity_eps: Position magnitude treated as a collision.

    Returns:
        Trajectory: First sample ``(t_start, initial_state)``, last sample
        at exactly *t_end*.

    Raises:
        InvalidConfig: Any non-positive tolerance, step bound, step count
            or ``mu``, or a non-finite initial state or time.
        SingularState, NonFiniteResult, StepSizeUnderflow, MaxStepsExceeded:
            See :meth:`DormandPrinceIntegrator.integrate`.

    Examples:
        ```python
        from orbitprop import propagate
        traj = propagate(
            [-123632719.3, -168314678.1, -17168641.0, 17.327, -14.112, -1.496],
            mu=1.327e11, t_start=0.0, t_end=86400.0, initial_step=10.0,
            rtol=1e-6, atol=1e-8, max_steps=10_000,
        )
        traj.final_state
        ```
    """
    integrator = _build_integrator(
        mu, initial_step, rtol, atol, max_steps, min_step, max_step, singularity_eps
    )
    return integrator.integrate(initial_state, t_start, t_end)


def propagate_batch(
    initial_states: Iterable[StateVector | ArrayLike],
    mu: float,
    t_start: float,
    t_end: float,
    initial_step: float,
    rtol: float,
    atol: float,
    max_steps: int,
    *,
    min_step: float = 1e-10,
    max_step: float = math.inf,
    singularity_eps: float = DEFAULT_SINGULARITY_EPS,
    max_workers: int | None = None,
) -> Sequence[Trajectory | IntegrationError]:
    """Propagate many independent states with a shared configuration.

    Configuration errors are raised immediately, before any propagation
    starts.  Per-state failures are returned in place of the trajectory,
    in input order, so that one failed state never affects the others.

    Args:
        initial_states: States to propagate.
        max_workers: Number of worker threads. ``None`` or ``1`` runs the
            propagations sequentially in the calling thread.
        mu, t_start, t_end, initial_step, rtol, atol, max_steps, min_step,
        max_step, singularity_eps: As for :func:`propagate`.

    Returns:
        A list with, for each input state, either its
        :class:`~orbitprop.trajectory.Trajectory` or the
        :class:`~orbitprop.errors.IntegrationError` it raised.

    Raises:
        InvalidConfig: If the shared configuration is invalid.
    """
    integrator = _build_integrator(
        mu, initial_step, rtol, atol, max_steps, min_step, max_step, singularity_eps
    )

    def run(state):
        try:
            return integrator.integrate(state, t_start, t_end)
        except IntegrationError as exc:
            return exc

    states = list(initial_states)
    if max_workers is None or max_workers <= 1:
        return [run(state) for state in states]

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(run, states))
