"""
Owned wrapper around CoolProp's low-level ``AbstractState`` handle API.

Typical workflow:

- Construct an :class:`AbstractState` with a backend (``"HEOS"``, ``"REFPROP"``,
  ``"PR"``, ...) and a fluid or ``&``-separated mixture string.
- Call :meth:`AbstractState.update` (or a shortcut) to fix the thermodynamic state.
- Read properties with :meth:`AbstractState.get` or the phase-aware helpers.
- Release the handle with :meth:`AbstractState.close`, a ``with`` block, or by
  dropping the last reference.

Threading: an instance may be handed from one thread to another, but must not be
used from two threads at once. No locking is done here; callers that share a
state must serialise access themselves.
"""

from __future__ import annotations

import ctypes
from collections.abc import Sequence
from ctypes import c_long
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from coolprop_ffi.buffers import (
    DEFAULT_STR_BUF_LEN,
    GLOBAL_STRING_CEILING,
    as_double_array,
    buffer_capacities,
    buffer_saturated,
    call_with_error,
    decode_c_buffer,
    double_ptr,
    filled_prefix,
    long_array,
    reshape_compositions,
    to_c_string,
)
from coolprop_ffi.errors import (
    BufferLimitError,
    CoolPropError,
    CoolPropFFIError,
    InvalidInputError,
    StateClosedError,
    UnknownPhaseCodeError,
)
from coolprop_ffi.indices import (
    IndexTable,
    InputPair,
    Param,
    Phase,
    coerce_phase,
    indices_for,
)
from coolprop_ffi.logging import get_logger
from coolprop_ffi.native import require_symbol, resolve_library

log = get_logger(__name__)

COMPOSITION_CEILING = 4096
PHASE_ENVELOPE_POINT_CEILING = 1 << 16
SPINODAL_CEILING = 8192
CRITICAL_POINT_CEILING = 64


def _empty() -> np.ndarray:
    return np.empty(0)


@dataclass
class BatchCommonOutputs:
    """Outputs of :meth:`AbstractState.update_and_common_out`, one entry per input state."""

    temperature: np.ndarray  # K
    pressure: np.ndarray  # Pa
    rhomolar: np.ndarray  # mol/m^3
    hmolar: np.ndarray  # J/mol
    smolar: np.ndarray  # J/mol/K


@dataclass
class PhaseEnvelope:
    """
    Phase envelope traced by CoolProp for the current mixture.

    ``x`` and ``y`` hold liquid and vapour compositions with shape
    ``(components, points)``.
    """

    temperature: np.ndarray = field(default_factory=_empty)
    pressure: np.ndarray = field(default_factory=_empty)
    rhomolar_liq: np.ndarray = field(default_factory=_empty)
    rhomolar_vap: np.ndarray = field(default_factory=_empty)
    x: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))
    y: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))

    def __len__(self) -> int:
        return len(self.temperature)


@dataclass
class SpinodalCurve:
    """Reduced temperature, reduced density and leading eigenvalue along the spinodal."""

    tau: np.ndarray
    delta: np.ndarray
    m1: np.ndarray


@dataclass(frozen=True)
class CriticalPoint:
    temperature: float
    pressure: float
    rhomolar: float
    stable: bool


def _is_resize_error(message: str, markers: tuple[str, ...]) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in markers)


class AbstractState:
    """
    A CoolProp state object owning one native handle.

    Parameters
    ----------
    backend : str
        CoolProp backend, e.g. ``"HEOS"``, ``"REFPROP"``, ``"PR"`` or ``"BICUBIC&HEOS"``.
    fluid : str
        Fluid name or ``&``-separated mixture, e.g. ``"Water"`` or ``"R32&R125"``.
    library : optional
        Library object to use instead of the process-wide one. The state keeps it
        for its whole lifetime.

    Raises
    ------
    EmbeddedNulError
        If ``backend`` or ``fluid`` contains a NUL byte.
    CoolPropError
        If CoolProp cannot construct the state.
    """

    def __init__(self, backend: str, fluid: str, *, library: Any = None) -> None:
        self._handle: int | None = None
        backend_c = to_c_string(backend, "backend")
        fluid_c = to_c_string(fluid, "fluid")
        lib = resolve_library(library)
        self._lib = lib
        self._indices: IndexTable = indices_for(lib)
        handle = call_with_error(lib.AbstractState_factory, backend_c, fluid_c)
        self._handle = int(handle)
        log.debug("Created AbstractState handle %d (%s, %s)", self._handle, backend, fluid)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def handle(self) -> int:
        """Raw CoolProp handle, for bridging to entry points not wrapped here."""
        if self._handle is None:
            raise StateClosedError()
        return self._handle

    @property
    def closed(self) -> bool:
        return self._handle is None

    def close(self) -> None:
        """
        Release the native handle.

        Safe to call repeatedly; only the first call reaches CoolProp. The state is
        unusable afterwards even if CoolProp reports an error while freeing.
        """
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        call_with_error(self._lib.AbstractState_free, handle)
        log.debug("Released AbstractState handle %d", handle)

    def __enter__(self) -> AbstractState:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_handle", None) is None:
            return
        try:
            self.close()
        except Exception as exc:
            log.warning("Failed to release AbstractState handle during finalization: %s", exc)

    def __copy__(self) -> AbstractState:
        raise TypeError("AbstractState owns a native handle; use try_clone() instead of copy")

    def __deepcopy__(self, memo: dict[int, Any]) -> AbstractState:
        raise TypeError("AbstractState owns a native handle; use try_clone() instead of deepcopy")

    def __reduce__(self) -> Any:
        raise TypeError(
            "AbstractState handles are process-local and cannot be pickled; "
            "construct a new state in the receiving process",
        )

    def try_clone(self) -> AbstractState:
        """
        Build an independent state with the same backend, fluids and composition.

        CoolProp has no native clone, so the state is reconstructed from
        :meth:`backend_name` and :meth:`fluid_names`. Mole fractions are copied
        when they can be read.
        """
        backend = self.backend_name()
        fluid = self.fluid_names()
        try:
            cloned = AbstractState(backend, fluid, library=self._lib)
        except CoolPropFFIError:
            normalized = fluid.replace(",", "&")
            if normalized == fluid:
                raise
            cloned = AbstractState(backend, normalized, library=self._lib)

        try:
            cloned.set_fractions(self.mole_fractions())
        except CoolPropFFIError as exc:
            log.debug("Mole fractions not copied to cloned state: %s", exc)
        return cloned

    def __repr__(self) -> str:
        if self._handle is None:
            return "<AbstractState closed>"
        backend = self._describe(self.backend_name)
        fluids = self._describe(self.fluid_names)
        return f"AbstractState(handle={self._handle}, backend={backend}, fluids={fluids})"

    @staticmethod
    def _describe(query: Any) -> str:
        try:
            return repr(query())
        except CoolPropFFIError:
            return "<unavailable>"

    # ------------------------------------------------------------------
    # Native dispatch
    # ------------------------------------------------------------------

    def _call(self, entry_point: str, *args: Any) -> Any:
        handle = self.handle
        return call_with_error(getattr(self._lib, entry_point), handle, *args)

    def _pair(self, pair: InputPair | str) -> int:
        return self._indices.pair_id(pair)

    def _param(self, param: Param | str) -> int:
        return self._indices.param_id(param)

    # ------------------------------------------------------------------
    # State and scalar outputs
    # ------------------------------------------------------------------

    def update(self, pair: InputPair | str, value1: float, value2: float) -> None:
        """
        Set the thermodynamic state from two inputs.

        Units are SI and must match ``pair``, e.g. ``update(InputPair.PT, 101325.0, 300.0)``.
        """
        self._call("AbstractState_update", self._pair(pair), float(value1), float(value2))

    def get(self, param: Param | str) -> float:
        """Scalar output for the current state."""
        return float(self._call("AbstractState_keyed_output", self._param(param)))

    def update_dmolar_t(self, dmolar: float, t: float) -> None:
        """Shorthand for ``update(InputPair.DMOLAR_T, dmolar, t)``."""
        self.update(InputPair.DMOLAR_T, dmolar, t)

    def pressure(self) -> float:
        return self.get(Param.P)

    def specify_phase(self, phase: Phase | str) -> None:
        """Impose a phase before the next update; undo with :meth:`unspecify_phase`."""
        token = to_c_string(coerce_phase(phase).specifier_token, "phase specifier")
        self._call("AbstractState_specify_phase", token)

    def unspecify_phase(self) -> None:
        self._call("AbstractState_unspecify_phase")

    def fluid_names(self) -> str:
        """Loaded fluids; for mixtures CoolProp returns the expanded component list."""
        buffer = ctypes.create_string_buffer(DEFAULT_STR_BUF_LEN)
        self._call("AbstractState_fluid_names", buffer)
        return decode_c_buffer(buffer)

    def backend_name(self) -> str:
        """Active backend, e.g. ``"HelmholtzEOSBackend"``."""
        buffer = ctypes.create_string_buffer(DEFAULT_STR_BUF_LEN)
        self._call("AbstractState_backend_name", buffer)
        return decode_c_buffer(buffer)

    def fluid_param_string(self, param: str) -> str:
        """Fluid metadata such as ``aliases``, ``CAS`` or ``name``."""
        param_c = to_c_string(param, "param")
        capacity = DEFAULT_STR_BUF_LEN
        for capacity in buffer_capacities(DEFAULT_STR_BUF_LEN, GLOBAL_STRING_CEILING):
            buffer = ctypes.create_string_buffer(capacity)
            self._call("AbstractState_fluid_param_string", param_c, buffer, capacity)
            if not buffer_saturated(buffer):
                return decode_c_buffer(buffer)
        raise BufferLimitError(f"AbstractState_fluid_param_string({param})", capacity)

    def phase(self) -> Phase:
        """Phase of the current state."""
        code = int(self._call("AbstractState_phase"))
        phase = Phase.from_code(code)
        if phase is None:
            raise UnknownPhaseCodeError(code)
        return phase

    def saturated_liquid_keyed_output(self, param: Param | str) -> float:
        return float(
            self._call("AbstractState_saturated_liquid_keyed_output", self._param(param)),
        )

    def saturated_vapor_keyed_output(self, param: Param | str) -> float:
        return float(
            self._call("AbstractState_saturated_vapor_keyed_output", self._param(param)),
        )

    def keyed_output_sat_state(self, phase: Phase | str, param: Param | str) -> float:
        """Output at the saturated ``liquid``, ``gas`` or ``twophase`` state."""
        phase = coerce_phase(phase)
        token = phase.saturation_token
        if token is None:
            raise InvalidInputError(f"phase {phase.name} cannot be used for saturation outputs")
        return float(
            self._call(
                "AbstractState_keyed_output_satState",
                to_c_string(token, "phase"),
                self._param(param),
            ),
        )

    # ------------------------------------------------------------------
    # Derivatives
    # ------------------------------------------------------------------

    def first_saturation_deriv(self, of: Param | str, wrt: Param | str) -> float:
        """Derivative along the saturation curve, d(of)/d(wrt)."""
        return float(
            self._call("AbstractState_first_saturation_deriv", self._param(of), self._param(wrt)),
        )

    def first_partial_deriv(
        self, of: Param | str, wrt: Param | str, constant: Param | str,
    ) -> float:
        """Single-phase partial derivative (d of / d wrt) at constant ``constant``."""
        return float(
            self._call(
                "AbstractState_first_partial_deriv",
                self._param(of),
                self._param(wrt),
                self._param(constant),
            ),
        )

    def second_partial_deriv(
        self,
        of1: Param | str,
        wrt1: Param | str,
        constant1: Param | str,
        wrt2: Param | str,
        constant2: Param | str,
    ) -> float:
        return float(
            self._call(
                "AbstractState_second_partial_deriv",
                self._param(of1),
                self._param(wrt1),
                self._param(constant1),
                self._param(wrt2),
                self._param(constant2),
            ),
        )

    def first_two_phase_deriv(
        self, of: Param | str, wrt: Param | str, constant: Param | str,
    ) -> float:
        return float(
            self._call(
                "AbstractState_first_two_phase_deriv",
                self._param(of),
                self._param(wrt),
                self._param(constant),
            ),
        )

    def first_two_phase_deriv_splined(
        self,
        of: Param | str,
        wrt: Param | str,
        constant: Param | str,
        x_end: float,
    ) -> float:
        """Two-phase derivative smoothed with a spline up to quality ``x_end``."""
        return float(
            self._call(
                "AbstractState_first_two_phase_deriv_splined",
                self._param(of),
                self._param(wrt),
                self._param(constant),
                float(x_end),
            ),
        )

    def second_two_phase_deriv(
        self,
        of: Param | str,
        wrt1: Param | str,
        constant1: Param | str,
        wrt2: Param | str,
        constant2: Param | str,
    ) -> float:
        return float(
            self._call(
                "AbstractState_second_two_phase_deriv",
                self._param(of),
                self._param(wrt1),
                self._param(constant1),
                self._param(wrt2),
                self._param(constant2),
            ),
        )

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def set_fractions(self, fractions: Sequence[float] | np.ndarray) -> None:
        """Set mole fractions; they should sum to one."""
        values = as_double_array(fractions, "fractions")
        self._call("AbstractState_set_fractions", double_ptr(values), len(values))

    def set_mass_fractions(self, fractions: Sequence[float] | np.ndarray) -> None:
        """Set mass fractions; raises :class:`UnsupportedFeatureError` on builds without it."""
        func = require_symbol(self._lib, "AbstractState_set_mass_fractions")
        values = as_double_array(fractions, "fractions")
        call_with_error(func, self.handle, double_ptr(values), len(values))

    def _estimated_component_capacity(self) -> int:
        names = self.fluid_names()
        count = sum(1 for segment in names.split("&") if segment.strip())
        return max(count, 1)

    def _read_fractions(self, entry_point: str, *leading: Any) -> np.ndarray:
        func = require_symbol(self._lib, entry_point)
        capacity = self._estimated_component_capacity()
        while capacity <= COMPOSITION_CEILING:
            fractions = np.zeros(capacity)
            count = c_long(0)
            try:
                call_with_error(
                    func, self.handle, *leading, double_ptr(fractions), capacity, count,
                )
            except CoolPropError as exc:
                if _is_resize_error(exc.message, ("buffer", "length of array")):
                    capacity = max(capacity, 1) * 2
                    log.debug("%s: growing composition buffer to %d", entry_point, capacity)
                    continue
                raise
            actual = max(int(count.value), 0)
            if actual > capacity:
                capacity = max(actual, capacity * 2)
                continue
            return fractions[:actual].copy()
        raise BufferLimitError(entry_point, COMPOSITION_CEILING)

    def mole_fractions(self) -> np.ndarray:
        return self._read_fractions("AbstractState_get_mole_fractions")

    def mass_fractions(self) -> np.ndarray:
        return self._read_fractions("AbstractState_get_mass_fractions")

    def mole_fractions_sat_state(self, phase: Phase | str) -> np.ndarray:
        """Compositions of the saturated ``liquid`` or ``gas`` phase."""
        phase = coerce_phase(phase)
        token = phase.saturation_token
        if token is None:
            raise InvalidInputError(
                f"phase {phase.name} cannot be used for saturation fractions",
            )
        return self._read_fractions(
            "AbstractState_get_mole_fractions_satState", to_c_string(token, "phase"),
        )

    def get_fugacity(self, i: int) -> float:
        """Fugacity of component ``i`` in Pa."""
        return float(self._call("AbstractState_get_fugacity", int(i)))

    def get_fugacity_coefficient(self, i: int) -> float:
        return float(self._call("AbstractState_get_fugacity_coefficient", int(i)))

    # ------------------------------------------------------------------
    # Batched updates
    # ------------------------------------------------------------------

    @staticmethod
    def _batch_inputs(value1: Any, value2: Any) -> tuple[np.ndarray, np.ndarray]:
        first = as_double_array(value1, "value1")
        second = as_double_array(value2, "value2")
        if len(first) != len(second):
            raise InvalidInputError("value arrays must be the same length")
        return first, second

    def update_and_common_out(
        self, pair: InputPair | str, value1: Any, value2: Any,
    ) -> BatchCommonOutputs:
        """
        Update through a sequence of states in one native call.

        Returns temperature, pressure, molar density, molar enthalpy and molar
        entropy arrays with the same length as the inputs.
        """
        first, second = self._batch_inputs(value1, value2)
        length = len(first)
        outputs = [np.zeros(length) for _ in range(5)]
        self._call(
            "AbstractState_update_and_common_out",
            self._pair(pair),
            double_ptr(first),
            double_ptr(second),
            length,
            *(double_ptr(out) for out in outputs),
        )
        return BatchCommonOutputs(*outputs)

    def update_and_1_out(
        self, pair: InputPair | str, value1: Any, value2: Any, output: Param | str,
    ) -> np.ndarray:
        first, second = self._batch_inputs(value1, value2)
        length = len(first)
        out = np.zeros(length)
        self._call(
            "AbstractState_update_and_1_out",
            self._pair(pair),
            double_ptr(first),
            double_ptr(second),
            length,
            self._param(output),
            double_ptr(out),
        )
        return out

    def update_and_5_out(
        self,
        pair: InputPair | str,
        value1: Any,
        value2: Any,
        outputs: Sequence[Param | str],
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        if len(outputs) != 5:
            raise InvalidInputError(f"exactly five outputs are required, got {len(outputs)}")
        first, second = self._batch_inputs(value1, value2)
        length = len(first)
        ids = long_array([self._param(param) for param in outputs])
        results = [np.zeros(length) for _ in range(5)]
        self._call(
            "AbstractState_update_and_5_out",
            self._pair(pair),
            double_ptr(first),
            double_ptr(second),
            length,
            ids,
            *(double_ptr(out) for out in results),
        )
        return results[0], results[1], results[2], results[3], results[4]

    # ------------------------------------------------------------------
    # Mixture and model parameters
    # ------------------------------------------------------------------

    def set_binary_interaction_double(
        self, i: int, j: int, parameter: str, value: float,
    ) -> None:
        """Override a binary interaction parameter (e.g. ``kij``) between components i and j."""
        self._call(
            "AbstractState_set_binary_interaction_double",
            int(i),
            int(j),
            to_c_string(parameter, "parameter"),
            float(value),
        )

    def set_cubic_alpha_c(
        self, i: int, parameter: str, c1: float, c2: float, c3: float,
    ) -> None:
        """Set the alpha-function coefficients of a cubic equation of state."""
        self._call(
            "AbstractState_set_cubic_alpha_C",
            int(i),
            to_c_string(parameter, "parameter"),
            float(c1),
            float(c2),
            float(c3),
        )

    def set_fluid_parameter_double(self, i: int, parameter: str, value: float) -> None:
        self._call(
            "AbstractState_set_fluid_parameter_double",
            int(i),
            to_c_string(parameter, "parameter"),
            float(value),
        )

    # ------------------------------------------------------------------
    # Phase envelope, spinodal and critical points
    # ------------------------------------------------------------------

    def build_phase_envelope(self, level: str = "") -> None:
        """Trace the phase envelope; ``level`` is passed through to CoolProp."""
        self._call("AbstractState_build_phase_envelope", to_c_string(level, "level"))

    def phase_envelope(self) -> PhaseEnvelope:
        """Data of the envelope built by :meth:`build_phase_envelope`."""
        entry_point = "AbstractState_get_phase_envelope_data_checkedMemory"
        markers = ("length", "buffer")
        length = c_long(0)
        components = c_long(0)
        try:
            self._call(entry_point, 0, 0, None, None, None, None, None, None, length, components)
            points_guess = max(int(length.value), 0)
            components_guess = max(int(components.value), 0)
        except CoolPropError as exc:
            if not _is_resize_error(exc.message, markers):
                raise
            points_guess = 256
            components_guess = self._estimated_component_capacity()

        if points_guess == 0 and components_guess == 0:
            return PhaseEnvelope()
        points_guess = points_guess or 256
        components_guess = components_guess or 1

        while points_guess <= PHASE_ENVELOPE_POINT_CEILING:
            temperature = np.zeros(points_guess)
            pressure = np.zeros(points_guess)
            rhomolar_vap = np.zeros(points_guess)
            rhomolar_liq = np.zeros(points_guess)
            x = np.zeros(points_guess * components_guess)
            y = np.zeros(points_guess * components_guess)
            reported_length = c_long(0)
            reported_components = c_long(0)
            try:
                self._call(
                    entry_point,
                    points_guess,
                    components_guess,
                    double_ptr(temperature),
                    double_ptr(pressure),
                    double_ptr(rhomolar_vap),
                    double_ptr(rhomolar_liq),
                    double_ptr(x),
                    double_ptr(y),
                    reported_length,
                    reported_components,
                )
            except CoolPropError as exc:
                if _is_resize_error(exc.message, markers):
                    points_guess *= 2
                    components_guess *= 2
                    log.debug("Phase envelope buffers grown to %d points", points_guess)
                    continue
                raise

            points = max(int(reported_length.value), 0)
            n_components = max(int(reported_components.value), 0)
            if points > points_guess or n_components > components_guess:
                points_guess = max(points_guess, points) * 2
                components_guess = max(components_guess, n_components)
                continue

            return PhaseEnvelope(
                temperature=temperature[:points].copy(),
                pressure=pressure[:points].copy(),
                rhomolar_liq=rhomolar_liq[:points].copy(),
                rhomolar_vap=rhomolar_vap[:points].copy(),
                x=reshape_compositions(x, points, n_components),
                y=reshape_compositions(y, points, n_components),
            )
        raise BufferLimitError(entry_point, PHASE_ENVELOPE_POINT_CEILING)

    def build_spinodal(self) -> None:
        self._call("AbstractState_build_spinodal")

    def spinodal_data(self) -> SpinodalCurve:
        """Spinodal data from :meth:`build_spinodal`, trimmed to the filled entries."""
        capacity = 256
        while True:
            tau = np.full(capacity, np.nan)
            delta = np.full(capacity, np.nan)
            m1 = np.full(capacity, np.nan)
            self._call(
                "AbstractState_get_spinodal_data",
                capacity,
                double_ptr(tau),
                double_ptr(delta),
                double_ptr(m1),
            )
            filled = filled_prefix(tau, delta, m1)
            if filled >= capacity and capacity < SPINODAL_CEILING:
                capacity *= 2
                continue
            return SpinodalCurve(tau[:filled].copy(), delta[:filled].copy(), m1[:filled].copy())

    def critical_points(self) -> list[CriticalPoint]:
        """All critical points CoolProp finds for the current mixture."""
        capacity = 4
        while True:
            temperature = np.full(capacity, np.nan)
            pressure = np.full(capacity, np.nan)
            rhomolar = np.full(capacity, np.nan)
            stability = long_array([-1] * capacity)
            self._call(
                "AbstractState_all_critical_points",
                capacity,
                double_ptr(temperature),
                double_ptr(pressure),
                double_ptr(rhomolar),
                stability,
            )
            with np.errstate(invalid="ignore"):
                valid = (
                    np.isfinite(temperature)
                    & np.isfinite(pressure)
                    & np.isfinite(rhomolar)
                    & (temperature > 0.0)
                    & (pressure > 0.0)
                )
            hits = np.flatnonzero(valid)
            count = int(hits[-1]) + 1 if hits.size else 0
            if count >= capacity and capacity < CRITICAL_POINT_CEILING:
                capacity *= 2
                continue
            return [
                CriticalPoint(
                    temperature=float(temperature[idx]),
                    pressure=float(pressure[idx]),
                    rhomolar=float(rhomolar[idx]),
                    stable=stability[idx] != 0,
                )
                for idx in range(count)
            ]


__all__ = [
    "AbstractState",
    "BatchCommonOutputs",
    "CriticalPoint",
    "PhaseEnvelope",
    "SpinodalCurve",
]
