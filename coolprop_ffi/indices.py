"""
Enumerations of CoolProp phases, input pairs and output parameters.

``InputPair`` and ``Param`` members carry CoolProp's string tokens. The integer
indices the native API expects are not stable across CoolProp releases, so they
are looked up from the loaded library once and cached in an :class:`IndexTable`.
"""

from __future__ import annotations

import threading
import weakref
from enum import Enum
from typing import Any

from coolprop_ffi.errors import InvalidInputError
from coolprop_ffi.logging import get_logger

log = get_logger(__name__)


class Phase(Enum):
    """Thermodynamic phase labels exposed by the CoolProp C API."""

    LIQUID = 0
    SUPERCRITICAL = 1
    SUPERCRITICAL_GAS = 2
    SUPERCRITICAL_LIQUID = 3
    CRITICAL_POINT = 4
    GAS = 5
    TWO_PHASE = 6
    UNKNOWN = 7
    NOT_IMPOSED = 8

    @classmethod
    def from_code(cls, code: int) -> Phase | None:
        try:
            return cls(int(code))
        except ValueError:
            return None

    @property
    def specifier_token(self) -> str:
        """Token accepted by ``AbstractState_specify_phase``."""
        return _SPECIFIER_TOKENS[self]

    @property
    def saturation_token(self) -> str | None:
        """Token for saturated-state queries; None for phases without one."""
        return _SATURATION_TOKENS.get(self)

    def __str__(self) -> str:
        return _LABELS[self]


_SPECIFIER_TOKENS: dict[Phase, str] = {
    Phase.LIQUID: "phase_liquid",
    Phase.SUPERCRITICAL: "phase_supercritical",
    Phase.SUPERCRITICAL_GAS: "phase_supercritical_gas",
    Phase.SUPERCRITICAL_LIQUID: "phase_supercritical_liquid",
    Phase.CRITICAL_POINT: "phase_critical_point",
    Phase.GAS: "phase_gas",
    Phase.TWO_PHASE: "phase_twophase",
    Phase.UNKNOWN: "phase_unknown",
    Phase.NOT_IMPOSED: "phase_not_imposed",
}

# "gas", "twophase", "critical_point", ...
_TOKEN_PHASES: dict[str, Phase] = {
    token[len("phase_"):]: phase for phase, token in _SPECIFIER_TOKENS.items()
}

_SATURATION_TOKENS: dict[Phase, str] = {
    Phase.LIQUID: "liquid",
    Phase.GAS: "gas",
    Phase.TWO_PHASE: "twophase",
}

_LABELS: dict[Phase, str] = {
    Phase.LIQUID: "liquid",
    Phase.SUPERCRITICAL: "supercritical",
    Phase.SUPERCRITICAL_GAS: "supercritical gas",
    Phase.SUPERCRITICAL_LIQUID: "supercritical liquid",
    Phase.CRITICAL_POINT: "critical point",
    Phase.GAS: "gas",
    Phase.TWO_PHASE: "two-phase",
    Phase.UNKNOWN: "unknown",
    Phase.NOT_IMPOSED: "not imposed",
}


class InputPair(Enum):
    """Pairs of state variables accepted by ``AbstractState.update``."""

    PT = "PT_INPUTS"
    QT = "QT_INPUTS"
    PQ = "PQ_INPUTS"
    Q_SMOLAR = "QSmolar_INPUTS"
    Q_SMASS = "QSmass_INPUTS"
    HMOLAR_Q = "HmolarQ_INPUTS"
    HMASS_Q = "HmassQ_INPUTS"
    DMOLAR_Q = "DmolarQ_INPUTS"
    DMASS_Q = "DmassQ_INPUTS"
    HMOLAR_P = "HmolarP_INPUTS"
    HMASS_P = "HmassP_INPUTS"
    P_SMOLAR = "PSmolar_INPUTS"
    P_SMASS = "PSmass_INPUTS"
    P_UMOLAR = "PUmolar_INPUTS"
    P_UMASS = "PUmass_INPUTS"
    HMOLAR_SMOLAR = "HmolarSmolar_INPUTS"
    HMASS_SMASS = "HmassSmass_INPUTS"
    SMOLAR_T = "SmolarT_INPUTS"
    SMASS_T = "SmassT_INPUTS"
    DMOLAR_T = "DmolarT_INPUTS"
    DMASS_T = "DmassT_INPUTS"
    DMOLAR_P = "DmolarP_INPUTS"
    DMASS_P = "DmassP_INPUTS"
    DMOLAR_HMOLAR = "DmolarHmolar_INPUTS"
    DMASS_HMASS = "DmassHmass_INPUTS"
    DMOLAR_SMOLAR = "DmolarSmolar_INPUTS"
    DMASS_SMASS = "DmassSmass_INPUTS"
    DMOLAR_UMOLAR = "DmolarUmolar_INPUTS"
    DMASS_UMASS = "DmassUmass_INPUTS"
    HMOLAR_T = "HmolarT_INPUTS"
    HMASS_T = "HmassT_INPUTS"
    T_UMOLAR = "TUmolar_INPUTS"
    T_UMASS = "TUmass_INPUTS"

    @property
    def token(self) -> str:
        return self.value


class Param(Enum):
    """
    Output parameters understood by CoolProp.

    ``UMOLAR0``, ``HMOLAR0``, ``SMOLAR0``, ``UMASS0``, ``HMASS0`` and ``SMASS0``
    are aliases of the corresponding ``*_IDEALGAS`` members.
    """

    T = "T"
    P = "P"
    DMOLAR = "Dmolar"
    HMOLAR = "Hmolar"
    SMOLAR = "Smolar"
    UMOLAR = "Umolar"
    GMOLAR = "Gmolar"
    HELMHOLTZMOLAR = "Helmholtzmolar"
    DMASS = "Dmass"
    HMASS = "Hmass"
    SMASS = "Smass"
    UMASS = "Umass"
    GMASS = "Gmass"
    HELMHOLTZMASS = "Helmholtzmass"
    Q = "Q"
    DELTA = "Delta"
    TAU = "Tau"
    CPMOLAR = "Cpmolar"
    CPMASS = "Cpmass"
    CVMOLAR = "Cvmolar"
    CVMASS = "Cvmass"
    CP0MOLAR = "Cp0molar"
    CP0MASS = "Cp0mass"
    HMOLAR_RESIDUAL = "Hmolar_residual"
    SMOLAR_RESIDUAL = "Smolar_residual"
    GMOLAR_RESIDUAL = "Gmolar_residual"
    HMOLAR_IDEALGAS = "Hmolar_idealgas"
    SMOLAR_IDEALGAS = "Smolar_idealgas"
    UMOLAR_IDEALGAS = "Umolar_idealgas"
    HMASS_IDEALGAS = "Hmass_idealgas"
    SMASS_IDEALGAS = "Smass_idealgas"
    UMASS_IDEALGAS = "Umass_idealgas"
    GWP20 = "GWP20"
    GWP100 = "GWP100"
    GWP500 = "GWP500"
    FH = "FH"
    HH = "HH"
    PH = "PH"
    ODP = "ODP"
    BVIRIAL = "Bvirial"
    CVIRIAL = "Cvirial"
    DBVIRIAL_DT = "dBvirial_dT"
    DCVIRIAL_DT = "dCvirial_dT"
    GAS_CONSTANT = "gas_constant"
    MOLAR_MASS = "molar_mass"
    ACENTRIC = "acentric"
    DIPOLE_MOMENT = "dipole_moment"
    RHOMASS_REDUCING = "rhomass_reducing"
    RHOMOLAR_REDUCING = "rhomolar_reducing"
    RHOMOLAR_CRITICAL = "rhomolar_critical"
    RHOMASS_CRITICAL = "rhomass_critical"
    T_REDUCING = "T_reducing"
    T_CRITICAL = "T_critical"
    T_TRIPLE = "T_triple"
    T_MAX = "T_max"
    T_MIN = "T_min"
    P_MIN = "P_min"
    P_MAX = "P_max"
    P_CRITICAL = "p_critical"
    P_REDUCING = "p_reducing"
    P_TRIPLE = "p_triple"
    FRACTION_MIN = "fraction_min"
    FRACTION_MAX = "fraction_max"
    T_FREEZE = "T_freeze"
    SPEED_OF_SOUND = "speed_of_sound"
    VISCOSITY = "viscosity"
    CONDUCTIVITY = "conductivity"
    SURFACE_TENSION = "surface_tension"
    PRANDTL = "Prandtl"
    ISOTHERMAL_COMPRESSIBILITY = "isothermal_compressibility"
    ISOBARIC_EXPANSION_COEFFICIENT = "isobaric_expansion_coefficient"
    ISENTROPIC_EXPANSION_COEFFICIENT = "isentropic_expansion_coefficient"
    Z = "Z"
    FUNDAMENTAL_DERIVATIVE_OF_GAS_DYNAMICS = "fundamental_derivative_of_gas_dynamics"
    PIP = "PIP"
    ALPHAR = "alphar"
    DALPHAR_DTAU_CONSTDELTA = "dalphar_dtau_constdelta"
    DALPHAR_DDELTA_CONSTTAU = "dalphar_ddelta_consttau"
    ALPHA0 = "alpha0"
    DALPHA0_DTAU_CONSTDELTA = "dalpha0_dtau_constdelta"
    DALPHA0_DDELTA_CONSTTAU = "dalpha0_ddelta_consttau"
    D2ALPHA0_DDELTA2_CONSTTAU = "d2alpha0_ddelta2_consttau"
    D3ALPHA0_DDELTA3_CONSTTAU = "d3alpha0_ddelta3_consttau"
    PHASE = "Phase"
    # Aliases
    UMOLAR0 = "Umolar_idealgas"
    HMOLAR0 = "Hmolar_idealgas"
    SMOLAR0 = "Smolar_idealgas"
    UMASS0 = "Umass_idealgas"
    HMASS0 = "Hmass_idealgas"
    SMASS0 = "Smass_idealgas"

    @property
    def token(self) -> str:
        return self.value


def coerce_pair(value: InputPair | str) -> InputPair:
    """Accept an :class:`InputPair` or its token (``"PT_INPUTS"`` or ``"PT"``)."""
    if isinstance(value, InputPair):
        return value
    if isinstance(value, str):
        token = value if value.endswith("_INPUTS") else f"{value}_INPUTS"
        try:
            return InputPair(token)
        except ValueError:
            pass
    raise InvalidInputError(f"unknown input pair {value!r}")


def coerce_param(value: Param | str) -> Param:
    """Accept a :class:`Param`, its CoolProp token, or its member name."""
    if isinstance(value, Param):
        return value
    if isinstance(value, str):
        try:
            return Param(value)
        except ValueError:
            member = Param.__members__.get(value.upper())
            if member is not None:
                return member
    raise InvalidInputError(f"unknown parameter {value!r}")


def coerce_phase(value: Phase | str) -> Phase:
    """Accept a :class:`Phase`, its member name, its human label, or a CoolProp token."""
    if isinstance(value, Phase):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("phase_"):
            text = text[len("phase_"):]
        member = _TOKEN_PHASES.get(text)
        if member is None:
            member = Phase.__members__.get(text.upper().replace("-", "_").replace(" ", "_"))
        if member is not None:
            return member
    raise InvalidInputError(f"unknown phase {value!r}")


class IndexTable:
    """Native integer ids for every input pair and parameter of one library."""

    def __init__(self, pairs: dict[InputPair, int], params: dict[Param, int]) -> None:
        self._pairs = pairs
        self._params = params

    @classmethod
    def load(cls, lib: Any) -> IndexTable:
        pairs = {
            pair: int(lib.get_input_pair_index(pair.token.encode("ascii")))
            for pair in InputPair
        }
        # Iterating an Enum skips aliases, so each token is queried once.
        params = {
            param: int(lib.get_param_index(param.token.encode("ascii")))
            for param in Param
        }
        unresolved = [p.token for p, i in pairs.items() if i < 0]
        unresolved += [p.token for p, i in params.items() if i < 0]
        if unresolved:
            log.warning(
                "CoolProp did not recognise %d tokens: %s",
                len(unresolved),
                ", ".join(unresolved),
            )
        log.debug("Resolved %d input pairs and %d parameters", len(pairs), len(params))
        return cls(pairs, params)

    def pair_id(self, pair: InputPair | str) -> int:
        pair = coerce_pair(pair)
        index = self._pairs[pair]
        if index < 0:
            raise InvalidInputError(
                f"input pair {pair.token} is not recognized by the loaded CoolProp library",
            )
        return index

    def param_id(self, param: Param | str) -> int:
        param = coerce_param(param)
        index = self._params[param]
        if index < 0:
            raise InvalidInputError(
                f"parameter {param.token} is not recognized by the loaded CoolProp library",
            )
        return index


# Entries go away with their library.
_TABLES: weakref.WeakKeyDictionary[Any, IndexTable] = weakref.WeakKeyDictionary()
_TABLES_LOCK = threading.Lock()


def indices_for(lib: Any) -> IndexTable:
    """Index table for ``lib``, resolved on first request and cached while ``lib`` is alive."""
    with _TABLES_LOCK:
        table = _TABLES.get(lib)
        if table is None:
            table = IndexTable.load(lib)
            _TABLES[lib] = table
        return table


__all__ = [
    "IndexTable",
    "InputPair",
    "Param",
    "Phase",
    "coerce_pair",
    "coerce_param",
    "coerce_phase",
    "indices_for",
]
