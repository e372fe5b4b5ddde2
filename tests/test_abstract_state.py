"""Tests for the AbstractState wrapper against the in-process fake library."""

from __future__ import annotations

import copy
import gc
import logging
import pickle
import weakref

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from coolprop_ffi import abstract_state as abstract_state_module
from coolprop_ffi.abstract_state import AbstractState, CriticalPoint, PhaseEnvelope
from coolprop_ffi.errors import (
    BufferLimitError,
    CoolPropError,
    EmbeddedNulError,
    InvalidInputError,
    StateClosedError,
    UnknownPhaseCodeError,
    UnsupportedFeatureError,
)
from coolprop_ffi.high_level import props_si
from coolprop_ffi.indices import InputPair, Param, Phase
from fake_coolprop import FakeCoolProp


@pytest.fixture
def r134a(fake_lib):
    state = AbstractState("HEOS", "R134a")
    yield state
    state.close()


@pytest.fixture
def blend(fake_lib):
    state = AbstractState("HEOS", "R32&R125")
    state.set_fractions([0.4, 0.6])
    yield state
    state.close()


class TestLifecycle:
    def test_handle_and_metadata(self, r134a):
        assert r134a.handle >= 0
        assert not r134a.closed
        assert r134a.backend_name() == "HelmholtzEOSBackend"
        assert r134a.fluid_names() == "R134a"

    def test_factory_error(self, fake_lib):
        with pytest.raises(CoolPropError, match=r"Unable to load fluid \[Unobtainium\]"):
            AbstractState("HEOS", "Unobtainium")
        assert fake_lib.live_handles == 0

    def test_unavailable_backend(self, fake_lib):
        with pytest.raises(CoolPropError, match="REFPROP"):
            AbstractState("REFPROP", "Water")

    def test_embedded_nul_rejected_before_native_call(self, fake_lib):
        with pytest.raises(EmbeddedNulError, match="backend"):
            AbstractState("HE\0OS", "Water")
        assert "AbstractState_factory" not in fake_lib.calls

    def test_close_releases_exactly_once(self, fake_lib):
        state = AbstractState("HEOS", "Water")
        state.close()
        state.close()
        assert state.closed
        assert fake_lib.live_handles == 0
        assert fake_lib.calls.count("AbstractState_free") == 1

    def test_use_after_close(self, fake_lib):
        state = AbstractState("HEOS", "Water")
        state.close()
        with pytest.raises(StateClosedError, match="already been released"):
            state.get(Param.T)
        with pytest.raises(StateClosedError):
            _ = state.handle

    def test_context_manager(self, fake_lib):
        with AbstractState("HEOS", "Water") as state:
            state.update(InputPair.PT, 101325.0, 300.0)
        assert state.closed
        assert fake_lib.live_handles == 0

    def test_dropping_last_reference_frees_handle(self, fake_lib):
        state = AbstractState("HEOS", "Water")
        assert fake_lib.live_handles == 1
        del state
        gc.collect()
        assert fake_lib.live_handles == 0

    def test_close_reports_free_failure_but_still_releases(self, fake_lib):
        state = AbstractState("HEOS", "Water")
        fake_lib.fail_free = True
        with pytest.raises(CoolPropError, match="Failed to release handle"):
            state.close()
        assert state.closed
        state.close()
        assert fake_lib.calls.count("AbstractState_free") == 1

    def test_finalizer_logs_instead_of_raising(self, fake_lib, caplog):
        state = AbstractState("HEOS", "Water")
        fake_lib.fail_free = True
        with caplog.at_level(logging.WARNING, logger="coolprop_ffi.abstract_state"):
            del state
            gc.collect()
        assert "Failed to release AbstractState handle" in caplog.text

    def test_state_keeps_library_it_was_created_with(self, fake_lib):
        from coolprop_ffi import native

        state = AbstractState("HEOS", "Water")
        other = FakeCoolProp()
        previous = native.set_library(other)
        try:
            state.update(InputPair.PT, 101325.0, 300.0)
            assert other.calls == []
        finally:
            native.set_library(previous)
            state.close()

    def test_explicit_library(self):
        lib = FakeCoolProp()
        with AbstractState("HEOS", "Water", library=lib) as state:
            state.update("PT", 101325.0, 300.0)
        assert lib.live_handles == 0

    def test_closed_state_releases_its_library(self):
        lib = FakeCoolProp()
        state = AbstractState("HEOS", "R134a", library=lib)
        state.close()
        ref = weakref.ref(lib)
        del state, lib
        gc.collect()
        assert ref() is None


class TestCopyAndRepr:
    def test_copy_pickle_and_deepcopy_are_refused(self, r134a):
        with pytest.raises(TypeError, match="try_clone"):
            copy.copy(r134a)
        with pytest.raises(TypeError, match="try_clone"):
            copy.deepcopy(r134a)
        with pytest.raises(TypeError, match="cannot be pickled"):
            pickle.dumps(r134a)

    def test_repr_includes_runtime_metadata(self, r134a):
        text = repr(r134a)
        assert text.startswith("AbstractState(")
        assert "HelmholtzEOSBackend" in text
        assert "R134a" in text

    def test_repr_of_closed_state(self, fake_lib):
        state = AbstractState("HEOS", "Water")
        state.close()
        assert repr(state) == "<AbstractState closed>"

    def test_try_clone_copies_composition(self, fake_lib, blend):
        blend.update(InputPair.PT, 3.0e5, 290.0)
        with blend.try_clone() as cloned:
            assert cloned.handle != blend.handle
            assert_allclose(cloned.mole_fractions(), [0.4, 0.6])
            cloned.update(InputPair.PT, 3.0e5, 290.0)
            assert cloned.pressure() == pytest.approx(3.0e5)
        assert fake_lib.live_handles == 1

    def test_try_clone_without_fractions(self, fake_lib):
        with AbstractState("HEOS", "R32&R125") as state, state.try_clone() as cloned:
            assert cloned.fluid_names() == "R32,R125"


class TestUpdatesAndOutputs:
    def test_get_matches_props_si(self, r134a):
        r134a.update(InputPair.PT, 1.0e5, 300.0)
        expected = props_si("Hmass", "P", 1.0e5, "T", 300.0, "R134a")
        assert r134a.get(Param.HMASS) == pytest.approx(expected, rel=1e-12)

    def test_dmolar_t_shortcut(self, r134a):
        dmolar = props_si("Dmolar", "P", 1.0e5, "T", 300.0, "R134a")
        r134a.update_dmolar_t(dmolar, 300.0)
        assert r134a.pressure() == pytest.approx(1.0e5)
        assert r134a.get("T") == pytest.approx(300.0)

    def test_native_error_is_raised(self, r134a):
        with pytest.raises(CoolPropError, match="not yet supported"):
            r134a.update(InputPair.HMASS_SMASS, 1.0, 2.0)

    def test_unknown_parameter_is_rejected_locally(self, r134a):
        with pytest.raises(InvalidInputError, match="unknown parameter"):
            r134a.get("NotAParam")

    def test_fluid_param_string(self, r134a):
        assert "Tetrafluoroethane" in r134a.fluid_param_string("aliases")

    def test_fluid_param_string_grows_buffer(self, fake_lib, r134a):
        fake_lib.fluid_params["R134a"]["BibTeX-EOS"] = "b" * 3000
        assert r134a.fluid_param_string("BibTeX-EOS") == "b" * 3000

    def test_fluid_param_string_ceiling(self, r134a):
        with pytest.raises(BufferLimitError) as excinfo:
            r134a.fluid_param_string("endless")
        assert excinfo.value.capacity == 1 << 20
        assert "output exceeded a buffer of 1048576" in str(excinfo.value)

    def test_specify_and_unspecify_phase(self, r134a):
        r134a.update(InputPair.PT, 1.0e5, 300.0)
        r134a.specify_phase(Phase.LIQUID)
        assert r134a.phase() is Phase.LIQUID
        r134a.specify_phase("gas")
        assert r134a.phase() is Phase.GAS
        r134a.unspecify_phase()
        assert r134a.phase() is not Phase.NOT_IMPOSED

    def test_unknown_phase_code(self, fake_lib, r134a):
        r134a.update(InputPair.PT, 1.0e5, 300.0)
        fake_lib.forced_phase_code = 42
        with pytest.raises(UnknownPhaseCodeError, match="phase code 42"):
            r134a.phase()


class TestSaturation:
    def test_saturated_outputs(self, r134a):
        r134a.update(InputPair.QT, 0.0, 260.0)
        assert r134a.saturated_liquid_keyed_output(Param.P) == pytest.approx(r134a.pressure())
        assert r134a.keyed_output_sat_state(Phase.LIQUID, Param.T) == pytest.approx(260.0)

        r134a.update(InputPair.QT, 1.0, 260.0)
        assert r134a.saturated_vapor_keyed_output(Param.P) == pytest.approx(r134a.pressure())
        assert r134a.keyed_output_sat_state("gas", Param.T) == pytest.approx(260.0)

    def test_liquid_and_vapor_differ_in_two_phase(self, r134a):
        r134a.update(InputPair.QT, 0.5, 260.0)
        liquid = r134a.saturated_liquid_keyed_output(Param.DMOLAR)
        vapor = r134a.saturated_vapor_keyed_output(Param.DMOLAR)
        assert liquid > vapor

    def test_phase_without_saturation_token(self, r134a):
        with pytest.raises(InvalidInputError, match="SUPERCRITICAL cannot be used"):
            r134a.keyed_output_sat_state(Phase.SUPERCRITICAL, Param.T)


class TestDerivatives:
    def test_ids_reach_the_library_in_order(self, fake_lib, r134a):
        ids = {token: fake_lib.param_index(token) for token in ("Smolar", "T", "P", "Hmolar", "Q")}
        r134a.update(InputPair.PT, 8.0e5, 320.0)
        assert r134a.first_partial_deriv(Param.SMOLAR, Param.T, Param.P) == fake_lib.encode(
            ids["Smolar"], ids["T"], ids["P"],
        )
        assert r134a.second_partial_deriv(
            Param.SMOLAR, Param.T, Param.P, Param.P, Param.T,
        ) == fake_lib.encode(ids["Smolar"], ids["T"], ids["P"], ids["P"], ids["T"])

        r134a.update(InputPair.QT, 0.3, 260.0)
        assert r134a.first_saturation_deriv(Param.P, Param.T) == fake_lib.encode(
            ids["P"], ids["T"],
        )
        assert r134a.first_two_phase_deriv(Param.HMOLAR, Param.T, Param.Q) == fake_lib.encode(
            ids["Hmolar"], ids["T"], ids["Q"],
        )
        splined = r134a.first_two_phase_deriv_splined(Param.HMOLAR, Param.T, Param.Q, 0.1)
        assert splined == pytest.approx(fake_lib.encode(ids["Hmolar"], ids["T"], ids["Q"]) + 0.1)
        assert r134a.second_two_phase_deriv(
            Param.HMOLAR, Param.T, Param.Q, Param.P, Param.Q,
        ) == fake_lib.encode(ids["Hmolar"], ids["T"], ids["Q"], ids["P"], ids["Q"])

    def test_two_phase_derivative_outside_dome(self, r134a):
        r134a.update(InputPair.PT, 8.0e5, 320.0)
        with pytest.raises(CoolPropError, match="two-phase region"):
            r134a.first_two_phase_deriv(Param.HMOLAR, Param.T, Param.Q)


class TestComposition:
    def test_mole_fractions(self, blend):
        blend.update(InputPair.PT, 3.0e5, 290.0)
        fractions = blend.mole_fractions()
        assert isinstance(fractions, np.ndarray)
        assert_allclose(fractions, [0.4, 0.6])

    def test_wrong_length_is_reported_by_library(self, blend):
        with pytest.raises(CoolPropError, match="does not equal"):
            blend.set_fractions([1.0])

    def test_mass_fractions_round_trip(self, blend):
        blend.set_mass_fractions([0.55, 0.45])
        assert_allclose(blend.mass_fractions(), [0.55, 0.45])
        assert blend.mole_fractions().sum() == pytest.approx(1.0)

    def test_mass_fractions_unsupported(self):
        lib = FakeCoolProp(missing={"AbstractState_set_mass_fractions"})
        with AbstractState("HEOS", "R32&R125", library=lib) as state:
            with pytest.raises(UnsupportedFeatureError, match="AbstractState_set_mass_fractions"):
                state.set_mass_fractions([0.5, 0.5])

    def test_saturation_fractions(self, blend):
        blend.update(InputPair.QT, 0.3, 260.0)
        liquid = blend.mole_fractions_sat_state(Phase.LIQUID)
        vapor = blend.mole_fractions_sat_state("gas")
        assert liquid.shape == vapor.shape == (2,)
        assert liquid.sum() == pytest.approx(1.0)
        assert vapor.sum() == pytest.approx(1.0)
        assert vapor[1] > liquid[1]

    def test_saturation_fractions_reject_phases_without_token(self, blend):
        with pytest.raises(InvalidInputError, match="CRITICAL_POINT cannot be used"):
            blend.mole_fractions_sat_state(Phase.CRITICAL_POINT)

    def test_fugacity(self, blend):
        blend.update(InputPair.PT, 4.0e5, 300.0)
        assert blend.get_fugacity(0) == pytest.approx(4.0e5 * 0.4)
        assert blend.get_fugacity_coefficient(1) == pytest.approx(0.98)
        with pytest.raises(CoolPropError, match="out of range"):
            blend.get_fugacity(5)

    def test_grows_to_reported_component_count(self, fake_lib, r134a):
        fake_lib.reported_components = 3
        fractions = r134a.mole_fractions()
        assert fake_lib.fraction_capacities == [1, 3]
        assert_allclose(fractions, [1.0 / 3.0] * 3)

    def test_component_count_past_ceiling(self, fake_lib, r134a):
        fake_lib.reported_components = 5000
        with pytest.raises(BufferLimitError, match="AbstractState_get_mole_fractions") as excinfo:
            r134a.mole_fractions()
        assert excinfo.value.capacity == abstract_state_module.COMPOSITION_CEILING
        assert fake_lib.fraction_capacities == [1]


class TestBatch:
    pressures = np.array([1.0e5, 2.0e5, 3.0e5])
    temperatures = np.array([280.0, 300.0, 320.0])

    def test_common_out(self, r134a):
        outputs = r134a.update_and_common_out(InputPair.PT, self.pressures, self.temperatures)
        assert_array_equal(outputs.temperature, self.temperatures)
        assert_array_equal(outputs.pressure, self.pressures)
        for i, (p, t) in enumerate(zip(self.pressures, self.temperatures)):
            assert outputs.rhomolar[i] == pytest.approx(props_si("Dmolar", "P", p, "T", t, "R134a"))
            assert outputs.hmolar[i] == pytest.approx(props_si("Hmolar", "P", p, "T", t, "R134a"))
            assert outputs.smolar[i] == pytest.approx(props_si("Smolar", "P", p, "T", t, "R134a"))

    def test_one_out_accepts_lists(self, r134a):
        result = r134a.update_and_1_out("PT", list(self.pressures), list(self.temperatures), "P")
        assert_array_equal(result, self.pressures)

    def test_five_out_consistent_with_common_out(self, r134a):
        common = r134a.update_and_common_out(InputPair.PT, self.pressures, self.temperatures)
        out = r134a.update_and_5_out(
            InputPair.PT,
            self.pressures,
            self.temperatures,
            [Param.T, Param.P, Param.DMOLAR, Param.HMOLAR, Param.SMOLAR],
        )
        assert len(out) == 5
        assert_array_equal(out[0], self.temperatures)
        assert_array_equal(out[1], self.pressures)
        assert_allclose(out[2], common.rhomolar)
        assert_allclose(out[3], common.hmolar)
        assert_allclose(out[4], common.smolar)

    def test_five_out_requires_five_outputs(self, r134a):
        with pytest.raises(InvalidInputError, match="exactly five outputs"):
            r134a.update_and_5_out(InputPair.PT, self.pressures, self.temperatures, [Param.T])

    def test_mismatched_lengths(self, r134a):
        with pytest.raises(InvalidInputError, match="same length"):
            r134a.update_and_1_out(InputPair.PT, [1.0e5, 2.0e5], [300.0], Param.T)

    def test_empty_batch(self, r134a):
        outputs = r134a.update_and_common_out(InputPair.PT, [], [])
        assert outputs.temperature.shape == (0,)

    def test_failure_inside_batch(self, r134a):
        with pytest.raises(CoolPropError, match="must be positive"):
            r134a.update_and_1_out(InputPair.PT, [1.0e5, -1.0], [300.0, 300.0], Param.T)


class TestModelParameters:
    def test_cubic_mutators(self, fake_lib):
        with AbstractState("PR", "Methane&Ethane") as state:
            state.set_fractions([0.5, 0.5])
            state.set_binary_interaction_double(0, 1, "kij", 0.05)
            state.set_cubic_alpha_c(0, "MC", 1.0, 0.5, 0.25)
            state.set_fluid_parameter_double(1, "cm", 0.0)
            recorded = fake_lib.state(state.handle)
            assert recorded.interaction[(0, 1, "kij")] == 0.05
            assert recorded.fluid_parameters[(0, "MC")] == (1.0, 0.5, 0.25)
            state.update(InputPair.PT, 5.0e5, 320.0)
            assert state.pressure() == pytest.approx(5.0e5)

    def test_cubic_alpha_on_helmholtz_backend(self, blend):
        with pytest.raises(CoolPropError, match="cubic backends"):
            blend.set_cubic_alpha_c(0, "MC", 1.0, 0.5, 0.25)


class TestPhaseEnvelope:
    def test_falls_back_when_size_query_is_rejected(self, fake_lib, blend):
        blend.build_phase_envelope("none")
        envelope = blend.phase_envelope()
        assert isinstance(envelope, PhaseEnvelope)
        assert len(envelope) == fake_lib.envelope_points
        assert envelope.x.shape == envelope.y.shape == (2, fake_lib.envelope_points)
        assert_allclose(envelope.x.sum(axis=0), 1.0)
        assert_allclose(envelope.y.sum(axis=0), 1.0)
        assert np.all(envelope.temperature > 0.0)

    def test_uses_reported_sizes(self, fake_lib, blend):
        fake_lib.envelope_strict = False
        blend.build_phase_envelope("")
        envelope = blend.phase_envelope()
        assert envelope.rhomolar_liq.shape == (fake_lib.envelope_points,)

    def test_grows_past_default_guess(self, fake_lib, blend):
        fake_lib.envelope_points = 300
        blend.build_phase_envelope("")
        envelope = blend.phase_envelope()
        assert len(envelope) == 300
        assert envelope.x.shape == (2, 300)

    def test_unbuilt_envelope_raises(self, blend):
        with pytest.raises(CoolPropError, match="has not been built"):
            blend.phase_envelope()

    def test_empty_envelope(self, fake_lib, blend):
        fake_lib.AbstractState_get_phase_envelope_data_checkedMemory = lambda *args: None
        envelope = blend.phase_envelope()
        assert len(envelope) == 0
        assert envelope.x.shape == (0, 0)

    def test_ceiling(self, fake_lib, blend, monkeypatch):
        monkeypatch.setattr(abstract_state_module, "PHASE_ENVELOPE_POINT_CEILING", 1024)
        fake_lib.envelope_points = 5000
        blend.build_phase_envelope("")
        with pytest.raises(BufferLimitError, match="checkedMemory"):
            blend.phase_envelope()

    def test_regrows_when_reported_sizes_exceed_buffers(self, fake_lib, blend):
        fake_lib.envelope_strict = False
        fake_lib.envelope_size_hint = (10, 1)
        blend.build_phase_envelope("")
        envelope = blend.phase_envelope()
        assert fake_lib.envelope_requests == [(0, 0), (10, 1), (80, 2)]
        assert len(envelope) == fake_lib.envelope_points
        assert envelope.x.shape == envelope.y.shape == (2, fake_lib.envelope_points)
        assert_allclose(envelope.x.sum(axis=0), 1.0)

    def test_unrelated_failure_is_not_retried(self, fake_lib, blend):
        fake_lib.envelope_strict = False
        fake_lib.envelope_error = "Phase envelope tracing did not converge"
        blend.build_phase_envelope("")
        with pytest.raises(CoolPropError, match="did not converge"):
            blend.phase_envelope()
        assert fake_lib.envelope_requests == [(0, 0), (fake_lib.envelope_points, 2)]


class TestSpinodalAndCriticalPoints:
    def test_spinodal_is_trimmed(self, fake_lib, blend):
        blend.build_spinodal()
        curve = blend.spinodal_data()
        assert curve.tau.shape == curve.delta.shape == curve.m1.shape == (30,)
        assert np.all(np.isfinite(curve.tau))

    def test_spinodal_grows(self, fake_lib, blend):
        fake_lib.spinodal_points = 300
        blend.build_spinodal()
        assert len(blend.spinodal_data().tau) == 300

    def test_spinodal_stops_at_ceiling(self, fake_lib, blend):
        fake_lib.spinodal_points = 10_000
        blend.build_spinodal()
        assert len(blend.spinodal_data().tau) == abstract_state_module.SPINODAL_CEILING

    def test_critical_points(self, blend):
        points = blend.critical_points()
        assert points == [CriticalPoint(345.0, 5.0e6, 6500.0, True)]

    def test_many_critical_points(self, fake_lib, blend):
        fake_lib.critical_point_list = [
            (300.0 + i, 4.0e6 + i, 6000.0, i % 2 == 0) for i in range(10)
        ]
        points = blend.critical_points()
        assert len(points) == 10
        assert [p.stable for p in points] == [i % 2 == 0 for i in range(10)]

    def test_no_critical_points(self, fake_lib, blend):
        fake_lib.critical_point_list = []
        assert blend.critical_points() == []
