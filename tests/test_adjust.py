import logging
import unittest

import numpy as np

from gibbstep.adjust import rxn_adjust
from gibbstep.hessian import hessian_diag_adj, hessian_ideal_diag
from gibbstep.jacobian import calc_ln_act_coeff_jac
from gibbstep.models import AdjustmentOptions, AdjustmentStatus, SpeciesStatus, build_state
from gibbstep.thermo import IdealSolutionPhase, RegularSolutionPhase, SingleSpeciesPhase


def _gas_plus_solid(dg, sp_status=None, options=None):
    # A, B: gas components; C: pure solid formed as C + A - B
    phases = [
        IdealSolutionPhase("gas", [0, 1], [0.0, 0.0]),
        SingleSpeciesPhase("solid", 2, 0.0),
    ]
    return build_state(
        phases,
        [[1.0, -1.0]],
        [1.0, 1.0, 2.0],
        dg=dg,
        sp_status=sp_status,
        options=options,
    )


def _all_solids(moles, dg, stoich=((1.0, -1.0),)):
    phases = [SingleSpeciesPhase(f"s{k}", k, 0.0) for k in range(len(moles))]
    return build_state(phases, [list(row) for row in stoich], moles, dg=dg, species_names=["X", "Y", "Z", "W"][: len(moles)])


class TestRegularAdjustment(unittest.TestCase):
    def test_newton_step(self):
        # s = 1/nA + 1/nB = 2, dg = 5 -> ds = -2.5
        state = _gas_plus_solid([5.0])
        status = rxn_adjust(state)
        self.assertEqual(status, AdjustmentStatus.NORMAL)
        self.assertAlmostEqual(state.ds[2], -2.5)

    def test_superconverged_reaction_is_skipped(self):
        state = _gas_plus_solid([1.0e-12])
        state.ds[2] = 0.123
        rxn_adjust(state)
        self.assertEqual(state.ds[2], 0.123)

    def test_minor_species_with_positive_dg_is_skipped(self):
        state = _gas_plus_solid([1.0], sp_status=[SpeciesStatus.MINOR])
        state.ds[2] = 0.5
        rxn_adjust(state)
        self.assertEqual(state.ds[2], 0.5)

    def test_minor_species_with_negative_dg_is_adjusted(self):
        state = _gas_plus_solid([-1.0], sp_status=[SpeciesStatus.MINOR])
        rxn_adjust(state)
        self.assertAlmostEqual(state.ds[2], 0.5)

    def test_mole_numbers_untouched_on_normal_pass(self):
        state = _gas_plus_solid([5.0])
        before = state.mole_numbers.copy()
        rxn_adjust(state)
        np.testing.assert_array_equal(state.mole_numbers, before)

    def test_activity_coefficient_correction_is_used(self):
        phases = [
            RegularSolutionPhase("liquid", [0, 2], [0.0, 0.0], [[0.0, -1.5], [-1.5, 0.0]]),
            IdealSolutionPhase("gas", [1, 3], [0.0, 0.0]),
        ]
        options = AdjustmentOptions(use_act_coeff_jacobian=True)
        state = build_state(
            phases,
            [[-1.0, 0.0], [0.0, -1.0]],
            [1.0, 2.0, 0.5, 1.0],
            dg=[-0.7, 0.3],
            options=options,
        )
        status = rxn_adjust(state)
        self.assertEqual(status, AdjustmentStatus.NORMAL)

        calc_ln_act_coeff_jac(state)
        for irxn in range(state.n_rxn):
            s = hessian_diag_adj(state, irxn, hessian_ideal_diag(state, irxn))
            self.assertGreater(s, 0.0)
            self.assertAlmostEqual(state.ds[state.ir[irxn]], -state.dg[irxn] / s)


class TestPhaseActivation(unittest.TestCase):
    def setUp(self):
        self.phases = [IdealSolutionPhase("gas", [0, 1], [0.0, 0.0])]

    def _state(self, dg):
        return build_state(self.phases, [[-1.0]], [1.0, 0.0], dg=[dg])

    def test_zeroed_species_comes_alive(self):
        state = self._state(-1.0)
        self.assertEqual(state.num_rxn_minor_zeroed, 1)
        rxn_adjust(state)
        self.assertGreater(state.ds[1], 0.0)
        self.assertAlmostEqual(state.ds[1], 1.0e-10)
        self.assertEqual(state.sp_status[0], SpeciesStatus.MAJOR)
        self.assertEqual(state.num_rxn_minor_zeroed, 0)

    def test_zeroed_species_stays_dead(self):
        for dg in (-1.0e-5, -1.0e-4, 0.0, 3.0):
            state = self._state(dg)
            state.ds[1] = 7.0
            rxn_adjust(state)
            self.assertEqual(state.ds[1], 0.0)
            self.assertEqual(state.sp_status[0], SpeciesStatus.ZEROED_MS)
            self.assertEqual(state.num_rxn_minor_zeroed, 1)


class TestSingleSpeciesElimination(unittest.TestCase):
    def test_component_runs_out(self):
        state = _all_solids([3.0, 4.0, 10.0], [2.0])
        status = rxn_adjust(state)
        self.assertEqual(status, AdjustmentStatus.COMPONENT_DELETED)
        # extent -3 pushed through the stoichiometry
        np.testing.assert_allclose(state.mole_numbers, [0.0, 7.0, 7.0])
        self.assertEqual(state.mole_numbers[0], 0.0)
        self.assertEqual(state.phase_moles[0], 0.0)
        np.testing.assert_allclose(state.phase_moles, [0.0, 7.0, 7.0])

    def test_defining_species_runs_out(self):
        state = _all_solids([3.0, 4.0, 1.0], [2.0])
        status = rxn_adjust(state)
        self.assertEqual(status, AdjustmentStatus.NONCOMPONENT_DELETED)
        self.assertEqual(state.mole_numbers[2], 0.0)
        self.assertEqual(state.phase_moles[2], 0.0)
        np.testing.assert_allclose(state.mole_numbers, [2.0, 5.0, 0.0])

    def test_negative_dg_consumes_component(self):
        state = _all_solids([3.0, 4.0, 10.0], [-2.0])
        status = rxn_adjust(state)
        self.assertEqual(status, AdjustmentStatus.COMPONENT_DELETED)
        np.testing.assert_allclose(state.mole_numbers, [7.0, 0.0, 14.0])
        self.assertEqual(state.phase_moles[1], 0.0)

    def test_returns_before_later_reactions(self):
        state = _all_solids([3.0, 4.0, 10.0, 5.0], [2.0, 2.0], stoich=((1.0, -1.0), (0.0, 1.0)))
        status = rxn_adjust(state)
        self.assertEqual(status, AdjustmentStatus.COMPONENT_DELETED)
        self.assertEqual(state.mole_numbers[3], 5.0)
        self.assertEqual(state.ds[3], 0.0)

    def test_no_limiting_species_is_not_an_elimination(self):
        # dg < 0 but no component is consumed
        state = _all_solids([3.0, 4.0, 10.0], [-2.0], stoich=((1.0, 0.0),))
        status = rxn_adjust(state)
        self.assertEqual(status, AdjustmentStatus.NORMAL)
        np.testing.assert_array_equal(state.mole_numbers, [3.0, 4.0, 10.0])

    def test_limiting_species_already_empty(self):
        state = _all_solids([0.0, 4.0, 10.0], [2.0])
        status = rxn_adjust(state)
        self.assertEqual(status, AdjustmentStatus.NORMAL)
        np.testing.assert_array_equal(state.mole_numbers, [0.0, 4.0, 10.0])
        np.testing.assert_array_equal(state.phase_moles, [0.0, 4.0, 10.0])
        np.testing.assert_array_equal(state.ds, 0.0)


class TestDiagnosticSink(unittest.TestCase):
    def test_injected_logger_receives_trace_and_elimination(self):
        sink = logging.getLogger("gibbstep_tests.adjust_sink")
        state = _all_solids([3.0, 4.0, 10.0], [2.0])
        with self.assertNoLogs("gibbstep.adjust", level="DEBUG"):
            with self.assertLogs(sink, level="DEBUG") as captured:
                status = rxn_adjust(state, logger=sink)
        self.assertEqual(status, AdjustmentStatus.COMPONENT_DELETED)
        levels = {record.levelno for record in captured.records}
        self.assertIn(logging.DEBUG, levels)
        self.assertIn(logging.INFO, levels)
        info = [record.getMessage() for record in captured.records if record.levelno == logging.INFO]
        self.assertEqual(len(info), 1)
        self.assertIn("species X", info[0])

    def test_injected_logger_receives_newton_trace(self):
        sink = logging.getLogger("gibbstep_tests.adjust_sink")
        state = _gas_plus_solid([5.0])
        with self.assertLogs(sink, level="DEBUG") as captured:
            rxn_adjust(state, logger=sink)
        self.assertTrue(any("Normal Calc" in record.getMessage() for record in captured.records))


if __name__ == "__main__":
    unittest.main()
