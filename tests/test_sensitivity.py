"""Tests for the sensitivity sweeps and the shadow price analysis."""

import numpy as np
import pytest

pytest.importorskip("pyomo.environ")

from cwap.data.adjustments import adjust_demand, parameter_snapshot  # noqa: E402
from cwap.errors import ModelBuildError  # noqa: E402
from cwap.solutions.handling import profit_round_trip_gap  # noqa: E402
from cwap.solutions.optimization import allocation_model_build, solve_pyomo_model  # noqa: E402
from cwap.solutions.sensitivity import (  # noqa: E402
    client_penalty_sensitivity,
    demand_variability_sensitivity,
    dual_value_analysis,
    experiment_model_parameters,
    outsourcing_cost_sensitivity,
    run_parameter_sweep,
    sweep_values,
)

from conftest import assert_array_equal, manager_consultant_parameters  # noqa: E402


def objectives(results):
    return [record["solution"]["objective"] for record in results["records"]]


def non_increasing(values):
    return all(later <= earlier + 1e-6 for earlier, later in zip(values, values[1:]))


def non_decreasing(values):
    return all(later >= earlier - 1e-6 for earlier, later in zip(values, values[1:]))


class TestSweepValues:
    def test_demand_variability_grid(self):
        values = sweep_values(-0.55, 0.50, 0.125)
        assert len(values) == 9
        assert values[0] == -0.55
        assert values[-1] == pytest.approx(0.45)

    def test_grid_includes_the_endpoint_when_it_lands_on_it(self):
        values = sweep_values(1.0, 2.5, 0.125)
        assert len(values) == 13
        assert values[-1] == 2.5
        assert len(sweep_values(0.0, 2.0, 0.125)) == 17

    def test_grid_is_ascending(self):
        values = sweep_values(0.0, 2.0, 0.125)
        assert values == sorted(values)

    def test_step_must_be_positive(self):
        with pytest.raises(ValueError, match="positive"):
            sweep_values(0.0, 1.0, 0.0)


class TestParameterSweep:
    def test_sweep_continues_past_infeasible_points(self, mdl_p):
        # Managers can bench at most 2 of 4, so they need 2 manager roles to fill
        p = manager_consultant_parameters(manager_pool=4, manager_demand=2, manager_bench_limit=0.5)
        results = demand_variability_sensitivity(p, mdl_p, values=[0.0, -1.0], printing=False)
        first, second = results["records"]

        assert first["value"] == -1.0
        assert first["status"] == "Infeasible"
        assert first["solution"] is None
        assert first["error"].startswith("DemandVariability=-1.0:")
        assert "bench_limit" in first["error"]
        assert first["error"].count("[parameters:") == 1
        assert first["parameters"]["demand_variability"] == -1.0

        assert second["status"] == "Optimal"
        assert second["solution"]["x"][0, 0, 0, 0] == pytest.approx(2)

        rows = results["rows"]
        assert list(rows["Status"]) == ["Infeasible", "Infeasible", "Optimal", "Optimal"]
        assert rows["Profit"].isna().sum() == 2
        assert list(results["summary"]["Status"]) == ["Infeasible", "Optimal"]

    def test_rows_are_ordered_by_value_project_and_seniority(self, mdl_p, firm):
        results = demand_variability_sensitivity(firm, mdl_p, values=[0.5, -0.5, 0.0], printing=False)
        rows = results["rows"]

        assert list(rows.columns) == ["DemandVariability", "Project", "Profit", "Level", "Demand", "Assigned",
                                      "Status"]
        assert len(rows) == 27
        assert list(rows["DemandVariability"]) == [-0.5] * 9 + [0.0] * 9 + [0.5] * 9
        assert list(rows["Project"][:9]) == [11, 11, 11, 12, 12, 12, 13, 13, 13]
        assert list(rows["Level"][:3]) == ["Manager", "Senior Consultant", "Consultant"]
        assert_array_equal(rows["Demand"][18:], adjust_demand(firm["demand"], 0.5).flatten())

    def test_baseline_parameters_are_never_modified(self, mdl_p, firm, firm_copy):
        demand_variability_sensitivity(firm, mdl_p, values=[-0.5, 0.5], printing=False)
        outsourcing_cost_sensitivity(firm, mdl_p, values=[2.0], printing=False)
        assert firm["demand_variability"] == 0.0
        assert_array_equal(firm["adjusted_demand"], firm_copy["adjusted_demand"])
        assert_array_equal(firm["outsourcing_cost"], firm_copy["outsourcing_cost"])

    def test_each_point_solves_its_own_snapshot(self, mdl_p, firm):
        mdl_p = {**mdl_p, "sweep_integer": False}
        results = demand_variability_sensitivity(firm, mdl_p, values=[-0.3, 0.25], printing=False)

        for record in results["records"]:
            snapshot = parameter_snapshot(firm, demand_variability=record["value"])
            exp_mdl_p = experiment_model_parameters(mdl_p)
            fresh = solve_pyomo_model(allocation_model_build(snapshot, exp_mdl_p), snapshot, exp_mdl_p)
            assert record["solution"]["objective"] == pytest.approx(fresh["objective"], abs=1e-6)
            assert_array_equal(record["p"]["adjusted_demand"], snapshot["adjusted_demand"])

    def test_non_swept_parameters_reset_to_defaults(self, mdl_p, firm):
        shifted = parameter_snapshot(firm, demand_variability=0.3)
        results = outsourcing_cost_sensitivity(shifted, mdl_p, values=[1.5], printing=False)
        record = results["records"][0]
        assert record["p"]["demand_variability"] == 0.0
        assert_array_equal(record["p"]["adjusted_demand"], firm["demand"])

    def test_explicit_fixed_values(self, mdl_p, firm):
        records = run_parameter_sweep(firm, experiment_model_parameters(mdl_p, unfilled_penalty=True),
                                      "client_penalty", [1.0], fixed={"demand_variability": 0.25}, printing=False)
        assert records[0]["p"]["demand_variability"] == 0.25
        assert records[0]["parameters"]["client_penalty"] == 1.0

    def test_sweeping_remote_parameters_rebuilds_revenue(self, mdl_p, firm):
        exp_mdl_p = experiment_model_parameters(mdl_p, eligibility_mode="Remote Allowed")
        for parameter, values in [("remote_penalty", [0.3, 0.9]), ("preference", [0, 1])]:
            records = run_parameter_sweep(firm, exp_mdl_p, parameter, values, printing=False)
            for record in records:
                assert record["status"] == "Optimal"
                assert profit_round_trip_gap(record["solution"]) < 1e-3
                fresh = solve_pyomo_model(allocation_model_build(record["p"], exp_mdl_p), record["p"], exp_mdl_p)
                assert record["solution"]["objective"] == pytest.approx(fresh["objective"], abs=1e-6)

    def test_build_errors_stop_the_sweep(self, mdl_p, firm):
        firm["preference"] = np.ones((2, 2))
        with pytest.raises(ModelBuildError):
            demand_variability_sensitivity(firm, {**mdl_p, "eligibility_mode": "Strict"}, values=[0.0],
                                           printing=False)


class TestExperiments:
    def test_profit_non_decreasing_in_demand(self, mdl_p, firm):
        results = demand_variability_sensitivity(firm, {**mdl_p, "sweep_integer": False}, printing=False)
        assert len(results["records"]) == 9
        assert all(record["status"] == "Optimal" for record in results["records"])
        assert non_decreasing(objectives(results))

    def test_profit_non_increasing_in_outsourcing_cost(self, mdl_p, firm):
        # Twice the demand of the whole pool
        busy = parameter_snapshot(firm, demand=firm["demand"] * 2)
        results = outsourcing_cost_sensitivity(busy, {**mdl_p, "sweep_integer": False},
                                               values=[1.0, 1.5, 2.0, 2.5], printing=False)
        assert non_increasing(objectives(results))
        assert "Outsourced" in results["rows"].columns

        # At cost 1.0 outsourcing is cheaper than the rate, so the demand our pool can't cover is outsourced
        cheapest = results["records"][0]["solution"]
        assert np.sum(cheapest["outsource"]) > 0

    def test_outsourcing_never_exceeds_demand(self, mdl_p, firm):
        results = outsourcing_cost_sensitivity(firm, mdl_p, values=[1.0], printing=False)
        solution, p = results["records"][0]["solution"], results["records"][0]["p"]
        assert np.all(solution["assigned"] + solution["outsource"] <= p["adjusted_demand"] + 1e-6)

    def test_profit_non_increasing_in_client_penalty(self, mdl_p, firm):
        results = client_penalty_sensitivity(firm, {**mdl_p, "sweep_integer": False},
                                             values=[0.0, 0.5, 1.0, 2.0], printing=False)
        assert non_increasing(objectives(results))
        assert list(results["rows"].columns) == ["ClientSatisfactionPenalty", "Project", "Profit", "Level",
                                                 "Demand", "Unfilled", "Status"]
        unfilled = results["records"][0]["solution"]["unfilled"]
        assert np.all(unfilled >= -1e-6)

    def test_summary_has_profit_terms(self, mdl_p, firm):
        results = client_penalty_sensitivity(firm, mdl_p, values=[0.5], printing=False)
        summary = results["summary"]
        assert list(summary.columns[:3]) == ["ClientSatisfactionPenalty", "Status", "Objective"]
        assert summary["TotalProfit"][0] == pytest.approx(summary["Objective"][0], abs=1e-3)
        assert summary["UnfilledPenalty"][0] >= 0


class TestDualValueAnalysis:
    def test_duals_at_default_demand_variability(self, mdl_p, firm):
        results = dual_value_analysis(firm, mdl_p, printing=False)
        rows = results["rows"]
        assert results["records"][0]["p"]["demand_variability"] == 0.5
        assert results["records"][0]["solution"]["integer"] is False
        assert len(rows) > 0
        assert set(rows["DemandVariability"]) == {0.5}
        assert set(rows["Authoritative"]) == {True}
        assert set(rows["Constraint"]) <= {"supply_balance", "bench_limit", "demand_cap", "travel_budget"}

    def test_relaxation_even_when_sweeps_are_integer(self, mdl_p):
        p = manager_consultant_parameters(manager_pool=4, consultant_demand=3, manager_bench_limit=1.0)
        results = dual_value_analysis(p, {**mdl_p, "sweep_integer": True}, demand_variability=0.0,
                                      printing=False)
        duals = results["records"][0]["solution"]["duals"]
        # The consultant role is capped and filled by managers at 1000/day for 20 days
        assert abs(duals[("demand_cap", (0, 1))]) == pytest.approx(20000)
