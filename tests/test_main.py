"""Tests for the problem class, the command line interface and the error types."""

import os

import pytest

from cwap.__main__ import build_parser, main
from cwap.data.processing import export_parameters_data
from cwap.errors import (CWAPError, DataLoadError, EXIT_CODES, InfeasibleError, ModelBuildError, SolverError,
                         SolverTimeout, UnboundedError, format_parameters)
from cwap.main import ConsultingWorkforceProblem

from conftest import firm_parameters, manager_consultant_parameters


class TestErrors:
    def test_parameters_are_part_of_the_message(self):
        error = InfeasibleError("Model is infeasible.", parameters={"demand_variability": -0.175},
                                constraints=["bench_limit"])
        assert str(error) == ("Model is infeasible. Offending constraints: bench_limit. "
                              "[parameters: demand_variability=-0.175]")
        assert error.message == "Model is infeasible. Offending constraints: bench_limit."

    def test_hierarchy(self):
        for error_class in [DataLoadError, ModelBuildError, InfeasibleError, UnboundedError, SolverTimeout]:
            assert issubclass(error_class, CWAPError)
            assert issubclass(error_class, ValueError)
        for error_class in [InfeasibleError, UnboundedError, SolverTimeout]:
            assert issubclass(error_class, SolverError)
        assert not issubclass(ModelBuildError, SolverError)

    def test_statuses_and_exit_codes(self):
        assert (InfeasibleError("x").status, InfeasibleError("x").exit_code) == ("Infeasible", 2)
        assert (UnboundedError("x").status, UnboundedError("x").exit_code) == ("Unbounded", 2)
        assert (SolverTimeout("x").status, SolverTimeout("x").exit_code) == ("Timeout", 4)
        assert DataLoadError("x").exit_code == EXIT_CODES["DataLoadError"] == 3
        assert ModelBuildError("x").exit_code == 3

    def test_format_parameters(self):
        assert format_parameters({}) == ""
        assert format_parameters({"a": 1.23456789, "b": "x"}) == "a=1.234568, b=x"


class TestProblemClass:
    def test_random_instance(self):
        instance = ConsultingWorkforceProblem(N=4, seed=5, printing=False)
        assert instance.parameters["demand"].shape == (4, 5)
        assert instance.mdl_p["eligibility_mode"] == "Unrestricted"

    def test_parameters_passed_directly(self):
        p = firm_parameters()
        raw = {key: p[key] for key in ["levels", "homes", "locations", "projects", "project_location", "pool",
                                       "demand", "daily_rate", "daily_salary", "bench_limit", "travel_cost",
                                       "working_days", "travel_budget", "demand_variability"]}
        instance = ConsultingWorkforceProblem(parameters=raw, printing=False)
        assert "adjusted_demand" in instance.parameters

    def test_import_from_instance_folder(self, tmp_path):
        export_parameters_data(firm_parameters(), str(tmp_path / "Firm"))
        instance = ConsultingWorkforceProblem("Firm", instances_folder=str(tmp_path), printing=False)
        assert list(instance.parameters["projects"]) == [11, 12, 13]
        assert instance.export_paths["Results"] == os.path.join(str(tmp_path), "Firm", "Results")

    def test_missing_instance_folder(self, tmp_path):
        with pytest.raises(DataLoadError):
            ConsultingWorkforceProblem("Missing", instances_folder=str(tmp_path), printing=False)

    def test_reset_functional_parameters(self, capsys):
        instance = ConsultingWorkforceProblem(parameters=firm_parameters(), printing=False)
        instance.reset_functional_parameters({"outsourcing": True, "not_a_parameter": 1})
        assert instance.mdl_p["outsourcing"] is True
        assert "not_a_parameter" not in instance.mdl_p
        assert "WARNING" in capsys.readouterr().out

        # Every call starts from the defaults again
        instance.reset_functional_parameters()
        assert instance.mdl_p["outsourcing"] is False

    def test_invalid_eligibility_mode(self):
        instance = ConsultingWorkforceProblem(parameters=firm_parameters(), printing=False)
        with pytest.raises(ModelBuildError, match="Hybrid"):
            instance.reset_functional_parameters({"eligibility_mode": "Hybrid"})

    def test_no_solution_yet(self):
        instance = ConsultingWorkforceProblem(parameters=firm_parameters(), printing=False)
        with pytest.raises(ValueError, match="solve this problem first"):
            instance.solution_tables()

    def test_solve_and_export(self, solver_name, tmp_path):
        instance = ConsultingWorkforceProblem(parameters=firm_parameters(), printing=False)
        solution = instance.solve_pyomo_model({"solver_name": solver_name, "eligibility_mode": "Remote Allowed"})
        assert solution["name"] == "Remote Allowed (MIP)"
        assert solution["invariant_violations"] == []
        assert instance.solution is solution

        instance.solve_pyomo_model({"solver_name": solver_name, "eligibility_mode": "Remote Allowed"})
        assert list(instance.solutions) == ["Remote Allowed (MIP)", "Remote Allowed (MIP)_2"]

        tables = instance.solution_tables("Remote Allowed (MIP)")
        assert set(tables) == {"Summary", "Allocation", "Demand", "Travel", "Bench", "Duals"}
        assert "WFH" in tables["Allocation"].columns
        assert tables["Allocation"]["Quantity"].sum() == pytest.approx(solution["assigned"].sum())
        assert tables["Duals"].empty

        filepaths = instance.export_solution_results(str(tmp_path))
        assert os.path.exists(filepaths["Allocation"])
        assert os.path.basename(filepaths["Summary"]) == "Remote Allowed (MIP) Summary.csv"

    def test_infeasible_solve_raises(self, solver_name):
        p = manager_consultant_parameters(manager_pool=4, manager_bench_limit=0.5)
        instance = ConsultingWorkforceProblem(parameters=p, printing=False)
        with pytest.raises(InfeasibleError):
            instance.solve_pyomo_model({"solver_name": solver_name})
        assert instance.solutions == {}

    def test_sensitivity_experiments(self, solver_name, tmp_path):
        instance = ConsultingWorkforceProblem(parameters=firm_parameters(), printing=False)
        p_dict = {"solver_name": solver_name, "sweep_integer": False}
        instance.demand_variability_sensitivity(p_dict, values=[-0.25, 0.25])
        instance.outsourcing_cost_sensitivity(p_dict, values=[1.5])
        instance.client_penalty_sensitivity(p_dict, values=[0.5, 1.0])
        instance.dual_value_analysis(p_dict)
        assert set(instance.sensitivity) == {"Demand Variability", "Outsourcing Cost",
                                             "Client Satisfaction Penalty", "Dual Values"}
        assert len(instance.sensitivity["Client Satisfaction Penalty"]["records"]) == 2

        filepaths = instance.export_sensitivity_results(str(tmp_path))
        assert os.path.exists(filepaths["Demand Variability"]["Rows"])
        assert os.path.exists(filepaths["Dual Values"]["Summary"])


class TestCommandLine:
    def test_parser_defaults(self):
        args = build_parser().parse_args(["Example"])
        assert args.experiment == "solve"
        assert args.mode == "Unrestricted"
        assert args.relax is False

    def test_unknown_mode_is_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["Example", "--mode", "Hybrid"])

    def test_solve(self, solver_name, tmp_path):
        export_parameters_data(firm_parameters(), str(tmp_path / "Firm"))
        output = tmp_path / "out"
        code = main([str(tmp_path / "Firm"), "--solver", solver_name, "--output", str(output), "--quiet"])
        assert code == EXIT_CODES["Success"]
        assert os.path.exists(output / "Unrestricted (MIP) Allocation.csv")

    def test_sensitivity_experiment(self, solver_name, tmp_path):
        export_parameters_data(firm_parameters(), str(tmp_path / "Firm"))
        output = tmp_path / "out"
        code = main([str(tmp_path / "Firm"), "--experiment", "duals", "--solver", solver_name,
                     "--output", str(output), "--quiet"])
        assert code == EXIT_CODES["Success"]
        assert os.path.exists(output / "Dual Values Rows.csv")

    def test_infeasible_instance(self, solver_name, tmp_path, capsys):
        p = manager_consultant_parameters(manager_pool=4, manager_bench_limit=0.5)
        export_parameters_data(p, str(tmp_path / "Tight"))
        code = main([str(tmp_path / "Tight"), "--solver", solver_name, "--quiet"])
        assert code == EXIT_CODES["Infeasible"]
        assert "bench_limit" in capsys.readouterr().err

    def test_missing_instance(self, tmp_path):
        code = main([str(tmp_path / "Missing"), "--quiet"])
        assert code == EXIT_CODES["DataLoadError"]
