"""Shared fixtures: solver selection and small hand-built instances with known optima."""

import numpy as np
import pytest

from cwap.data.adjustments import parameter_sets_additions
from cwap.data.support import initialize_instance_functional_parameters

# Solvers tried in order; solver-dependent tests are skipped if none of them is installed
candidate_solvers = ["appsi_highs", "cbc", "glpk"]


def available_solver():
    try:
        from pyomo.environ import SolverFactory
    except ImportError:
        return None
    for name in candidate_solvers:
        try:
            solver = SolverFactory(name)
            if solver is not None and solver.available(exception_flag=False):
                return name
        except Exception:  # noqa: BLE001 - a broken solver plugin just means "not available"
            continue
    return None


@pytest.fixture(scope="session")
def solver_name():
    name = available_solver()
    if name is None:
        pytest.skip("No MIP solver (appsi_highs, cbc or glpk) available")
    return name


@pytest.fixture
def mdl_p(solver_name):
    """Default model parameters pointed at the available solver."""
    mdl_p = initialize_instance_functional_parameters()
    mdl_p["solver_name"] = solver_name
    mdl_p["pyomo_max_time"] = 30
    return mdl_p


def two_city_parameters(travel_budget=0.0):
    """
    One level, homes and projects in London and Paris. London has 3 consultants, Paris 1. Project 1 (London)
    needs 2 and project 2 (Paris) needs 3. Sending someone across costs 100.
    """
    p = {"levels": ["Consultant"], "seniority": [1], "homes": ["London", "Paris"],
         "locations": ["London", "Paris"], "projects": [1, 2], "project_location": [0, 1],
         "pool": [[3], [1]], "demand": [[2], [3]], "daily_rate": [[1000.0], [1000.0]],
         "daily_salary": [400.0], "bench_limit": [1.0], "travel_cost": [[0.0, 100.0], [100.0, 0.0]],
         "working_days": 20, "travel_budget": travel_budget, "demand_variability": 0.0}
    return parameter_sets_additions(p)


def manager_consultant_parameters(manager_pool=4, manager_demand=0, consultant_pool=0, consultant_demand=0,
                                  manager_bench_limit=0.5, preference=None):
    """
    Two levels (Manager more senior than Consultant), one home and one project in London. The manager pool may
    only bench `manager_bench_limit` of its headcount.
    """
    p = {"levels": ["Manager", "Consultant"], "seniority": [1, 2], "homes": ["London"],
         "locations": ["London"], "projects": [1], "project_location": [0],
         "pool": [[manager_pool, consultant_pool]], "demand": [[manager_demand, consultant_demand]],
         "daily_rate": [[1500.0, 1000.0]], "daily_salary": [600.0, 400.0],
         "bench_limit": [manager_bench_limit, 0.5], "travel_cost": [[0.0]],
         "working_days": 20, "travel_budget": 0.0, "demand_variability": 0.0,
         "outsourcing_cost": [1.5, 1.5], "client_penalty": [1.0, 1.0]}
    if preference is not None:
        p["preference"] = preference
    return parameter_sets_additions(p)


def firm_parameters():
    """
    Three levels, two homes and three projects across two cities. Every bench limit is 1.0 so any allocation
    (including assigning nobody) is feasible.
    """
    p = {"levels": ["Manager", "Senior Consultant", "Consultant"], "seniority": [1, 2, 3],
         "homes": ["London", "Dublin"], "locations": ["London", "Dublin"], "projects": [11, 12, 13],
         "project_location": [0, 1, 1],
         "pool": [[2, 3, 4], [1, 2, 3]],
         "demand": [[1, 2, 3], [1, 1, 2], [0, 3, 2]],
         "daily_rate": [[1800.0, 1300.0, 900.0], [1700.0, 1200.0, 850.0], [1900.0, 1400.0, 950.0]],
         "daily_salary": [800.0, 550.0, 350.0], "bench_limit": [1.0, 1.0, 1.0],
         "travel_cost": [[0.0, 400.0], [450.0, 0.0]],
         "preference": [[1, 0], [1, 1], [0, 1]],
         "outsourcing_cost": [1.5, 1.5, 1.5], "client_penalty": [0.5, 0.5, 0.5],
         "working_days": 20, "travel_budget": 2000.0, "demand_variability": 0.0, "remote_penalty": 0.7}
    return parameter_sets_additions(p)


@pytest.fixture
def two_city():
    return two_city_parameters()


@pytest.fixture
def firm():
    return firm_parameters()


@pytest.fixture
def firm_copy():
    """Second independent copy, for comparing against the fixture after something runs."""
    return firm_parameters()


def assert_array_equal(actual, expected):
    np.testing.assert_allclose(np.asarray(actual, dtype=float), np.asarray(expected, dtype=float), atol=1e-6)
