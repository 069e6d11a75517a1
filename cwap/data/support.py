import numpy as np


# Data/Instance supporting functions
def initialize_instance_functional_parameters():
    """
    Initializes the various instance parameters for the ConsultingWorkforceProblem object.

    Returns:
        dict: A dictionary containing the initialized instance parameters.

    This function initializes the hyperparameters and toggles for the ConsultingWorkforceProblem object. They
    control which version of the allocation model gets built (location gating, outsourcing, unfilled-demand
    penalty, integrality), how the solver is called, and the grids swept by the sensitivity experiments.

    Note: The analyst can modify the default parameter values by specifying new values in this initialization
    function or by passing them as arguments when calling the ConsultingWorkforceProblem object methods.
    """

    mdl_p = {

        # Model Variant Toggles
        "eligibility_mode": "Unrestricted",  # "Strict", "Remote Allowed", or "Unrestricted"
        "outsourcing": False, "unfilled_penalty": False, "unfilled_definition": False, "integer": True,

        # Pyomo General Parameters
        "solver_name": "cbc", "pyomo_max_time": 60, "pyomo_tee": False, "provide_executable": False,
        "executable": None, "exe_extension": False,

        # Infeasibility Handling
        "diagnose_infeasibility": True, "write_infeasibility_logs": False, "infeasibility_log_folder": None,
        "feasibility_tolerance": 1e-6,

        # Sensitivity Analysis (start, stop, step)
        "demand_variability_sweep": (-0.55, 0.50, 0.125), "outsourcing_cost_sweep": (1.0, 2.5, 0.125),
        "client_penalty_sweep": (0.0, 2.0, 0.125), "dual_demand_variability": 0.5,
        "sweep_integer": True,  # Drop integrality during sweeps when False (faster, but a relaxation)

        # Solution Handling
        "add_to_dict": True, "set_to_instance": True, "check_invariants": True,
    }

    return mdl_p


def round_half_away(values):
    """
    Rounds to the nearest integer with halves going away from zero (2.5 -> 3, -2.5 -> -3)
    """
    values = np.asarray(values, dtype=float)
    return (np.sign(values) * np.floor(np.abs(values) + 0.5)).astype(int)


def level_order(p):
    """
    Level indices sorted by declared seniority (most senior first, ties by position)
    """
    return sorted(p['L'], key=lambda l: (p['seniority'][l], l))
