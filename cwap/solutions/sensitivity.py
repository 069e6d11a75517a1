"""
Sensitivity experiments on the workforce allocation model.

Each experiment sweeps one scalar parameter over a grid of values and re-solves the model at every point:

1. The model is built once from the experiment's baseline snapshot so the variable domains stay fixed.
2. For each value (ascending) a new parameter snapshot is made from the baseline with the swept value set.
3. Every constraint family and the objective are rebuilt from that snapshot, and the model is re-solved.
4. The status, objective, profit terms, primal values and duals are recorded. A point that comes back
   infeasible, unbounded or out of time is recorded with its error and the sweep moves on to the next value.

Parameters that aren't being swept are reset to `experiment_defaults` (or left at their baseline values) at the
start of every experiment, so nothing carries over from one experiment to the next.

Experiments
-----------
- `demand_variability_sensitivity`: DemandVariability over [-0.55, 0.50] step 0.125
- `outsourcing_cost_sensitivity`: OutsourcingCost (all levels) over [1.0, 2.5] step 0.125, outsourcing enabled
- `client_penalty_sensitivity`: ClientSatisfactionPenalty (all levels) over [0.0, 2.0] step 0.125, unfilled
  demand penalty enabled
- `dual_value_analysis`: shadow prices of the continuous relaxation pinned at DemandVariability = 0.5
"""
import copy
import numpy as np
import pandas as pd

# cwap modules
import cwap.globals
import cwap.data.adjustments
import cwap.data.support
import cwap.solutions.handling
import cwap.solutions.optimization
from cwap.errors import SolverError, format_parameters

# Values the parameters that aren't being swept are reset to at the start of each experiment
experiment_defaults = {'demand_variability': 0.0}


def sweep_values(start, stop, step):
    """
    Grid of values from `start` to `stop` (inclusive, if the step lands on it) in ascending order
    """
    if step <= 0:
        raise ValueError("Sweep step must be positive.")
    num = int(np.floor((stop - start) / step + 1e-9)) + 1
    return [round(start + i * step, 10) for i in range(max(num, 0))]


def run_parameter_sweep(p, mdl_p, parameter, values, fixed=None, printing=True):
    """
    Sweeps one parameter over the given values, re-solving the model at each one.

    Parameters:
        p (dict): Baseline instance parameters. Never modified.
        mdl_p (dict): Model parameters for the experiment
        parameter (str): Key of the parameter to sweep ('demand_variability', 'outsourcing_cost', ...). Scalar
            values applied to an array parameter set every entry of the array.
        values (list): Values to sweep (solved in ascending order)
        fixed (dict, optional): Values the other parameters are reset to first. Defaults to `experiment_defaults`
            (minus the swept parameter).
        printing (bool): Whether to print progress

    Returns:
        list: One record per sweep point with keys 'value', 'status', 'solution' (None on failure), 'error',
        'p' (the snapshot solved) and 'parameters' (the parameter values in effect)
    """
    if fixed is None:
        fixed = {key: val for key, val in experiment_defaults.items() if key != parameter}
    label = cwap.globals.sweep_labels.get(parameter, parameter)

    # Experiment baseline: every non-swept parameter at its fixed value
    baseline = cwap.data.adjustments.parameter_snapshot(p, **fixed)

    # Variable domains are fixed for the whole sweep
    model = cwap.solutions.optimization.allocation_model_build(baseline, mdl_p, printing=False)

    if printing:
        print(f"Sweeping {label} over {len(values)} values...")

    records = []
    for val in sorted(values):
        snapshot = cwap.data.adjustments.parameter_snapshot(baseline, **{parameter: val})
        parameters = cwap.data.adjustments.scalar_parameters(snapshot)
        parameters[parameter] = val
        record = {'value': val, 'p': snapshot, 'parameters': parameters}

        try:
            model = cwap.solutions.optimization.rebuild_parameter_dependents(model, snapshot, mdl_p)
            solution = cwap.solutions.optimization.solve_pyomo_model(model, snapshot, mdl_p)
            solution = cwap.solutions.handling.evaluate_solution(solution, snapshot, mdl_p)
            record.update({'status': "Optimal", 'solution': solution, 'error': ""})

            if printing:
                print(f"{label} = {val}: Optimal [Z = {round(solution['objective'], 2)}]")

        # Failures stay local to this sweep point
        except SolverError as error:
            error.parameters.update(parameters)
            message = f"{error.message} [parameters: {format_parameters(error.parameters)}]"
            record.update({'status': error.status or "Error", 'solution': None,
                           'error': f"{label}={val}: {message}"})

            if printing:
                print(f"{label} = {val}: {record['status']}. Proceeding with next value.")

        records.append(record)

    return records


def sweep_summary(records, parameter):
    """
    One row per sweep point: the swept value, status, objective and profit terms (NaN for failed points)
    """
    label = cwap.globals.sweep_labels.get(parameter, parameter)
    rows = []
    for record in records:
        row = {label: record['value'], "Status": record['status']}
        solution = record['solution']
        row["Objective"] = solution['objective'] if solution is not None else np.nan
        for term in cwap.globals.profit_components:
            row[term] = solution['profit'][term] if solution is not None else np.nan
        row["Error"] = record['error']
        rows.append(row)
    return pd.DataFrame(rows, columns=[label, "Status", "Objective"] + cwap.globals.profit_components + ["Error"])


def sweep_rows(records, parameter, extra=None):
    """
    One row per (sweep point, project, level): ordered by sweep value, then project, then level seniority.
    Columns: <swept parameter>, Project, Profit, Level, Demand (adjusted), plus any 'extra' columns taken from the
    solution arrays ({column name: solution key}) and the status of the sweep point.
    """
    label = cwap.globals.sweep_labels.get(parameter, parameter)
    extra = extra if extra is not None else {}
    rows = []
    for record in records:
        p, solution = record['p'], record['solution']
        for j in p['P']:
            for l in cwap.data.support.level_order(p):
                row = {label: record['value'], "Project": p['projects'][j],
                       "Profit": solution['objective'] if solution is not None else np.nan,
                       "Level": p['levels'][l], "Demand": p['adjusted_demand'][j, l]}
                for column, key in extra.items():
                    row[column] = solution[key][j, l] if solution is not None else np.nan
                row["Status"] = record['status']
                rows.append(row)
    return pd.DataFrame(rows, columns=[label, "Project", "Profit", "Level", "Demand"] + list(extra) + ["Status"])


def experiment_model_parameters(mdl_p, **toggles):
    """
    Copy of the model parameters for an experiment (sweeps drop integrality if 'sweep_integer' is False)
    """
    exp_mdl_p = copy.deepcopy(mdl_p)
    exp_mdl_p['integer'] = mdl_p['sweep_integer']
    exp_mdl_p.update(toggles)
    return exp_mdl_p


def demand_variability_sensitivity(p, mdl_p, values=None, printing=True):
    """
    Sweeps the demand variability factor and records the profit and adjusted demand of each project role.

    Returns:
        dict: 'rows' (DemandVariability, Project, Profit, Level, Demand, Assigned, Status), 'summary', 'records'
    """
    if values is None:
        values = sweep_values(*mdl_p['demand_variability_sweep'])
    exp_mdl_p = experiment_model_parameters(mdl_p)

    records = run_parameter_sweep(p, exp_mdl_p, 'demand_variability', values, printing=printing)
    return {'rows': sweep_rows(records, 'demand_variability', extra={"Assigned": 'assigned'}),
            'summary': sweep_summary(records, 'demand_variability'), 'records': records}


def outsourcing_cost_sensitivity(p, mdl_p, values=None, printing=True):
    """
    Sweeps the outsourcing cost multiplier (the same value for every level) with outsourcing enabled.

    Returns:
        dict: 'rows' (OutsourcingCost, Project, Profit, Level, Demand, Outsourced, Status), 'summary', 'records'
    """
    if values is None:
        values = sweep_values(*mdl_p['outsourcing_cost_sweep'])
    exp_mdl_p = experiment_model_parameters(mdl_p, outsourcing=True)

    records = run_parameter_sweep(p, exp_mdl_p, 'outsourcing_cost', values, printing=printing)
    return {'rows': sweep_rows(records, 'outsourcing_cost', extra={"Outsourced": 'outsource'}),
            'summary': sweep_summary(records, 'outsourcing_cost'), 'records': records}


def client_penalty_sensitivity(p, mdl_p, values=None, printing=True):
    """
    Sweeps the client satisfaction penalty (the same value for every level) with the unfilled demand penalty on.

    Returns:
        dict: 'rows' (ClientSatisfactionPenalty, Project, Profit, Level, Demand, Unfilled, Status), 'summary',
        'records'
    """
    if values is None:
        values = sweep_values(*mdl_p['client_penalty_sweep'])
    exp_mdl_p = experiment_model_parameters(mdl_p, unfilled_penalty=True)

    records = run_parameter_sweep(p, exp_mdl_p, 'client_penalty', values, printing=printing)
    return {'rows': sweep_rows(records, 'client_penalty', extra={"Unfilled": 'unfilled'}),
            'summary': sweep_summary(records, 'client_penalty'), 'records': records}


def dual_value_analysis(p, mdl_p, demand_variability=None, printing=True):
    """
    Solves the continuous relaxation at a single demand variability (0.5 by default) and reports the shadow
    price of every constraint. Duals are only extracted from the relaxation since they aren't well defined once
    integrality is enforced.

    Returns:
        dict: 'rows' (DemandVariability, Constraint, Index, Dual, Authoritative), 'summary', 'records'
    """
    if demand_variability is None:
        demand_variability = mdl_p['dual_demand_variability']
    exp_mdl_p = copy.deepcopy(mdl_p)
    exp_mdl_p['integer'] = False

    records = run_parameter_sweep(p, exp_mdl_p, 'demand_variability', [demand_variability], printing=printing)
    record = records[0]
    if record['solution'] is not None:
        rows = cwap.solutions.handling.dual_rows(record['solution'], record['p'])
    else:
        rows = pd.DataFrame(columns=["Constraint", "Index", "Dual", "Authoritative"])
    rows.insert(0, "DemandVariability", demand_variability)
    return {'rows': rows, 'summary': sweep_summary(records, 'demand_variability'), 'records': records}
