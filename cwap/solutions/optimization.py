"""
This module contains the **Pyomo-based optimization model** for the Consulting Workforce Allocation Problem (CWAP):
how many consultants of each level, based at each home location, are assigned to each role on each client project,
versus benched or outsourced, so that the firm's net profit is maximized.

Contents
--------
- **Model Construction**
    - `allocation_model_build`: Builds the full model (variables, constraint families, objective).
    - `define_decision_variables`: Defines the assignment/bench/unfilled/outsource variables on fixed domains.
    - `rebuild_parameter_dependents`: Deletes and re-adds every parameter-dependent constraint family and the
      objective from a parameter snapshot (used between sensitivity sweep points).
- **Constraint Families**
    - `supply_balance`, `bench_limit`, `demand_cap`, `unfilled_definition`, `travel_budget`
- **Objective**
    - `profit_expressions`: Revenue, salary, travel, unfilled penalty and outsourcing cost terms.
    - `objective_function_definition`: Maximizes total profit.
- **Solving & Diagnostics**
    - `solve_pyomo_model`: Unified wrapper to solve the model and extract the solution (primal and dual values).
    - `build_solver`, `execute_solver`: Configures and runs the selected Pyomo solver with a per-solve time limit.
    - `identify_infeasible_families`, `handle_infeasible_model`: Infeasibility diagnostics.

Workflow
--------
1. **Model Building**
    - Determine the eligible assignment cells from the eligibility mode (`data.preferences`).
    - Construct the Pyomo model (`ConcreteModel`) with the decision variables on those cells.
    - Add the constraint families and the objective for the current parameter snapshot.
1. **Solving**
    - Configure the solver (CBC, GLPK, HiGHS, Gurobi, etc.) and solve the model.
    - Map the termination condition to Optimal / Infeasible / Unbounded / Timeout.
    - Extract primal values and, for the continuous relaxation only, constraint duals (shadow prices).
1. **Infeasibility Handling**
    - Deactivate one constraint family at a time to find the families responsible, optionally write an LP file
      and a diagnostics log, and raise `InfeasibleError` with the parameter values in effect.
"""
import time
import datetime
import logging
import os
import numpy as np
from pyomo.environ import *

# cwap modules
import cwap.globals
import cwap.data.preferences
import cwap.data.adjustments
from cwap.errors import ModelBuildError, SolverError, InfeasibleError, UnboundedError, SolverTimeout

# Ignore warnings
logging.getLogger('pyomo.core').setLevel(logging.ERROR)

# Names of the constraint families (in the order they're built)
constraint_families = ['supply_balance', 'bench_limit', 'demand_cap', 'unfilled_definition', 'travel_budget']

# Termination conditions grouped by the status we report
optimal_conditions = [TerminationCondition.optimal, TerminationCondition.locallyOptimal,
                      TerminationCondition.globallyOptimal]
infeasible_conditions = [TerminationCondition.infeasible, TerminationCondition.infeasibleOrUnbounded,
                         TerminationCondition.invalidProblem]
timeout_conditions = [TerminationCondition.maxTimeLimit, TerminationCondition.maxIterations,
                      TerminationCondition.maxEvaluations]


# __________________________________________ALLOCATION MODEL COMPONENTS_________________________________________________
def allocation_model_build(p, mdl_p, printing=False):
    """
    Builds the workforce allocation model.

    Parameters:
        p (dict): Instance parameters (after `parameter_sets_additions`)
        mdl_p (dict): Model parameters (eligibility mode, toggles, solver settings)
        printing (bool, optional): Whether the procedure should print something. Default is False.

    Returns:
        ConcreteModel: Pyomo model with the decision variables, the constraint families and the objective

    The variable domains (which home/level pools may fill which project roles) are fixed here once. Anything
    that depends on a parameter value that can change during a sweep (adjusted demand, bench limits, costs) is
    built by `rebuild_parameter_dependents` so it can be replaced wholesale later on.
    """

    if printing:
        print(f"Building allocation model ({mdl_p['eligibility_mode']} eligibility, "
              f"outsourcing {'on' if mdl_p['outsourcing'] else 'off'}, "
              f"unfilled penalty {'on' if mdl_p['unfilled_penalty'] else 'off'})...")

    # Build Model
    m = ConcreteModel()

    # ___________________________________VARIABLE DEFINITION_________________________________
    m = define_decision_variables(m, p, mdl_p)

    # _______________________________CONSTRAINTS AND OBJECTIVE FUNCTION_______________________
    m = rebuild_parameter_dependents(m, p, mdl_p)

    if printing:
        print(f"Done. Model has {len(m.A)} eligible assignment cells.")

    return m  # Return model


def model_structure(mdl_p):
    """
    The model parameters that shape the variable domains. These can't change once the model is built.
    """
    return {'eligibility_mode': mdl_p['eligibility_mode'], 'integer': bool(mdl_p['integer']),
            'outsourcing': bool(mdl_p['outsourcing']),
            'unfilled': bool(mdl_p['unfilled_penalty'] or mdl_p['unfilled_definition'])}


def define_decision_variables(m, p, mdl_p):
    """
    Defines the index sets and decision variables of the allocation model.

    - `assign[h, a, j, r]`: consultants of level a from home h assigned to role level r on project j. Only
      defined on the cells allowed by the eligibility rule.
    - `bench[h, l]`: consultants of level l at home h left unassigned.
    - `unfilled[j, l]`: unfilled adjusted demand (only when the unfilled definition is active).
    - `outsource[j, l]`: externally sourced headcount (only when outsourcing is enabled).

    Headcounts are non-negative integers unless `mdl_p['integer']` is False (continuous relaxation).
    """

    # Eligible cells are fixed for the life of this model
    indices = cwap.data.preferences.eligible_assignment_indices(p, mdl_p['eligibility_mode'])
    m.eligibility = indices
    m.structure = model_structure(mdl_p)

    # Index sets
    m.A = Set(initialize=indices['A'], dimen=4, ordered=True)
    m.HL = Set(initialize=[(h, l) for h in p['H'] for l in p['L']], dimen=2, ordered=True)
    m.PL = Set(initialize=[(j, l) for j in p['P'] for l in p['L']], dimen=2, ordered=True)

    domain = NonNegativeIntegers if mdl_p['integer'] else NonNegativeReals
    m.assign = Var(m.A, within=domain)
    m.bench = Var(m.HL, within=domain)

    if m.structure['unfilled']:
        m.unfilled = Var(m.PL, within=NonNegativeReals)

    if mdl_p['outsourcing']:
        m.outsource = Var(m.PL, within=domain)

    return m


def rebuild_parameter_dependents(m, p, mdl_p):
    """
    Removes every parameter-dependent constraint family and the objective from the model (if present) and adds
    them back using the parameters in `p`. Nothing is patched in place: a sweep point always solves constraints
    built from its own parameter snapshot. The revenue multipliers and work-from-home cells are recomputed from `p`
    too; a snapshot whose eligible cells differ from the model's variable domain raises `ModelBuildError`.

    Parameters:
        m (ConcreteModel): Model built by `allocation_model_build`
        p (dict): Parameter snapshot to build from
        mdl_p (dict): Model parameters. The structural ones must match the ones the model was built with.

    Returns:
        ConcreteModel: The same model with fresh constraint families and objective
    """

    if model_structure(mdl_p) != m.structure:
        raise ModelBuildError(f"Model was built with {m.structure} but rebuild requested "
                              f"{model_structure(mdl_p)}. Variable domains can't change; build a new model.",
                              parameters=cwap.data.adjustments.scalar_parameters(p))

    # Revenue multipliers and work-from-home cells come from this snapshot, the eligible cells can't change
    indices = cwap.data.preferences.eligible_assignment_indices(p, mdl_p['eligibility_mode'])
    if list(indices['A']) != list(m.A):
        raise ModelBuildError("The eligible assignment cells of this parameter snapshot differ from the ones the "
                              "model was built with. Variable domains can't change; build a new model.",
                              parameters=cwap.data.adjustments.scalar_parameters(p))
    m.eligibility = indices

    # Remove the old components
    for name in constraint_families + ['objective']:
        if m.find_component(name) is not None:
            m.del_component(name)

    # Constraint families
    m.supply_balance = Constraint(m.HL, rule=lambda m, h, l: supply_balance_rule(m, p, h, l))
    m.bench_limit = Constraint(m.HL, rule=lambda m, h, l: bench_limit_rule(m, p, h, l))
    m.demand_cap = Constraint(m.PL, rule=lambda m, j, l: demand_cap_rule(m, p, j, l))
    if m.structure['unfilled']:
        m.unfilled_definition = Constraint(m.PL, rule=lambda m, j, l: unfilled_definition_rule(m, p, j, l))
    m.travel_budget = Constraint(rule=lambda m: travel_budget_rule(m, p))

    # Objective function
    m.profit_terms = profit_expressions(m, p, mdl_p)
    m.objective = objective_function_definition(m)

    return m


# ____________________________________________CONSTRAINT FAMILIES_______________________________________________________
def supply_balance_rule(m, p, h, l):
    """
    Everyone in the pool is either assigned somewhere or on the bench
    """
    assigned = quicksum(m.assign[h, l, j, r] for (j, r) in m.eligibility['A^supply'][(h, l)])
    return assigned + m.bench[h, l] == int(p['pool'][h, l])


def bench_limit_rule(m, p, h, l):
    """
    Only a fraction of each pool may sit on the bench (the junior level may bench its entire pool)
    """
    return m.bench[h, l] <= float(p['bench_fraction'][l] * p['pool'][h, l])


def demand_cap_rule(m, p, j, l):
    """
    Consultants (plus outsourced staff, if enabled) on a project role can't exceed its adjusted demand
    """
    cells = m.eligibility['A^demand'][(j, l)]
    if len(cells) == 0 and not m.structure['outsourcing']:
        return Constraint.Skip

    filled = quicksum(m.assign[h, a, j, l] for (h, a) in cells)
    if m.structure['outsourcing']:
        filled = filled + m.outsource[j, l]
    return filled <= int(p['adjusted_demand'][j, l])


def unfilled_definition_rule(m, p, j, l):
    """
    Unfilled demand is the adjusted demand less the consultants assigned to the role
    """
    filled = quicksum(m.assign[h, a, j, l] for (h, a) in m.eligibility['A^demand'][(j, l)])
    return m.unfilled[j, l] == int(p['adjusted_demand'][j, l]) - filled


def travel_cells(m, p):
    """
    Assignment cells that incur a travel cost: on-site work where the home location isn't the project location
    """
    cells = []
    for (h, a, j, r) in m.A:
        if (h, a, j, r) in m.eligibility['A^WFH']:
            continue
        if p['homes'][h] == p['locations'][p['project_location'][j]]:
            continue
        cells.append((h, a, j, r))
    return cells


def travel_budget_rule(m, p):
    """
    Total travel cost stays within the travel budget
    """
    cells = travel_cells(m, p)
    if len(cells) == 0:
        return Constraint.Skip
    return travel_cost_expression(m, p, cells) <= float(p['travel_budget'])


def travel_cost_expression(m, p, cells):
    return quicksum(float(p['travel_cost'][h, p['project_location'][j]]) * m.assign[h, a, j, r]
                    for (h, a, j, r) in cells)


# _______________________________________________OBJECTIVE FUNCTION_____________________________________________________
def profit_expressions(m, p, mdl_p):
    """
    Builds each term of the net profit as its own expression.

    Parameters:
        m (ConcreteModel): The Pyomo model
        p (dict): Parameter snapshot
        mdl_p (dict): Model parameters (toggles)

    Returns:
        dict: Expressions keyed by 'Revenue', 'SalaryCost', 'TravelCost', 'UnfilledPenalty', 'OutsourceCost'
        and 'TotalProfit'. In "Remote Allowed" mode the revenue is also split into 'Revenue (On Site)' and
        'Revenue (WFH)'.

    Formulas (WD = working days):
        Revenue = WD * sum_(j, r) DailyRate[j, r] * (sum_eligible multiplier * assign[h, a, j, r] + outsource[j, r])
        SalaryCost = WD * sum_(h, l) Pool[h, l] * DailySalary[l] (fixed, independent of the decisions)
        TravelCost = sum of assign * TravelCost[home, project location] over on-site cells away from home
        UnfilledPenalty = sum_(j, l) unfilled[j, l] * MeanDailyRate[l] * ClientPenalty[l] * WD
        OutsourceCost = sum_(j, l) outsource[j, l] * DailySalary[l] * OutsourcingCost[l] * WD
        TotalProfit = Revenue - SalaryCost - TravelCost - UnfilledPenalty - OutsourceCost
    """

    # Shorthand
    wd = float(p['working_days'])
    rate, salary = p['daily_rate'], p['daily_salary']
    multiplier, wfh = m.eligibility['revenue_multiplier'], m.eligibility['A^WFH']
    terms = {}

    # Revenue from our own consultants (on-site and work-from-home cells have different multipliers)
    on_site = quicksum(wd * float(rate[j, r]) * m.assign[h, a, j, r]
                       for (h, a, j, r) in m.A if (h, a, j, r) not in wfh)
    remote = quicksum(wd * float(rate[j, r]) * multiplier[(h, a, j, r)] * m.assign[h, a, j, r]
                      for (h, a, j, r) in m.A if (h, a, j, r) in wfh)
    if mdl_p['eligibility_mode'] == "Remote Allowed":
        terms['Revenue (On Site)'] = on_site
        terms['Revenue (WFH)'] = remote
    revenue = on_site + remote

    # Outsourced staff bill the same daily rate
    if m.structure['outsourcing']:
        revenue = revenue + quicksum(wd * float(rate[j, l]) * m.outsource[j, l] for (j, l) in m.PL)
        terms['OutsourceCost'] = quicksum(wd * float(salary[l] * p['outsourcing_cost'][l]) * m.outsource[j, l]
                                          for (j, l) in m.PL)
    else:
        terms['OutsourceCost'] = 0.0
    terms['Revenue'] = revenue

    # Salaries are paid to the whole pool regardless of the assignment
    terms['SalaryCost'] = wd * float(np.sum(p['pool'] * salary[np.newaxis, :]))

    # Travel
    terms['TravelCost'] = travel_cost_expression(m, p, travel_cells(m, p))

    # Client satisfaction penalty on demand we don't fill
    if mdl_p['unfilled_penalty']:
        terms['UnfilledPenalty'] = quicksum(
            wd * float(p['mean_daily_rate'][l] * p['client_penalty'][l]) * m.unfilled[j, l] for (j, l) in m.PL)
    else:
        terms['UnfilledPenalty'] = 0.0

    terms['TotalProfit'] = terms['Revenue'] - terms['SalaryCost'] - terms['TravelCost'] - \
                           terms['UnfilledPenalty'] - terms['OutsourceCost']
    return terms


def objective_function_definition(m):
    return Objective(expr=m.profit_terms['TotalProfit'], sense=maximize)


# ____________________________________________________SOLVING_________________________________________________________
def solve_pyomo_model(model, p, mdl_p, printing=False):
    """
    Solve the allocation model and extract its solution.

    Parameters:
        model (ConcreteModel): The Pyomo model to solve.
        p (dict): The parameter snapshot the model was (re)built from. Used to shape the solution arrays and to
            label any failure with the parameter values in effect.
        mdl_p (dict): Model parameters (solver name, time limit, etc.)
        printing (bool, optional): Flag for printing intermediate information.

    Returns:
        dict: The solution with keys
            - 'status': "Optimal"
            - 'objective': optimal total profit reported by the solver
            - 'x': (H, L, P, L) array of assignments, 'bench' (H, L), 'unfilled' (P, L), 'outsource' (P, L)
            - 'profit': dictionary of each profit term evaluated at the solution
            - 'duals': {(constraint family, index): dual} (empty unless the model is continuous)
            - 'duals_authoritative': True only for the continuous relaxation
            - 'solve_time', 'integer', 'parameters'

    Raises:
        InfeasibleError, UnboundedError, SolverTimeout: when the solver doesn't return an optimal solution. The
        error carries the scalar parameters in effect and the constraint families implicated.
    """

    # Duals are only meaningful for the linear relaxation
    get_duals = not model.structure['integer']
    if get_duals:
        if model.find_component('dual') is None:
            model.dual = Suffix(direction=Suffix.IMPORT)
        else:
            model.dual.clear()

    # Determine how the solver is called here
    parameters = cwap.data.adjustments.scalar_parameters(p)
    solver = build_solver(mdl_p, printing, parameters=parameters)

    # Solve Model
    start_time = time.perf_counter()
    results = execute_solver(model, solver, mdl_p, parameters=parameters)
    solve_time = round(time.perf_counter() - start_time, 2)

    # Anything other than an optimal solution is an error
    status = termination_status(results)
    if status != "Optimal":
        handle_solver_failure(model, solver, p, mdl_p, status, results, printing)

    model.solutions.load_from(results)
    solution = obtain_solution(model, p, get_duals)
    solution['solve_time'] = solve_time

    if printing:
        timestamp = datetime.datetime.now().strftime('%B %d %Y %r')
        print(f"Model solved in {solve_time} seconds at {timestamp}. Pyomo reported objective value:",
              round(solution['objective'], 4))

    return solution


def obtain_solution(model, p, get_duals):
    """
    Pulls the variable values (and duals) out of a solved model into numpy arrays
    """

    def var_value(var):
        if var.value is None:
            raise SolverError(f"Variable '{var.name}' has no value in the solution, likely model is infeasible.",
                              parameters=cwap.data.adjustments.scalar_parameters(p))
        return max(float(var.value), 0.0) if abs(var.value) > 1e-9 else 0.0

    H, L, N = len(p['H']), len(p['L']), len(p['P'])
    solution = {'status': "Optimal", 'objective': float(value(model.objective)),
                'x': np.zeros((H, L, N, L)), 'bench': np.zeros((H, L)), 'unfilled': np.zeros((N, L)),
                'outsource': np.zeros((N, L)), 'integer': model.structure['integer'],
                'eligibility_mode': model.structure['eligibility_mode'],
                'outsourcing': model.structure['outsourcing'],
                'parameters': cwap.data.adjustments.scalar_parameters(p)}

    for (h, a, j, r) in model.A:
        solution['x'][h, a, j, r] = var_value(model.assign[h, a, j, r])
    for (h, l) in model.HL:
        solution['bench'][h, l] = var_value(model.bench[h, l])
    if model.structure['unfilled']:
        for (j, l) in model.PL:
            solution['unfilled'][j, l] = var_value(model.unfilled[j, l])
    if model.structure['outsourcing']:
        for (j, l) in model.PL:
            solution['outsource'][j, l] = var_value(model.outsource[j, l])

    # Each profit term as the solver sees it
    solution['profit'] = {term: float(value(expr)) for term, expr in model.profit_terms.items()}

    # Shadow prices
    solution['duals'] = {}
    solution['duals_authoritative'] = get_duals
    if get_duals:
        for name in constraint_families:
            con = model.find_component(name)
            if con is None or len(con) == 0:
                continue
            for index in con.keys():
                solution['duals'][(name, index)] = float(model.dual.get(con[index], 0.0))

    return solution


def termination_status(results):
    """
    Maps the solver's termination condition to one of "Optimal", "Infeasible", "Unbounded", "Timeout", "Error"
    """
    condition = results.solver.termination_condition
    if condition in optimal_conditions:
        return "Optimal"
    elif condition in infeasible_conditions:
        return "Infeasible"
    elif condition == TerminationCondition.unbounded:
        return "Unbounded"
    elif condition in timeout_conditions:
        return "Timeout"
    return "Error"


def build_solver(mdl_p, printing=False, parameters=None):

    # Determine how the solver is called here
    if mdl_p["executable"] is None:
        if mdl_p["provide_executable"]:
            if mdl_p["exe_extension"]:
                mdl_p["executable"] = cwap.globals.paths['solvers'] + mdl_p["solver_name"] + '.exe'
            else:
                mdl_p["executable"] = cwap.globals.paths['solvers'] + mdl_p["solver_name"]
    else:
        mdl_p["provide_executable"] = True

    # Get correct solver
    if mdl_p["provide_executable"]:
        if mdl_p["solver_name"] == 'gurobi':
            solver = SolverFactory(mdl_p["solver_name"], solver_io='python', executable=mdl_p["executable"])
        else:
            solver = SolverFactory(mdl_p["solver_name"], executable=mdl_p["executable"])
    else:
        if mdl_p["solver_name"] == 'gurobi':
            solver = SolverFactory(mdl_p["solver_name"], solver_io='python')
        else:
            solver = SolverFactory(mdl_p["solver_name"])

    if solver is None or not solver.available(exception_flag=False):
        raise ModelBuildError(f"Solver '{mdl_p['solver_name']}' is not available.", parameters=parameters)

    # Print Statement
    if printing:
        timestamp = datetime.datetime.now().strftime('%B %d %Y %r')
        integrality = "MIP" if mdl_p["integer"] else "LP relaxation"
        print(f'Solving allocation model ({integrality}) with solver {mdl_p["solver_name"]}...'
              f'\nStart Time: {timestamp}.')
    return solver


def execute_solver(model, solver, mdl_p, parameters=None):
    """
    Solves the Pyomo model with the time limit (seconds) in `mdl_p['pyomo_max_time']`, if there is one.
    Solutions are not loaded into the model here; that happens after the termination condition is checked.

    Args:
        model (ConcreteModel): The Pyomo model to solve.
        solver (SolverFactory): The solver instance.
        mdl_p (dict): Dictionary of model parameters including solver config.
        parameters (dict, optional): Scalar parameters in effect, attached to any solver error.

    Returns:
        SolverResults: The results object returned by the solver.
    """
    max_time = mdl_p.get("pyomo_max_time")
    name = mdl_p["solver_name"]

    # Each solver names its time limit differently
    if max_time is not None:
        if name.startswith('appsi_'):
            solver.config.time_limit = max_time
        elif name == 'cbc':
            solver.options['seconds'] = max_time
        elif name == 'glpk':
            solver.options['tmlim'] = max_time
        elif name == 'gurobi':
            solver.options['TimeLimit'] = max_time
        elif name == 'cplex':
            solver.options['timelimit'] = max_time
        elif name == 'ipopt':
            solver.options['max_cpu_time'] = max_time

    try:
        return solver.solve(model, tee=mdl_p['pyomo_tee'], load_solutions=False)
    except (RuntimeError, ValueError) as error:
        raise SolverError(f"Solver '{name}' failed: {error}", parameters=parameters) from error


# ________________________________________________INFEASIBILITY________________________________________________________
def handle_solver_failure(model, solver, p, mdl_p, status, results, printing=False):
    """
    Raises the error matching the solver status. Infeasible models are diagnosed first so that the error names
    the constraint families responsible.
    """
    parameters = cwap.data.adjustments.scalar_parameters(p)
    families = active_constraint_families(model)

    if status == "Infeasible":
        if mdl_p['diagnose_infeasibility']:
            families = identify_infeasible_families(model, solver, mdl_p)
        if mdl_p['write_infeasibility_logs']:
            handle_infeasible_model(model, p, families, output_dir=mdl_p['infeasibility_log_folder'],
                                    printing=printing)
        raise InfeasibleError("Model is infeasible.", parameters=parameters, constraints=families)

    elif status == "Unbounded":
        raise UnboundedError("Model is unbounded.", parameters=parameters)

    elif status == "Timeout":
        raise SolverTimeout(f"Solver hit the {mdl_p['pyomo_max_time']} second time limit "
                            f"({results.solver.termination_condition}).", parameters=parameters)

    raise SolverError(f"Solver terminated with condition '{results.solver.termination_condition}'.",
                      parameters=parameters, constraints=families)


def active_constraint_families(model):
    return [name for name in constraint_families
            if model.find_component(name) is not None and len(model.find_component(name)) > 0]


def identify_infeasible_families(model, solver, mdl_p):
    """
    Determines which constraint families make the model infeasible by deactivating one family at a time and
    re-solving. A family is reported if the model becomes feasible without it. If no single family does that,
    the infeasibility comes from the combination of all of them and every active family is reported.

    Args:
        model (ConcreteModel): The (infeasible) Pyomo model
        solver: The solver used to solve the model
        mdl_p (dict): Model parameters

    Returns:
        list: Names of the offending constraint families
    """
    families = active_constraint_families(model)
    offending = []
    for name in families:
        con = model.find_component(name)
        con.deactivate()
        try:
            status = termination_status(execute_solver(model, solver, mdl_p))
        finally:
            con.activate()
        if status in ["Optimal", "Unbounded"]:
            offending.append(name)

    if len(offending) == 0:
        return families
    return offending


def handle_infeasible_model(model, p, families, output_dir=None, printing=False):
    """
    Writes the infeasible model to an LP file along with a short log of the constraint families implicated and
    the parameters in effect.

    Args:
        model (ConcreteModel): The Pyomo model.
        p (dict): Parameter snapshot
        families (list): Offending constraint families
        output_dir (str): Directory to write the LP file and the log.
    """
    if output_dir is None:
        timestamp = datetime.datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
        output_dir = cwap.globals.paths['results'] + f"infeasibility_logs {timestamp}"
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)

    infeasible_lp_path = os.path.join(output_dir, "infeasible_model.lp")
    log_path = os.path.join(output_dir, "infeasibility.txt")

    if printing:
        print("\nModel is infeasible. Writing diagnostics...")

    # Write model to LP file for further inspection
    model.write(infeasible_lp_path, io_options={"symbolic_solver_labels": True})

    with open(log_path, 'w') as f:
        f.write("Infeasibility Log\n\n")
        f.write("Parameters:\n")
        for key, val in cwap.data.adjustments.scalar_parameters(p).items():
            f.write(f"    {key} = {val}\n")
        f.write("\nOffending constraint families:\n")
        for name in families:
            f.write(f"    {name} ({len(model.find_component(name))} constraints)\n")

    if printing:
        print(f"Model written to: {infeasible_lp_path}\nDiagnostics written to: {log_path}")
