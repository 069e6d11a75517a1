"""
Solution handling for the workforce allocation model.

Once the optimization model returns its primal values this module recomputes every profit term directly from
those values with numpy (an independent check on what the solver reports), verifies the structural invariants
of the allocation (supply balance, bench limits, demand caps, seniority, travel budget) and builds the tables
handed to the report writers: allocations, demand fulfilment, travel, bench, shadow prices and a summary.
"""
import numpy as np
import pandas as pd

# cwap modules
import cwap.globals
import cwap.data.preferences
import cwap.data.support


def cell_properties(p, mode):
    """
    Dense (H, L, P, L) arrays describing each assignment cell under the given eligibility mode: whether it is
    eligible, its revenue multiplier, and whether it's worked on site.
    """
    shape = (len(p['H']), len(p['L']), len(p['P']), len(p['L']))
    eligible, multiplier, on_site = np.zeros(shape, dtype=bool), np.zeros(shape), np.zeros(shape, dtype=bool)
    indices = cwap.data.preferences.eligible_assignment_indices(p, mode)
    for cell in indices['A']:
        eligible[cell] = True
        multiplier[cell] = indices['revenue_multiplier'][cell]
        on_site[cell] = cell not in indices['A^WFH']
    return eligible, multiplier, on_site


def travel_cost_matrix(p):
    """
    (H, P) array of the travel cost of sending one consultant from each home to each project (zero when the
    project is at the home location)
    """
    cost = p['travel_cost'][:, p['project_location']]
    same = np.array([[p['homes'][h] == p['locations'][p['project_location'][j]] for j in p['P']] for h in p['H']])
    if same.size:
        cost = np.where(same, 0.0, cost)
    return cost


def evaluate_solution(solution, p, mdl_p, printing=False):
    """
    Evaluate a solution by recomputing the profit terms and some useful metrics from the primal values.

    Parameters:
        solution (dict): Solution dictionary with at least 'x', 'bench', 'outsource' arrays
        p (dict): The parameter snapshot the solution was solved with
        mdl_p (dict): Model parameters (eligibility mode and toggles)
        printing (bool, optional): Whether to print the evaluated profit terms

    Returns:
        solution (dict): The same dictionary with
            - 'evaluated': profit terms recomputed from the primal values
            - 'assigned' (P, L): consultants assigned to each project role
            - 'unfilled_computed' (P, L): adjusted demand less assigned consultants
            - 'travel' (H, L, P, L): travel cost of each assignment cell
            - 'utilization': share of the total pool assigned to projects
            - 'fulfilment': share of the total adjusted demand covered (assigned + outsourced)
    """

    # Shorthand
    x, wd = solution['x'], float(p['working_days'])
    outsource = solution.get('outsource', np.zeros(p['demand'].shape))
    _, multiplier, on_site = cell_properties(p, mdl_p['eligibility_mode'])
    rate = p['daily_rate'][np.newaxis, np.newaxis, :, :]

    # Revenue (split into on-site and work-from-home)
    evaluated = {'Revenue (On Site)': wd * float(np.sum(x * rate * on_site)),
                 'Revenue (WFH)': wd * float(np.sum(x * rate * multiplier * ~on_site))}
    evaluated['Revenue'] = evaluated['Revenue (On Site)'] + evaluated['Revenue (WFH)'] + \
                           wd * float(np.sum(outsource * p['daily_rate']))

    # Fixed salary cost
    evaluated['SalaryCost'] = wd * float(np.sum(p['pool'] * p['daily_salary'][np.newaxis, :]))

    # Travel (on-site cells away from home)
    travel = x * travel_cost_matrix(p)[:, np.newaxis, :, np.newaxis] * on_site
    evaluated['TravelCost'] = float(np.sum(travel))

    # Unfilled demand penalty
    assigned = np.sum(x, axis=(0, 1))
    unfilled = p['adjusted_demand'] - assigned
    if mdl_p['unfilled_penalty']:
        evaluated['UnfilledPenalty'] = wd * float(np.sum(
            unfilled * (p['mean_daily_rate'] * p['client_penalty'])[np.newaxis, :]))
    else:
        evaluated['UnfilledPenalty'] = 0.0

    # Outsourcing
    if mdl_p['outsourcing']:
        evaluated['OutsourceCost'] = wd * float(np.sum(
            outsource * (p['daily_salary'] * p['outsourcing_cost'])[np.newaxis, :]))
    else:
        evaluated['OutsourceCost'] = 0.0

    evaluated['TotalProfit'] = evaluated['Revenue'] - evaluated['SalaryCost'] - evaluated['TravelCost'] - \
                               evaluated['UnfilledPenalty'] - evaluated['OutsourceCost']

    # Add everything to the solution
    solution['evaluated'] = evaluated
    solution['assigned'] = assigned
    solution['unfilled_computed'] = unfilled
    solution['travel'] = travel
    total_pool, total_demand = np.sum(p['pool']), np.sum(p['adjusted_demand'])
    solution['utilization'] = float(np.sum(assigned) / total_pool) if total_pool > 0 else 0.0
    solution['fulfilment'] = float((np.sum(assigned) + np.sum(outsource)) / total_demand) if total_demand > 0 else 1.0

    if printing:
        for term in cwap.globals.profit_components:
            print(f"{term}: {round(evaluated[term], 2)}")

    return solution


def profit_round_trip_gap(solution):
    """
    Largest absolute difference between the profit terms reported by the solver and the ones recomputed from the
    primal values (`evaluate_solution` must be called first)
    """
    return max(abs(solution['profit'][term] - solution['evaluated'][term])
               for term in cwap.globals.profit_components if term in solution['profit'])


def check_solution_invariants(solution, p, mdl_p, tolerance=1e-6):
    """
    Checks that a solution satisfies every structural invariant of the allocation model.

    Parameters:
        solution (dict): Solution dictionary ('x', 'bench', 'outsource', and 'unfilled' if defined)
        p (dict): The parameter snapshot the solution was solved with
        mdl_p (dict): Model parameters
        tolerance (float): Numerical tolerance

    Returns:
        list: Descriptions of every violated invariant (empty if the solution is clean)
    """

    # Shorthand
    x, bench = solution['x'], solution['bench']
    outsource = solution.get('outsource', np.zeros(p['demand'].shape))
    eligible, _, on_site = cell_properties(p, mdl_p['eligibility_mode'])
    violations = []

    # Non-negativity
    for key in ['x', 'bench', 'outsource', 'unfilled']:
        if key in solution and np.any(solution[key] < -tolerance):
            violations.append(f"Negative values in '{key}'")

    # Nobody fills a role they aren't eligible for (seniority and location gating)
    if np.any(x[~eligible] > tolerance):
        violations.append("Assignments to ineligible cells")

    for h in p['H']:
        for l in p['L']:
            home, level = p['homes'][h], p['levels'][l]

            # Supply balance
            supplied = np.sum(x[h, l, :, :]) + bench[h, l]
            if abs(supplied - p['pool'][h, l]) > tolerance:
                violations.append(f"Supply balance ({home}, {level}): {supplied} != {p['pool'][h, l]}")

            # Bench limit
            limit = p['bench_fraction'][l] * p['pool'][h, l]
            if bench[h, l] > limit + tolerance:
                violations.append(f"Bench limit ({home}, {level}): {bench[h, l]} > {limit}")

    # Demand cap
    filled = np.sum(x, axis=(0, 1))
    if mdl_p['outsourcing']:
        filled = filled + outsource
    for j in p['P']:
        for l in p['L']:
            if filled[j, l] > p['adjusted_demand'][j, l] + tolerance:
                violations.append(f"Demand cap (Project {p['projects'][j]}, {p['levels'][l]}): "
                                  f"{filled[j, l]} > {p['adjusted_demand'][j, l]}")

    # Travel budget
    travel = float(np.sum(x * travel_cost_matrix(p)[:, np.newaxis, :, np.newaxis] * on_site))
    if travel > p['travel_budget'] + tolerance * max(1.0, p['travel_budget']):
        violations.append(f"Travel budget: {travel} > {p['travel_budget']}")

    return violations


# ______________________________________________REPORT TABLES___________________________________________________________
def allocation_rows(solution, p, mdl_p):
    """
    One row per non-zero assignment (and outsourced) cell, ordered by project, role level (seniority), home
    location and consultant level. Columns: Type, Project, Consultant Role, Home Location, Assigned Role,
    Allocation Location, Quantity, Daily Rate, Daily Salary, Travel Cost (and WFH in "Remote Allowed" mode).
    """
    x = solution['x']
    outsource = solution.get('outsource', np.zeros(p['demand'].shape))
    _, _, on_site = cell_properties(p, mdl_p['eligibility_mode'])
    travel = travel_cost_matrix(p)
    remote = mdl_p['eligibility_mode'] == "Remote Allowed"
    order = cwap.data.support.level_order(p)

    rows = []
    for j in p['P']:
        location = p['locations'][p['project_location'][j]]
        for r in order:
            for h in p['H']:
                for a in order:
                    if x[h, a, j, r] <= 1e-9:
                        continue
                    row = {"Type": "Assigned", "Project": p['projects'][j], "Consultant Role": p['levels'][a],
                           "Home Location": p['homes'][h], "Assigned Role": p['levels'][r],
                           "Allocation Location": location, "Quantity": x[h, a, j, r],
                           "Daily Rate": p['daily_rate'][j, r], "Daily Salary": p['daily_salary'][a],
                           "Travel Cost": travel[h, j] if on_site[h, a, j, r] else 0.0}
                    if remote:
                        row["WFH"] = int(not on_site[h, a, j, r])
                    rows.append(row)

            if outsource[j, r] > 1e-9:
                row = {"Type": "Outsourced", "Project": p['projects'][j], "Consultant Role": p['levels'][r],
                       "Home Location": "", "Assigned Role": p['levels'][r], "Allocation Location": location,
                       "Quantity": outsource[j, r], "Daily Rate": p['daily_rate'][j, r],
                       "Daily Salary": p['daily_salary'][r] * p['outsourcing_cost'][r], "Travel Cost": 0.0}
                if remote:
                    row["WFH"] = 0
                rows.append(row)

    columns = ["Type", "Project", "Consultant Role", "Home Location", "Assigned Role", "Allocation Location",
               "Quantity", "Daily Rate", "Daily Salary", "Travel Cost"] + (["WFH"] if remote else [])
    return pd.DataFrame(rows, columns=columns)


def demand_rows(solution, p):
    """
    Demand fulfilment of each project role (project ascending, levels by seniority)
    """
    assigned = np.sum(solution['x'], axis=(0, 1))
    outsource = solution.get('outsource', np.zeros(p['demand'].shape))
    rows = []
    for j in p['P']:
        for l in cwap.data.support.level_order(p):
            rows.append({"Project": p['projects'][j], "Level": p['levels'][l], "Demand": p['demand'][j, l],
                         "Adjusted Demand": p['adjusted_demand'][j, l], "Assigned": assigned[j, l],
                         "Outsourced": outsource[j, l],
                         "Unfilled": p['adjusted_demand'][j, l] - assigned[j, l]})
    return pd.DataFrame(rows, columns=["Project", "Level", "Demand", "Adjusted Demand", "Assigned",
                                       "Outsourced", "Unfilled"])


def travel_rows(solution, p, mdl_p):
    """
    Consultants travelling away from home: one row per (project, home, consultant level) with travel cost
    """
    x = solution['x']
    _, _, on_site = cell_properties(p, mdl_p['eligibility_mode'])
    travel = travel_cost_matrix(p)
    rows = []
    for j in p['P']:
        for h in p['H']:
            if travel[h, j] == 0:
                continue
            for a in cwap.data.support.level_order(p):
                quantity = float(np.sum(x[h, a, j, :] * on_site[h, a, j, :]))
                if quantity <= 1e-9:
                    continue
                rows.append({"Project": p['projects'][j], "Home Location": p['homes'][h],
                             "Allocation Location": p['locations'][p['project_location'][j]],
                             "Consultant Role": p['levels'][a], "Quantity": quantity,
                             "Travel Cost": travel[h, j], "Total Travel Cost": quantity * travel[h, j]})
    return pd.DataFrame(rows, columns=["Project", "Home Location", "Allocation Location", "Consultant Role",
                                       "Quantity", "Travel Cost", "Total Travel Cost"])


def bench_rows(solution, p):
    rows = []
    for h in p['H']:
        for l in cwap.data.support.level_order(p):
            rows.append({"Home Location": p['homes'][h], "Level": p['levels'][l], "Pool": p['pool'][h, l],
                         "Bench": solution['bench'][h, l],
                         "Bench Limit": p['bench_fraction'][l] * p['pool'][h, l]})
    return pd.DataFrame(rows, columns=["Home Location", "Level", "Pool", "Bench", "Bench Limit"])


def constraint_index_label(p, name, index):
    """
    Readable label for the index of a constraint
    """
    if index is None:
        return ""
    if name in ['supply_balance', 'bench_limit']:
        h, l = index
        return f"{p['homes'][h]} / {p['levels'][l]}"
    j, l = index
    return f"Project {p['projects'][j]} / {p['levels'][l]}"


def dual_rows(solution, p):
    """
    Shadow prices of every constraint (only present when the model was solved as a continuous relaxation)
    """
    rows = []
    for (name, index), dual in solution['duals'].items():
        rows.append({"Constraint": name, "Index": constraint_index_label(p, name, index), "Dual": dual,
                     "Authoritative": solution['duals_authoritative']})
    return pd.DataFrame(rows, columns=["Constraint", "Index", "Dual", "Authoritative"])


def summary_frame(solution):
    """
    The profit terms of a solution as a one-row dataframe
    """
    row = {term: solution['profit'][term] for term in cwap.globals.profit_components}
    row["Status"] = solution['status']
    return pd.DataFrame([row])
