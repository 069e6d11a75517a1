"""
Adjustments to the instance parameter dictionary once it has been loaded or generated.

`parameter_sets_additions` validates the raw arrays and adds the index sets and derived coefficients the
optimization model reads (junior level, effective bench fractions, mean daily rates, adjusted demand).
`parameter_snapshot` produces an independent copy of a parameter dictionary with a few scalars/arrays replaced,
which is how the sensitivity sweeps change parameters without touching the baseline.
"""
import copy
import numpy as np

# cwap modules
import cwap.data.support
from cwap.errors import DataLoadError

# Scalars every instance must have
required_scalars = ['working_days', 'travel_budget', 'demand_variability']

# Arrays every instance must have along with the sets that index them
required_arrays = {'pool': ('H', 'L'), 'demand': ('P', 'L'), 'daily_rate': ('P', 'L'), 'daily_salary': ('L',),
                   'bench_limit': ('L',), 'travel_cost': ('H', 'G'), 'project_location': ('P',)}

# Arrays that are only needed by certain model variants (filled with defaults when missing)
optional_arrays = {'outsourcing_cost': ('L',), 'client_penalty': ('L',), 'preference': ('L', 'G')}


def parameter_sets_additions(parameters):
    """
    Add indexed sets and derived coefficients to the problem instance parameters.

    Parameters
    ----------
    parameters : dict
        The fixed model input parameters: names of levels/homes/locations/projects, the pool, demand, rate,
        salary, bench limit, travel cost and preference arrays, and the scalar parameters.

    Returns
    -------
    Updated parameter dictionary with:

    - Index sets ``H`` (homes), ``L`` (levels), ``P`` (projects), ``G`` (project locations)
    - ``junior``: index of the least senior level
    - ``bench_fraction``: bench limit fractions with the junior level forced to 1.0
    - ``mean_daily_rate``: average daily rate of each level across all projects
    - ``adjusted_demand``: demand scaled by the demand variability (see `adjust_demand`)

    Raises
    ------
    DataLoadError
        If a required parameter is missing or an array does not line up with its index sets.
    """

    # Shorthand
    p = parameters

    # Names of everything need to be there first
    for key in ['levels', 'homes', 'locations', 'projects']:
        if key not in p:
            raise DataLoadError(f"Error. Parameter '{key}' not in the parameter dictionary. It is required.")
        p[key] = np.array(p[key])

    # Index sets
    p['L'] = np.arange(len(p['levels']))
    p['H'] = np.arange(len(p['homes']))
    p['G'] = np.arange(len(p['locations']))
    p['P'] = np.arange(len(p['projects']))
    sizes = {'H': len(p['H']), 'L': len(p['L']), 'G': len(p['G']), 'P': len(p['P'])}

    # Seniority rank defaults to the declared order of the levels (1 = most senior)
    if 'seniority' not in p:
        p['seniority'] = np.arange(1, sizes['L'] + 1)
    p['seniority'] = np.array(p['seniority']).astype(int)
    if len(p['seniority']) != sizes['L']:
        raise DataLoadError(f"Error. 'seniority' has {len(p['seniority'])} entries for {sizes['L']} levels.")

    # Fill in the optional arrays with values that make them inert
    if 'outsourcing_cost' not in p:
        p['outsourcing_cost'] = np.ones(sizes['L'])
    if 'client_penalty' not in p:
        p['client_penalty'] = np.zeros(sizes['L'])
    if 'preference' not in p:
        p['preference'] = np.ones((sizes['L'], sizes['G'])).astype(int)
    if 'remote_penalty' not in p:
        p['remote_penalty'] = 1.0

    # Check the scalars
    for key in required_scalars:
        if key not in p:
            raise DataLoadError(f"Error. Scalar parameter '{key}' not in the parameter dictionary. It is required.")
        p[key] = float(p[key])

    # Check the shape of every array against the sets that index it
    for key, sets in {**required_arrays, **optional_arrays}.items():
        if key not in p:
            raise DataLoadError(f"Error. Parameter '{key}' not in the parameter dictionary. It is required.")
        p[key] = np.array(p[key])
        expected = tuple(sizes[s] for s in sets)
        if p[key].shape != expected:
            raise DataLoadError(f"Error. Parameter '{key}' has shape {p[key].shape}, expected {expected} "
                                f"({' x '.join(sets)}).")

    # Integer headcounts
    for key in ['pool', 'demand']:
        if np.any(p[key] < 0):
            raise DataLoadError(f"Error. Parameter '{key}' contains negative headcounts.")
        if np.any(np.round(p[key]) != p[key]):
            raise DataLoadError(f"Error. Parameter '{key}' contains fractional headcounts.")
        p[key] = p[key].astype(int)
    p['project_location'] = p['project_location'].astype(int)
    if np.any(p['project_location'] < 0) or np.any(p['project_location'] >= sizes['G']):
        raise DataLoadError("Error. 'project_location' references a location that does not exist.")
    if np.any(p['bench_limit'] < 0) or np.any(p['bench_limit'] > 1):
        raise DataLoadError("Error. 'bench_limit' fractions must be between 0 and 1.")
    if p['remote_penalty'] < 0:
        raise DataLoadError("Error. 'remote_penalty' cannot be negative.")
    p['preference'] = p['preference'].astype(int)

    # Float coefficients
    for key in ['daily_rate', 'daily_salary', 'bench_limit', 'travel_cost', 'outsourcing_cost', 'client_penalty']:
        p[key] = p[key].astype(float)

    # The most junior level may always bench its whole pool
    p['junior'] = int(np.argmax(p['seniority']))
    p['bench_fraction'] = copy.deepcopy(p['bench_limit'])
    p['bench_fraction'][p['junior']] = 1.0

    # Mean daily rate of each level across all projects (prices the unfilled demand penalty)
    if sizes['P'] > 0:
        p['mean_daily_rate'] = np.mean(p['daily_rate'], axis=0)
    else:
        p['mean_daily_rate'] = np.zeros(sizes['L'])

    # Demand after the variability factor
    p['adjusted_demand'] = adjust_demand(p['demand'], p['demand_variability'])

    return p


def adjust_demand(demand, variability):
    """
    AdjustedDemand = round(Demand * (1 + variability)), rounded half away from zero and never negative
    """
    adjusted = cwap.data.support.round_half_away(np.asarray(demand) * (1 + variability))
    return np.maximum(adjusted, 0)


def parameter_snapshot(parameters, **updates):
    """
    Returns an independent copy of the parameters with the given entries replaced. Any derived coefficient that
    depends on a replaced entry is recomputed so the copy is internally consistent. The original dictionary is
    never modified.

    Example:
        p_new = parameter_snapshot(p, demand_variability=0.25)
    """
    p = copy.deepcopy(parameters)
    for key, val in updates.items():
        if key not in p:
            raise DataLoadError(f"Error. Cannot set parameter '{key}' since it is not in the parameter dictionary.")

        # Scalars overwrite arrays of the same shape so "outsourcing_cost=1.5" means every level
        if isinstance(p[key], np.ndarray) and np.isscalar(val):
            p[key] = np.full(p[key].shape, val, dtype=p[key].dtype)
        elif isinstance(p[key], np.ndarray):
            p[key] = np.array(val, dtype=p[key].dtype)
        else:
            p[key] = val

    # Recompute derived coefficients
    if 'demand' in updates or 'demand_variability' in updates:
        p['adjusted_demand'] = adjust_demand(p['demand'], p['demand_variability'])
    if 'bench_limit' in updates:
        p['bench_fraction'] = copy.deepcopy(p['bench_limit'])
        p['bench_fraction'][p['junior']] = 1.0
    if 'daily_rate' in updates:
        p['mean_daily_rate'] = np.mean(p['daily_rate'], axis=0)

    return p


def scalar_parameters(p):
    """
    The scalar parameter values of the instance (used to label results and error messages)
    """
    return {key: p[key] for key in ['demand_variability', 'working_days', 'travel_budget', 'remote_penalty']
            if key in p}
