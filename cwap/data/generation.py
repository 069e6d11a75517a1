"""
`cwap.data.generation`
======================

Synthetic instance generation for the CWAP framework. Useful for prototyping, testing the optimization model
and the sensitivity experiments, and building examples without client data.

- `generate_random_instance`: Randomized pools, demand, rates, salaries, travel costs and preferences across a
  handful of cities that act as both home and project locations.
- `generate_single_cell_instance`: One home location, one level and one project; the smallest instance the
  model accepts.
"""
import numpy as np

# cwap modules
import cwap.globals
import cwap.data.adjustments

# City names shared by home and project locations
cities = ["London", "Manchester", "Edinburgh", "Dublin", "Paris", "Frankfurt", "Amsterdam", "Madrid", "Milan",
          "Stockholm"]


def generate_random_instance(H=3, G=3, N=5, levels=None, seed=None):
    """
    This procedure simulates a new random consulting firm: home pools, project demand and every cost parameter.
    :param H: number of home locations (the first H cities)
    :param G: number of project locations (the first G cities)
    :param N: number of projects
    :param levels: names of the seniority levels (most senior first). Defaults to the standard five levels
    :param seed: random seed
    :return: instance parameters (after `parameter_sets_additions`)
    """
    if H > len(cities) or G > len(cities):
        raise ValueError(f"Can only generate up to {len(cities)} locations.")
    if levels is None:
        levels = cwap.globals.default_levels
    rng = np.random.default_rng(seed)
    L = len(levels)

    # Seniority goes from most senior (1) to least senior (L), and so do salaries and rates
    seniority = np.arange(1, L + 1)
    base_salary = np.linspace(900, 250, L).round()
    markup = rng.uniform(1.6, 2.4, size=(N, L))

    p = {'levels': np.array(levels), 'seniority': seniority, 'homes': np.array(cities[:H]),
         'locations': np.array(cities[:G]), 'projects': np.arange(1, N + 1),
         'project_location': rng.integers(0, G, size=N),

         # Fewer senior consultants than junior ones
         'pool': rng.integers(1, 4, size=(H, L)) * np.arange(1, L + 1)[np.newaxis, :],
         'demand': rng.integers(0, 5, size=(N, L)),
         'daily_salary': base_salary,
         'daily_rate': (markup * base_salary[np.newaxis, :]).round(),
         'bench_limit': np.append(np.full(L - 1, 0.8), 1.0),
         'outsourcing_cost': np.full(L, 1.5),
         'client_penalty': np.full(L, 0.5),
         'preference': rng.choice([0, 1], size=(L, G), p=[0.25, 0.75]),
         'working_days': 20.0, 'demand_variability': 0.0, 'remote_penalty': 0.8}

    # Travel costs grow with "distance" between cities (zero at home)
    travel = np.zeros((H, G))
    for h, home in enumerate(p['homes']):
        for g, loc in enumerate(p['locations']):
            if home != loc:
                travel[h, g] = 200 + 150 * abs(h - g) + rng.integers(0, 100)
    p['travel_cost'] = travel
    p['travel_budget'] = float(np.sum(p['demand']) * 250)

    return cwap.data.adjustments.parameter_sets_additions(p)


def generate_single_cell_instance(pool=10, demand=5, daily_rate=1000.0, daily_salary=400.0, travel_cost=0.0,
                                  bench_limit=1.0, working_days=20.0, travel_budget=0.0, demand_variability=0.0,
                                  level="Consultant", location="London"):
    """
    One home location, one level and one project at the home location.
    """
    p = {'levels': np.array([level]), 'seniority': np.array([1]), 'homes': np.array([location]),
         'locations': np.array([location]), 'projects': np.array([1]), 'project_location': np.array([0]),
         'pool': np.array([[pool]]), 'demand': np.array([[demand]]), 'daily_rate': np.array([[daily_rate]]),
         'daily_salary': np.array([daily_salary]), 'bench_limit': np.array([bench_limit]),
         'travel_cost': np.array([[travel_cost]]), 'working_days': working_days, 'travel_budget': travel_budget,
         'demand_variability': demand_variability}
    return cwap.data.adjustments.parameter_sets_additions(p)
