"""
Eligibility rules that decide who may fill what.

A consultant of actual level `a` may fill a role of nominal level `r` only if they are at least as senior as the
role (`seniority[a] <= seniority[r]`); seniors can cover junior roles, never the reverse. On top of that rule one
location-gating mode is active per run:

- **Strict**: the cell exists only if the consultant's level is willing to work at the project location
  (`preference[a, g] == 1`).
- **Remote Allowed**: every seniority-eligible cell exists; unwilling cells are worked from home, so they earn
  `remote_penalty` times the normal revenue and incur no travel cost.
- **Unrestricted**: no location gating at all.
"""
import numpy as np

# cwap modules
import cwap.globals
from cwap.errors import ModelBuildError


def seniority_eligible(p, actual, role):
    """
    True if a consultant of level index `actual` may fill a role of level index `role`
    """
    return p['seniority'][actual] <= p['seniority'][role]


def assignment_eligibility(p, actual, role, location, mode):
    """
    Applies the eligibility rule to one (actual level, role level, project location) combination.

    Parameters:
        p (dict): Instance parameters (needs 'seniority', plus 'preference'/'remote_penalty' for the gated modes)
        actual (int): Index of the consultant's actual level
        role (int): Index of the role's nominal level
        location (int): Index of the project location
        mode (str): One of "Strict", "Remote Allowed", "Unrestricted"

    Returns:
        tuple: (eligible, revenue_multiplier, on_site). `on_site` is False only for work-from-home cells, which
        never incur travel costs.
    """
    if mode not in cwap.globals.eligibility_modes:
        raise ModelBuildError(f"Eligibility mode '{mode}' not recognized. "
                              f"Valid modes are {cwap.globals.eligibility_modes}.")

    if not seniority_eligible(p, actual, role):
        return False, 0.0, False

    if mode == "Unrestricted":
        return True, 1.0, True

    willing = p['preference'][actual, location] == 1
    if mode == "Strict":
        return bool(willing), 1.0, True

    # Remote Allowed: unwilling consultants work remotely at a discount
    if willing:
        return True, 1.0, True
    return True, float(p['remote_penalty']), False


def eligible_assignment_indices(p, mode):
    """
    Builds the index domain of the assignment variable for the given eligibility mode.

    Parameters:
        p (dict): Instance parameters with index sets 'H', 'L', 'P' and 'project_location'
        mode (str): Eligibility mode

    Returns:
        dict: With keys
            - 'A': sorted list of (home, actual level, project, role level) tuples
            - 'A^WFH': set of the tuples in 'A' worked from home (Remote Allowed only)
            - 'revenue_multiplier': dictionary of multipliers for each tuple in 'A'
            - 'A^supply': (home, level) -> list of (project, role level) the pool may fill
            - 'A^demand': (project, role level) -> list of (home, actual level) that may fill it
    """

    # Location gating needs the preference matrix
    if mode in ["Strict", "Remote Allowed"]:
        if 'preference' not in p:
            raise ModelBuildError(f"Eligibility mode '{mode}' requires the 'preference' matrix.")
        if np.shape(p['preference']) != (len(p['L']), len(p['G'])):
            raise ModelBuildError(f"Preference matrix has shape {np.shape(p['preference'])}, expected "
                                  f"{(len(p['L']), len(p['G']))} (levels x project locations).")
    if mode == "Remote Allowed" and 'remote_penalty' not in p:
        raise ModelBuildError("Eligibility mode 'Remote Allowed' requires 'remote_penalty'.")

    indices = {'A': [], 'A^WFH': set(), 'revenue_multiplier': {},
               'A^supply': {(h, l): [] for h in p['H'] for l in p['L']},
               'A^demand': {(j, l): [] for j in p['P'] for l in p['L']}}

    # Loop through every cell of the full Cartesian domain
    for h in p['H']:
        for a in p['L']:
            for j in p['P']:
                g = p['project_location'][j]
                for r in p['L']:
                    eligible, multiplier, on_site = assignment_eligibility(p, a, r, g, mode)
                    if not eligible:
                        continue

                    cell = (h, a, j, r)
                    indices['A'].append(cell)
                    indices['revenue_multiplier'][cell] = multiplier
                    indices['A^supply'][(h, a)].append((j, r))
                    indices['A^demand'][(j, r)].append((h, a))
                    if not on_site:
                        indices['A^WFH'].add(cell)

    return indices
