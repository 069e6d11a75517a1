"""
The `solutions` module builds, solves and analyzes the workforce allocation model.

Submodules
----------

- **optimization**: The Pyomo model (variables, constraint families, profit objective), the solver driver with
  per-solve time limits, and infeasibility diagnostics.
- **handling**: Recomputes the profit terms from the primal values, checks the allocation invariants and builds
  the report tables (allocations, demand, travel, bench, shadow prices).
- **sensitivity**: Parameter sweeps over demand variability, outsourcing cost and client satisfaction penalty,
  plus the shadow price analysis of the continuous relaxation.

Typical Workflow
----------------

1. Build the model with `optimization.allocation_model_build` for an eligibility mode and set of toggles.
2. Solve it with `optimization.solve_pyomo_model` and evaluate it with `handling.evaluate_solution`.
3. Run the experiments in `sensitivity`, which rebuild the parameter-dependent parts of the model at every point.
"""
