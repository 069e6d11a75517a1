"""
Consulting Workforce Allocation Problem (CWAP)
==============================================

Allocates a consulting firm's consultants (by seniority level and home location) to client project roles so that
net profit is maximized, and studies how that allocation responds to demand shocks, outsourcing costs and client
satisfaction penalties.

Subpackages
-----------
- `cwap.data`: Instance import/export, parameter validation and derived coefficients, eligibility rules and
  synthetic instance generation.
- `cwap.solutions`: The Pyomo allocation model and solver driver, solution evaluation and report tables, and the
  sensitivity experiments.

The `ConsultingWorkforceProblem` class in `cwap.main` ties everything together:

    from cwap.main import ConsultingWorkforceProblem
    instance = ConsultingWorkforceProblem("Example")
    instance.solve_pyomo_model({"eligibility_mode": "Strict"})
    instance.demand_variability_sensitivity()
"""
