"""
The `data` module holds everything about the problem instance itself, before any model is built:

- **processing**:
    - Imports an instance folder (CSV files or a `Parameters.xlsx` workbook) into the parameter dictionary.
    - Exports parameters, solution tables and sensitivity results.
- **adjustments**:
    - Validates the parameter dictionary and adds the index sets and derived coefficients (junior level, bench
      fractions, mean daily rates, adjusted demand).
    - Makes independent parameter snapshots for the sensitivity sweeps.
- **preferences**:
    - The eligibility rule (seniority substitution plus the location gating modes) and the eligible assignment
      cells it produces.
- **support**:
    - Default model parameters and small numeric helpers.
- **generation**:
    - Random and minimal synthetic instances for testing and prototyping.
"""
