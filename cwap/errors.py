"""
Exception types raised while loading data, building the allocation model, and solving it.

Every error carries the parameter values that were in effect when it was raised so that a failure inside a
sensitivity sweep can be traced back to the sweep point that caused it. All of them derive from `ValueError`
since that is what the rest of the package has always raised for bad data and infeasible models.

- `DataLoadError` and `ModelBuildError` are fatal: no model can be built.
- `InfeasibleError`, `UnboundedError` and `SolverTimeout` are fatal for a single solve but are recorded and
  skipped over by the sensitivity sweeps.
"""

# Process exit codes used by the command line interface
EXIT_CODES = {"Success": 0, "Infeasible": 2, "DataLoadError": 3, "SolverTimeout": 4}


def format_parameters(parameters):
    """
    Turns a dictionary of scalar parameter values into a short "name=value" string
    """
    if not parameters:
        return ""
    items = []
    for key, val in parameters.items():
        if isinstance(val, float):
            val = round(val, 6)
        items.append(f"{key}={val}")
    return ", ".join(items)


class CWAPError(ValueError):
    """
    Base class for every error raised by the package
    """
    exit_code = 1

    def __init__(self, message, parameters=None):
        self.parameters = dict(parameters) if parameters else {}
        self.message = message
        if self.parameters:
            message = f"{message} [parameters: {format_parameters(self.parameters)}]"
        super().__init__(message)


class DataLoadError(CWAPError):
    """Malformed or missing input data."""
    exit_code = EXIT_CODES["DataLoadError"]


class ModelBuildError(CWAPError):
    """A coefficient required by an eligible index is missing or the model configuration is invalid."""
    exit_code = EXIT_CODES["DataLoadError"]


class SolverError(CWAPError):
    """
    The solver returned without an optimal solution. `status` is one of "Infeasible", "Unbounded" or
    "Timeout", and `constraints` names the constraint families implicated in the failure (if known).
    """
    status = None
    exit_code = EXIT_CODES["Infeasible"]

    def __init__(self, message, parameters=None, constraints=None):
        self.constraints = list(constraints) if constraints else []
        if self.constraints:
            message = f"{message} Offending constraints: {', '.join(self.constraints)}."
        super().__init__(message, parameters)


class InfeasibleError(SolverError):
    status = "Infeasible"


class UnboundedError(SolverError):
    status = "Unbounded"


class SolverTimeout(SolverError):
    status = "Timeout"
    exit_code = EXIT_CODES["SolverTimeout"]
