# Import libraries
import os
import copy

# cwap modules
import cwap.globals
import cwap.data.adjustments
import cwap.data.generation
import cwap.data.processing
import cwap.data.support
import cwap.solutions.handling
from cwap.errors import ModelBuildError

# Import optimization models if pyomo is installed
if cwap.globals.use_pyomo:
    import cwap.solutions.optimization
    import cwap.solutions.sensitivity


# Main Problem Class
class ConsultingWorkforceProblem:
    def __init__(self, data_name="Random", parameters=None, instances_folder=None, H=3, G=3, N=5, seed=None,
                 printing=True):
        """
        Represents the consulting firm's workforce allocation problem.

        Parameters:
            data_name (str): The name of the data set. Either an instance folder name (in `instances_folder`) or
                "Random" to generate a new instance. Defaults to "Random".
            parameters (dict, optional): Instance parameters to use directly instead of importing/generating them.
            instances_folder (str, optional): Folder holding the instance folders. Defaults to './instances/'.
            H (int): Number of home locations to generate (Random only). Defaults to 3.
            G (int): Number of project locations to generate (Random only). Defaults to 3.
            N (int): Number of projects to generate (Random only). Defaults to 5.
            seed (int, optional): Random seed (Random only)
            printing (bool): Whether to print status updates or not. Defaults to True.

        The problem instance holds the parameters (`self.parameters`), the model parameters (`self.mdl_p`), the
        solutions obtained so far and the results of any sensitivity experiments.

        Example usage:
            instance = ConsultingWorkforceProblem(data_name="Random", N=8, seed=1)
            instance.solve_pyomo_model({"eligibility_mode": "Remote Allowed"})
        """
        self.data_name = data_name
        self.printing = printing
        self.import_paths, self.export_paths = None, None

        # Parameters handed to us directly
        if parameters is not None:
            if 'L' not in parameters:
                parameters = cwap.data.adjustments.parameter_sets_additions(parameters)
            self.parameters = parameters

        # Generate a new instance
        elif data_name == "Random":
            if self.printing:
                print("Generating random instance...")
            self.parameters = cwap.data.generation.generate_random_instance(H=H, G=G, N=N, seed=seed)

        # Import an existing instance
        else:
            if self.printing:
                print("Importing '" + data_name + "' instance...")
            self.import_paths, self.export_paths = cwap.data.processing.initialize_file_information(
                data_name, instances_folder)
            self.parameters = cwap.data.processing.import_parameters_data(self.import_paths, printing=self.printing)

        # Model parameters, solutions and sensitivity results
        self.mdl_p = cwap.data.support.initialize_instance_functional_parameters()
        self.solution, self.solution_name = None, None
        self.solutions = {}
        self.sensitivity = {}

    # Adjust Data
    def reset_functional_parameters(self, p_dict=None):
        """
        Resets the instance model parameters to their defaults and updates them with the values in p_dict. Unknown
        keys are reported and ignored.

        Example usage:
            instance.reset_functional_parameters({'eligibility_mode': 'Strict', 'outsourcing': True})
        """

        # Reset model parameters
        self.mdl_p = cwap.data.support.initialize_instance_functional_parameters()

        # Update model parameters
        if p_dict is None:
            return
        for key in p_dict:

            if key in self.mdl_p:
                self.mdl_p[key] = p_dict[key]
            else:
                print("WARNING. Specified parameter '" + str(key) + "' does not exist.")

        if self.mdl_p['eligibility_mode'] not in cwap.globals.eligibility_modes:
            raise ModelBuildError(f"Eligibility mode '{self.mdl_p['eligibility_mode']}' not recognized. "
                                  f"Valid modes are {cwap.globals.eligibility_modes}.")

    def error_checking(self, test="None"):
        """
        This method is here to test different conditions and raise errors where conditions are not met.
        """
        if test == "Pyomo Model":
            if not cwap.globals.use_pyomo:
                raise ModelBuildError("Error. Pyomo is not currently installed and is required to run pyomo "
                                      "models. Please install this library.")
        elif test == "Solutions":
            if len(self.solutions) == 0:
                raise ValueError("Error. No solutions dictionary detected. You need to solve this problem first.")

    # Solve the model
    def solve_pyomo_model(self, p_dict=None, printing=None):
        """
        Builds and solves the allocation model with the model parameters in p_dict.

        Args:
            p_dict (dict, optional): Model parameters to change from their defaults (eligibility mode, outsourcing,
                unfilled_penalty, integer, solver_name, pyomo_max_time, ...)
            printing (bool, optional): Whether to print progress. Defaults to the instance setting.

        Returns:
            dict: The evaluated solution. Infeasible, unbounded and timed-out solves raise the corresponding error.
        """
        self.error_checking("Pyomo Model")
        if printing is None:
            printing = self.printing

        # Reset instance model parameters
        self.reset_functional_parameters(p_dict)

        # Build the model and then solve it
        model = cwap.solutions.optimization.allocation_model_build(self.parameters, self.mdl_p, printing=printing)
        solution = cwap.solutions.optimization.solve_pyomo_model(model, self.parameters, self.mdl_p,
                                                                 printing=printing)

        # Determine what to do with the solution
        self.solution_handling(solution, printing=printing)

        # Return the solution
        return self.solution

    def solution_handling(self, solution, printing=None):
        """
        Evaluates the solution, checks the allocation invariants and adds it to the solutions dictionary
        """
        if printing is None:
            printing = self.printing

        # Recompute the profit terms from the primal values
        solution = cwap.solutions.handling.evaluate_solution(solution, self.parameters, self.mdl_p)
        solution['method'] = self.mdl_p['eligibility_mode'] + (" (MIP)" if solution['integer'] else " (LP)")

        # Check invariants
        if self.mdl_p['check_invariants']:
            solution['invariant_violations'] = cwap.solutions.handling.check_solution_invariants(
                solution, self.parameters, self.mdl_p, tolerance=self.mdl_p['feasibility_tolerance'] * 1000)
            if printing:
                for violation in solution['invariant_violations']:
                    print("WARNING. Solution violates:", violation)

        # Determine solution name
        solution_name = solution['method']
        count = 2
        while solution_name in self.solutions:
            solution_name = solution['method'] + '_' + str(count)
            count += 1
        solution['name'] = solution_name

        if self.mdl_p['add_to_dict']:
            self.solutions[solution_name] = solution
        if self.mdl_p['set_to_instance']:
            self.solution, self.solution_name = solution, solution_name

    def set_solution(self, solution_name=None):
        """
        Activates a solution from the solutions dictionary (the most recent one by default)
        """
        self.error_checking("Solutions")
        if solution_name is None:
            solution_name = list(self.solutions.keys())[-1]
        if solution_name not in self.solutions:
            raise ValueError('Solution ' + solution_name + ' not in solution dictionary')
        self.solution, self.solution_name = self.solutions[solution_name], solution_name

    # Sensitivity Analysis
    def demand_variability_sensitivity(self, p_dict=None, values=None, printing=None):
        """
        Sweeps the demand variability factor (see `cwap.solutions.sensitivity.demand_variability_sensitivity`)
        """
        return self._run_experiment("Demand Variability",
                                    cwap.solutions.sensitivity.demand_variability_sensitivity, p_dict, values,
                                    printing)

    def outsourcing_cost_sensitivity(self, p_dict=None, values=None, printing=None):
        """
        Sweeps the outsourcing cost multiplier (see `cwap.solutions.sensitivity.outsourcing_cost_sensitivity`)
        """
        return self._run_experiment("Outsourcing Cost",
                                    cwap.solutions.sensitivity.outsourcing_cost_sensitivity, p_dict, values,
                                    printing)

    def client_penalty_sensitivity(self, p_dict=None, values=None, printing=None):
        """
        Sweeps the client satisfaction penalty (see `cwap.solutions.sensitivity.client_penalty_sensitivity`)
        """
        return self._run_experiment("Client Satisfaction Penalty",
                                    cwap.solutions.sensitivity.client_penalty_sensitivity, p_dict, values,
                                    printing)

    def dual_value_analysis(self, p_dict=None, demand_variability=None, printing=None):
        """
        Shadow prices of the continuous relaxation at a fixed demand variability
        """
        self.error_checking("Pyomo Model")
        if printing is None:
            printing = self.printing
        self.reset_functional_parameters(p_dict)
        results = cwap.solutions.sensitivity.dual_value_analysis(self.parameters, self.mdl_p,
                                                                 demand_variability=demand_variability,
                                                                 printing=printing)
        self.sensitivity["Dual Values"] = results
        return results

    def run_all_sensitivity_experiments(self, p_dict=None, printing=None):
        """
        Runs every sensitivity experiment, each starting from the same baseline parameters
        """
        self.demand_variability_sensitivity(copy.deepcopy(p_dict), printing=printing)
        self.outsourcing_cost_sensitivity(copy.deepcopy(p_dict), printing=printing)
        self.client_penalty_sensitivity(copy.deepcopy(p_dict), printing=printing)
        self.dual_value_analysis(copy.deepcopy(p_dict), printing=printing)
        return self.sensitivity

    def _run_experiment(self, name, experiment, p_dict, values, printing):
        self.error_checking("Pyomo Model")
        if printing is None:
            printing = self.printing
        self.reset_functional_parameters(p_dict)
        results = experiment(self.parameters, self.mdl_p, values=values, printing=printing)
        self.sensitivity[name] = results
        return results

    # Export
    def solution_tables(self, solution_name=None):
        """
        Report tables of a solution: summary, allocations, demand fulfilment, travel, bench and duals
        """
        if solution_name is not None:
            self.set_solution(solution_name)
        self.error_checking("Solutions")
        s, p = self.solution, self.parameters
        return {"Summary": cwap.solutions.handling.summary_frame(s),
                "Allocation": cwap.solutions.handling.allocation_rows(s, p, self.mdl_p),
                "Demand": cwap.solutions.handling.demand_rows(s, p),
                "Travel": cwap.solutions.handling.travel_rows(s, p, self.mdl_p),
                "Bench": cwap.solutions.handling.bench_rows(s, p),
                "Duals": cwap.solutions.handling.dual_rows(s, p)}

    def export_solution_results(self, folder=None, solution_name=None, printing=None):
        if printing is None:
            printing = self.printing
        folder = self._export_folder(folder, "Results")
        tables = self.solution_tables(solution_name)
        filepaths = cwap.data.processing.export_solution_data(tables, folder, prefix=self.solution_name + " ")
        if printing:
            print(f"Solution '{self.solution_name}' exported to '{folder}'.")
        return filepaths

    def export_sensitivity_results(self, folder=None, printing=None):
        if printing is None:
            printing = self.printing
        folder = self._export_folder(folder, "Sensitivity")
        filepaths = {}
        for name, results in self.sensitivity.items():
            tables = {"Rows": results['rows'], "Summary": results['summary']}
            filepaths[name] = cwap.data.processing.export_solution_data(tables, folder, prefix=name + " ")
        if printing:
            print(f"{len(filepaths)} sensitivity experiment(s) exported to '{folder}'.")
        return filepaths

    def export_parameters(self, folder):
        cwap.data.processing.export_parameters_data(self.parameters, folder)

    def _export_folder(self, folder, kind):
        if folder is not None:
            return folder
        if self.export_paths is not None:
            return self.export_paths[kind]
        return os.path.join(cwap.globals.paths["results"], self.data_name, kind)
