"""
Command line entry point: solve an instance or run its sensitivity experiments.

    python -m cwap instances/Example --experiment all --solver cbc --max-time 30

Exit codes: 0 success, 2 infeasible/unbounded, 3 data load or model build error, 4 solver time limit.
"""
import argparse
import os
import sys

# cwap modules
import cwap.globals
from cwap.errors import EXIT_CODES, CWAPError
from cwap.main import ConsultingWorkforceProblem

experiments = ["solve", "demand", "outsourcing", "penalty", "duals", "all"]


def build_parser():
    parser = argparse.ArgumentParser(
        description="Allocate consultants to client projects to maximize profit, with sensitivity analysis."
    )
    parser.add_argument(
        "instance",
        help="Instance folder (a path, or a folder name inside ./instances)",
    )
    parser.add_argument(
        "--experiment",
        choices=experiments,
        default="solve",
        help="Single solve or sensitivity experiment to run (default: solve)",
    )
    parser.add_argument(
        "--mode",
        choices=cwap.globals.eligibility_modes,
        default="Unrestricted",
        help="Location eligibility mode (default: Unrestricted)",
    )
    parser.add_argument("--outsourcing", action="store_true", help="Allow outsourcing")
    parser.add_argument("--unfilled-penalty", action="store_true", help="Penalize unfilled demand")
    parser.add_argument("--relax", action="store_true", help="Solve the continuous relaxation")
    parser.add_argument("--solver", default="cbc", help="Pyomo solver name (default: cbc)")
    parser.add_argument("--max-time", type=float, default=60, help="Time limit per solve in seconds")
    parser.add_argument("--output", default=None, help="Folder for the CSV results")
    parser.add_argument("--quiet", action="store_true", help="Don't print progress")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    # Instance folder given as a path or as a name in ./instances
    instance_path = os.path.abspath(args.instance)
    if os.path.isdir(instance_path):
        instances_folder, data_name = os.path.dirname(instance_path), os.path.basename(instance_path)
    else:
        instances_folder, data_name = None, args.instance

    p_dict = {"eligibility_mode": args.mode, "outsourcing": args.outsourcing,
              "unfilled_penalty": args.unfilled_penalty, "integer": not args.relax,
              "sweep_integer": not args.relax, "solver_name": args.solver, "pyomo_max_time": args.max_time}

    try:
        instance = ConsultingWorkforceProblem(data_name, instances_folder=instances_folder, printing=not args.quiet)

        if args.experiment == "solve":
            instance.solve_pyomo_model(p_dict)
            instance.export_solution_results(args.output)
        else:
            if args.experiment in ["demand", "all"]:
                instance.demand_variability_sensitivity(p_dict)
            if args.experiment in ["outsourcing", "all"]:
                instance.outsourcing_cost_sensitivity(p_dict)
            if args.experiment in ["penalty", "all"]:
                instance.client_penalty_sensitivity(p_dict)
            if args.experiment in ["duals", "all"]:
                instance.dual_value_analysis(p_dict)
            instance.export_sensitivity_results(args.output)

    except CWAPError as error:
        print(f"ERROR: {error}", file=sys.stderr)
        return error.exit_code

    return EXIT_CODES["Success"]


if __name__ == "__main__":
    sys.exit(main())
