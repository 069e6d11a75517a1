"""
Data Processing Module
======================

This module handles all input/output operations for the CWAP modeling pipeline.

It imports problem instance data (levels, pools, demand, rates, travel costs, preferences and scalar
parameters) from the instance folder and exports parameters, solution tables and sensitivity results to CSV.

Instance Folder Layout
----------------------
`instances/<data_name>/` holds one CSV per table (or a single `Parameters.xlsx` workbook with one sheet per
table, same names):

- `Levels.csv`: Level, Seniority, Daily Salary, Bench Limit, [Outsourcing Cost], [Client Penalty]
- `Pool.csv`: Home Location, then one column of headcounts per level
- `Demand.csv`: Project, Location, then one column of headcounts per level
- `Daily Rates.csv`: Project, then one column of daily rates per level
- `Travel Costs.csv`: Home Location, then one column of per-head travel costs per project location
- `Preferences.csv` (optional): Level, then one 0/1 column per project location
- `Scalars.csv`: Parameter, Value (Working Days, Travel Budget, Demand Variability, Remote Work Penalty)

Pools are always indexed by home location and demand by project; a pool table keyed by project location is
rejected.
"""
import os
import numpy as np
import pandas as pd

# cwap modules
import cwap.globals
import cwap.data.adjustments
from cwap.errors import DataLoadError

# Tables in an instance folder (required tables first)
instance_tables = ["Levels", "Pool", "Demand", "Daily Rates", "Travel Costs", "Scalars", "Preferences"]
optional_tables = ["Preferences"]

# Translate 'Scalars' rows to their parameter counterparts
scalar_rows_to_parameters = {"Working Days": "working_days", "Travel Budget": "travel_budget",
                             "Demand Variability": "demand_variability", "Remote Work Penalty": "remote_penalty"}

# Translate 'Levels' columns to their parameter counterparts
level_columns_to_parameters = {"Seniority": "seniority", "Daily Salary": "daily_salary", "Bench Limit": "bench_limit",
                               "Outsourcing Cost": "outsourcing_cost", "Client Penalty": "client_penalty"}


def initialize_file_information(data_name, instances_folder=None):
    """
    Sets up the import/export paths for an instance.

    Parameters:
        data_name (str): Name of the instance folder
        instances_folder (str, optional): Folder containing the instance folders. Defaults to the 'instances'
            folder in the working directory.

    Returns:
        tuple: (import_paths, export_paths). Import paths map each table name to its file (or to
        (workbook, sheet) for an Excel instance). Export paths map "Results" and "Sensitivity" to folders.
    """
    if instances_folder is None:
        instances_folder = cwap.globals.paths["instances"]
    folder = os.path.join(instances_folder, data_name)
    if not os.path.isdir(folder):
        available = cwap.globals.instances_available(instances_folder)
        raise DataLoadError(f"Error. Instance folder '{folder}' does not exist. Instances available: "
                            f"{', '.join(available) if available else 'none'}.")

    import_paths = {}
    workbook = os.path.join(folder, "Parameters.xlsx")
    sheets = []
    if os.path.exists(workbook):
        with pd.ExcelFile(workbook, engine="openpyxl") as xlsx:
            sheets = xlsx.sheet_names
    for table in instance_tables:
        filepath = os.path.join(folder, table + ".csv")
        if os.path.exists(filepath):
            import_paths[table] = filepath
        elif table in sheets:
            import_paths[table] = (workbook, table)

    export_paths = {"Instance": folder, "Results": os.path.join(folder, "Results"),
                    "Sensitivity": os.path.join(folder, "Sensitivity")}
    return import_paths, export_paths


def import_table(import_paths, table):
    """
    Imports one table of the instance as a dataframe
    """
    if table not in import_paths:
        raise DataLoadError(f"Error. No '{table}' data provided which is required.")
    path = import_paths[table]
    try:
        if isinstance(path, tuple):
            df = cwap.globals.import_data(path[0], sheet_name=path[1])
        else:
            df = cwap.globals.import_csv_data(path)
    except (OSError, ValueError, pd.errors.ParserError) as error:
        raise DataLoadError(f"Error. Could not read '{table}' data: {error}") from error
    return df


def check_columns(df, table, columns):
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise DataLoadError(f"Error. '{table}' data is missing column(s) {missing}.")


def level_matrix(df, table, levels):
    """
    Pulls the per-level columns of a table out as a numeric matrix (rows x levels)
    """
    check_columns(df, table, levels)
    try:
        return np.array(df.loc[:, levels]).astype(float)
    except ValueError as error:
        raise DataLoadError(f"Error. '{table}' data has non-numeric entries: {error}") from error


def import_parameters_data(import_paths, printing=False):
    """
    Imports every table of an instance and returns the completed parameter dictionary.

    Parameters:
        import_paths (dict): Table name -> file path (from `initialize_file_information`)
        printing (bool): Whether to print status updates

    Returns:
        dict: Instance parameters after `parameter_sets_additions`

    Raises:
        DataLoadError: If a required table or column is missing or holds malformed values
    """

    # Levels
    levels_df = import_table(import_paths, "Levels")
    check_columns(levels_df, "Levels", ["Level", "Daily Salary", "Bench Limit"])
    p = {"levels": np.array(levels_df["Level"]).astype(str)}
    levels = list(p["levels"])
    for col, key in level_columns_to_parameters.items():
        if col in levels_df.columns:
            p[key] = np.array(levels_df[col])

    # Pool (indexed by home location)
    pool_df = import_table(import_paths, "Pool")
    if "Home Location" not in pool_df.columns:
        raise DataLoadError("Error. 'Pool' data must be indexed by 'Home Location'"
                            + (" (found 'Project Location')." if "Project Location" in pool_df.columns else "."))
    p["homes"] = np.array(pool_df["Home Location"]).astype(str)
    p["pool"] = level_matrix(pool_df, "Pool", levels)

    # Demand (indexed by project)
    demand_df = import_table(import_paths, "Demand")
    check_columns(demand_df, "Demand", ["Project", "Location"])
    p["projects"] = np.array(demand_df["Project"]).astype(int)
    p["demand"] = level_matrix(demand_df, "Demand", levels)

    # Daily rates, matched to the demand table by project id
    rates_df = import_table(import_paths, "Daily Rates")
    check_columns(rates_df, "Daily Rates", ["Project"])
    rates_df = rates_df.set_index("Project")
    missing = [project for project in p["projects"] if project not in rates_df.index]
    if missing:
        raise DataLoadError(f"Error. 'Daily Rates' data has no rates for project(s) {missing}.")
    p["daily_rate"] = level_matrix(rates_df.loc[p["projects"], :].reset_index(), "Daily Rates", levels)

    # Travel costs define the project locations
    travel_df = import_table(import_paths, "Travel Costs")
    check_columns(travel_df, "Travel Costs", ["Home Location"])
    p["locations"] = np.array([col for col in travel_df.columns if col != "Home Location"]).astype(str)
    travel_df = travel_df.set_index("Home Location")
    missing = [home for home in p["homes"] if home not in travel_df.index]
    if missing:
        raise DataLoadError(f"Error. 'Travel Costs' data has no row for home location(s) {missing}.")
    p["travel_cost"] = np.array(travel_df.loc[p["homes"], list(p["locations"])]).astype(float)

    # Project locations
    location_index = {loc: g for g, loc in enumerate(p["locations"])}
    project_locations = np.array(demand_df["Location"]).astype(str)
    unknown = sorted(set(project_locations) - set(location_index))
    if unknown:
        raise DataLoadError(f"Error. Project location(s) {unknown} have no column in the 'Travel Costs' data.")
    p["project_location"] = np.array([location_index[loc] for loc in project_locations])

    # Preferences (optional)
    if "Preferences" in import_paths:
        pref_df = import_table(import_paths, "Preferences")
        check_columns(pref_df, "Preferences", ["Level"] + list(p["locations"]))
        pref_df = pref_df.set_index("Level")
        missing = [level for level in levels if level not in pref_df.index]
        if missing:
            raise DataLoadError(f"Error. 'Preferences' data has no row for level(s) {missing}.")
        p["preference"] = np.array(pref_df.loc[levels, list(p["locations"])]).astype(int)

    # Scalars
    scalars_df = import_table(import_paths, "Scalars")
    check_columns(scalars_df, "Scalars", ["Parameter", "Value"])
    for _, row in scalars_df.iterrows():
        if row["Parameter"] in scalar_rows_to_parameters:
            p[scalar_rows_to_parameters[row["Parameter"]]] = float(row["Value"])

    # Additional sets and coefficients
    p = cwap.data.adjustments.parameter_sets_additions(p)

    if printing:
        print(f"Imported {len(p['H'])} home locations, {len(p['L'])} levels, {len(p['P'])} projects and "
              f"{len(p['G'])} project locations.")
    return p


def export_parameters_data(p, folder):
    """
    Writes the instance parameters to `folder` in the instance folder layout (so they can be imported again)
    """
    if not os.path.exists(folder):
        os.makedirs(folder)
    levels = list(p['levels'])

    levels_df = pd.DataFrame({"Level": levels})
    for col, key in level_columns_to_parameters.items():
        levels_df[col] = p[key]
    levels_df.to_csv(os.path.join(folder, "Levels.csv"), index=False)

    pool_df = pd.DataFrame(p['pool'], columns=levels)
    pool_df.insert(0, "Home Location", p['homes'])
    pool_df.to_csv(os.path.join(folder, "Pool.csv"), index=False)

    demand_df = pd.DataFrame(p['demand'], columns=levels)
    demand_df.insert(0, "Location", p['locations'][p['project_location']])
    demand_df.insert(0, "Project", p['projects'])
    demand_df.to_csv(os.path.join(folder, "Demand.csv"), index=False)

    rates_df = pd.DataFrame(p['daily_rate'], columns=levels)
    rates_df.insert(0, "Project", p['projects'])
    rates_df.to_csv(os.path.join(folder, "Daily Rates.csv"), index=False)

    travel_df = pd.DataFrame(p['travel_cost'], columns=list(p['locations']))
    travel_df.insert(0, "Home Location", p['homes'])
    travel_df.to_csv(os.path.join(folder, "Travel Costs.csv"), index=False)

    pref_df = pd.DataFrame(p['preference'], columns=list(p['locations']))
    pref_df.insert(0, "Level", levels)
    pref_df.to_csv(os.path.join(folder, "Preferences.csv"), index=False)

    scalars_df = pd.DataFrame({"Parameter": list(scalar_rows_to_parameters),
                               "Value": [p[key] for key in scalar_rows_to_parameters.values()]})
    scalars_df.to_csv(os.path.join(folder, "Scalars.csv"), index=False)


def export_solution_data(tables, folder, prefix=""):
    """
    Writes each dataframe in `tables` ({name: dataframe}) to '<folder>/<prefix><name>.csv'
    """
    if not os.path.exists(folder):
        os.makedirs(folder)
    filepaths = {}
    for name, df in tables.items():
        filepaths[name] = os.path.join(folder, prefix + name + ".csv")
        df.to_csv(filepaths[name], index=False)
    return filepaths
