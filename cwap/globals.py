import os
import importlib.util
import pandas as pd
from packaging import version

# Folders & Paths
dir_path = os.getcwd() + "/"
global paths
paths = {"instances": dir_path + "instances/",
         "solvers": dir_path + "solvers/",
         "results": dir_path + "results/"}

# Only import pyomo if we have the package installed!
global use_pyomo
if importlib.util.find_spec("pyomo"):
    use_pyomo = True
else:
    use_pyomo = False

# Seniority levels in declared order (lower rank = more senior)
global default_levels
default_levels = ["Senior Consulting Manager", "Consulting Manager", "Senior Consultant", "Consultant",
                  "Junior Consultant"]

# Eligibility (location gating) modes
global eligibility_modes
eligibility_modes = ["Strict", "Remote Allowed", "Unrestricted"]

# Names of the profit components (in the order they are reported)
global profit_components
profit_components = ["Revenue", "SalaryCost", "TravelCost", "UnfilledPenalty", "OutsourceCost", "TotalProfit"]

# Swept parameter labels used as column headers in the sensitivity tables
global sweep_labels
sweep_labels = {"demand_variability": "DemandVariability", "outsourcing_cost": "OutsourcingCost",
                "client_penalty": "ClientSatisfactionPenalty"}


def instances_available(instances_folder=None):
    """
    Names of the instance folders currently sitting in the instances directory ('instances' by default)
    """
    if instances_folder is None:
        instances_folder = paths["instances"]
    if not os.path.isdir(instances_folder):
        return []
    return sorted(name for name in os.listdir(instances_folder)
                  if os.path.isdir(os.path.join(instances_folder, name)))


# Importing pandas dataframe function
def import_data(filepath, sheet_name=None, specify_engine=None):
    """
    This function is to alleviate issues with importing pandas dataframes since some versions can just
    import .xlsx files normally but some have to add ", engine= 'openpyxl'". Pandas versions > 1.2.1 must
    specify openpyxl as the engine
    :param filepath: excel file path
    :param sheet_name: name of the sheet to import
    :param specify_engine: issues with pandas "engine=" (decided from the pandas version if not given)
    :return: pandas dataframe
    """

    if sheet_name is None:
        sheet_name = 0
    if specify_engine is None:
        specify_engine = version.parse(pd.__version__) > version.parse("1.2.1")
    if specify_engine:
        return pd.read_excel(filepath, sheet_name=sheet_name, engine='openpyxl')
    return pd.read_excel(filepath, sheet_name=sheet_name)


def import_csv_data(filepath):
    """
    My own import statement in case I change the way I import data later
    """
    return pd.read_csv(filepath)
