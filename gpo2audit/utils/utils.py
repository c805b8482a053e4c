import re
import codecs
from pathlib import Path
from importlib import resources

import yaml

from rich.table import Table
from rich.console import Console
from platformdirs import user_config_dir

CONFIG_PACKAGE = "gpo2audit.config"

############################### Load config ###############################


def load_yaml_config(file_name):
    """Load the YAML configuration file."""

    # Override configuration file with the one specified in the user's config folder
    override_file = override_configuration(file_name)

    # Load YAML file
    if override_file:
        with override_file.open("r", encoding="utf-8") as file:
            return yaml.safe_load(file)

    with resources.files(CONFIG_PACKAGE).joinpath(file_name).open("r", encoding="utf-8") as file:
        return yaml.safe_load(file)


def override_configuration(file_name):
    """
    Override configuration with custom configuration from the user configuration directory
    """

    path = Path(user_config_dir("gpo2audit"))
    if not path.is_dir():
        return None

    # Return the first found file path in the user's configuration
    for found in sorted(path.rglob(file_name)):
        return found

    return None


############################### Read export ###############################


def detect_encoding(raw):
    """
    Guess the encoding of an LGPO export from its byte order mark
    """

    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return "utf-16"
    return "utf-8-sig"


def read_export_lines(file_path, encoding=None):
    """
    Read an LGPO text export and return its lines without line endings
    """

    with open(file_path, "rb") as f:
        raw = f.read()

    if not encoding:
        encoding = detect_encoding(raw)

    return raw.decode(encoding).splitlines()


############################### Printing functions ###############################


def search_index(index, search_term):
    """
    Filter the resource index with a regex pattern on ids and texts
    """

    search_pattern = re.compile(search_term, re.IGNORECASE)

    return {
        string_id: text
        for string_id, text in index.items()
        if search_pattern.search(string_id) or search_pattern.search(text)
    }


def print_index(index):
    """
    Print the resource index as a table
    """

    table = Table(show_lines=False, title=f"Resource strings ({len(index)})")
    table.add_column("ID", ratio=4, overflow="fold", style="bold blue")
    table.add_column("Text", ratio=6, overflow="fold")

    for string_id, text in index.items():
        table.add_row(string_id, text)

    Console().print(table)


def print_rules(rules):
    """
    Print the emitted audit rules as a table
    """

    table = Table(show_lines=True, title=f"Audit rules ({len(rules)})")
    table.add_column("Description", ratio=5, overflow="fold", style="bold")
    table.add_column("Type", width=18, justify="center")
    table.add_column("Data", ratio=2, justify="center", overflow="fold")
    table.add_column("Key", ratio=6, overflow="fold")
    table.add_column("Item", ratio=3, overflow="fold")

    for rule in rules:
        table.add_row(
            rule.get("description"),
            rule.get("value_type"),
            rule.get("value_data"),
            rule.get("reg_key"),
            rule.get("reg_item"),
        )

    Console().print(table)


def print_summary(summary):
    """
    Print the conversion counters
    """

    table = Table(show_header=False)
    table.add_column("Counter", style="bold blue")
    table.add_column("Value", justify="right")

    for counter, value in summary.items():
        table.add_row(counter, str(value))

    Console().print(table)
