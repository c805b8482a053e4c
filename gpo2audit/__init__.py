#! /usr/bin/env python3

import argparse
import os
import re
import sys
import logging

from rich.prompt import Confirm
from platformdirs import user_config_dir

from gpo2audit.errors import GPO2AuditError
from gpo2audit.utils.utils import load_yaml_config
from gpo2audit.core import GPO2AuditCore


def confirm_overwrite(output_path):
    """
    Ask before replacing an existing audit file
    """
    return Confirm.ask(f"'{output_path}' already exists, overwrite it?", default=False)


def main(argv=None):

    # Create configuration directory if it does not exist
    os.makedirs(user_config_dir("gpo2audit"), exist_ok=True)

    # YAML configuration
    resources_conf = load_yaml_config(file_name="resources.yaml")
    audit_conf = load_yaml_config(file_name="audit.yaml")

    parser = argparse.ArgumentParser(description="gpo2audit - Convert LGPO registry exports to Nessus audit files")

    # Resources
    resources = parser.add_argument_group("Policy definitions")
    resources.add_argument(
        "-R",
        dest="resources_path",
        metavar="RESOURCES_PATH",
        default=resources_conf.get("resources_path"),
        type=str,
        help=f"Directory containing the .adml resource files (default: {resources_conf.get('resources_path')})",
    )

    # Commands
    subparsers = parser.add_subparsers(title="Commands", dest="command", required=True)

    # Convert command
    convert = subparsers.add_parser("convert", help="Convert an LGPO text export to a .audit file")
    convert.add_argument("--debug", action="store_true", help="Enable DEBUG output")
    convert.add_argument("input_path", metavar="INPUT", help="Text export produced by LGPO.exe /parse")
    convert.add_argument("-o", dest="output_path", metavar="OUTPUT", required=True, help="Destination .audit file")

    convert_options = convert.add_argument_group(title="Options")
    convert_options.add_argument(
        "--version",
        dest="audit_version",
        metavar="VERSION",
        default=audit_conf.get("version"),
        help=f"Version written in the check_type tag (default: {audit_conf.get('version')})",
    )
    convert_options.add_argument(
        "--description",
        default=audit_conf.get("description"),
        help=f"Description written in the group_policy tag (default: {audit_conf.get('description')})",
    )
    convert_options.add_argument("--encoding", help="Encoding of the export (default: detected from the BOM)")
    convert_options.add_argument("--force", action="store_true", help="Overwrite the output file without asking")
    convert_options.add_argument("--show", action="store_true", help="Display the emitted audit rules")

    # Index command
    index = subparsers.add_parser("index", help="Display the resource strings used for descriptions")
    index.add_argument("--debug", action="store_true", help="Enable DEBUG output")
    index.add_argument("--search", help="Search for a regex pattern in string ids and texts")
    index.add_argument("--json", action="store_true", help="Display results in JSON format")

    if argv is None and len(sys.argv) == 1:
        parser.print_help()
        sys.exit(1)
    args = parser.parse_args(argv)

    # Logging options
    logger = logging.getLogger()
    logger.setLevel(logging.INFO)
    stream = logging.StreamHandler(sys.stderr)
    stream.setLevel(logging.DEBUG)
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if args.debug is True:
        logger.setLevel(logging.DEBUG)

    try:
        gpo2audit_core = GPO2AuditCore(args.resources_path)

        if args.command == "convert":

            # Check if the provided export exists
            if not os.path.isfile(args.input_path):
                logging.error("'%s' does not exist.", args.input_path)
                return 1

            overwrite = args.force
            if os.path.exists(args.output_path) and not overwrite:
                if not confirm_overwrite(args.output_path):
                    logging.info("Conversion cancelled, '%s' was left untouched.", args.output_path)
                    return 1
                overwrite = True

            gpo2audit_core.convert(
                args.input_path,
                args.output_path,
                args.audit_version,
                args.description,
                args.encoding,
                overwrite,
                args.show,
            )

        elif args.command == "index":
            gpo2audit_core.index(args.search, args.json)

    except GPO2AuditError as error:
        logging.error("%s", error)
        return 1

    except (UnicodeDecodeError, LookupError) as error:
        logging.error("Could not decode '%s': %s", args.input_path, error)
        return 1

    except re.error as error:
        logging.error("Invalid search pattern '%s': %s", args.search, error)
        return 1

    finally:
        logger.removeHandler(stream)

    return 0
