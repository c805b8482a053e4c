import json
import logging

from gpo2audit.emitter import AuditEmitter
from gpo2audit.parsers.adml_files import ADMLParser
from gpo2audit.parsers.lgpo_files import LGPOParser

from gpo2audit.utils.utils import load_yaml_config, read_export_lines, search_index
from gpo2audit.utils.utils import print_index, print_rules, print_summary


class GPO2AuditCore:
    """
    Class for converting LGPO exports to Nessus audit files
    """

    def __init__(self, resources_path, audit_config="audit.yaml"):

        self.resources_path = resources_path
        self.audit_config = load_yaml_config(file_name=audit_config)

        self.adml_parser = ADMLParser()
        self.resource_index = None

    def load_resources(self):
        """
        Build the resource index once per run
        """

        if self.resource_index is None:
            logging.debug("Building resource index from %s", self.resources_path)
            self.resource_index = self.adml_parser.build_index(self.resources_path)

        return self.resource_index

    def convert_lines(self, lines, output_path, version=None, description=None, overwrite=False):
        """
        Convert LGPO export lines and write the audit file.
        Return the emitted rules and the parser used.
        """

        lgpo_parser = LGPOParser(self.load_resources())

        emitter = AuditEmitter(
            output_path,
            version or self.audit_config.get("version"),
            description or self.audit_config.get("description"),
            check_type=self.audit_config.get("check_type", "Windows"),
            overwrite=overwrite,
        )

        rules = []
        with emitter:
            for rule in lgpo_parser.parse(lines):
                emitter.write_rule(rule)
                rules.append(rule)

        return rules, lgpo_parser

    def convert(
        self,
        input_path,
        output_path,
        version=None,
        description=None,
        encoding=None,
        overwrite=False,
        show=False,
    ):
        """
        Convert an LGPO text export into a Nessus audit file
        """

        lines = read_export_lines(input_path, encoding)
        logging.debug("Read %s lines from %s", len(lines), input_path)

        rules, lgpo_parser = self.convert_lines(lines, output_path, version, description, overwrite)

        if show:
            print_rules(rules)
        print_summary(lgpo_parser.summary())

        logging.info("Audit file written to %s", output_path)
        return rules

    def index(self, search=None, print_json=False):
        """
        Display the resource index
        """

        output = self.load_resources()

        if search:
            output = search_index(output, search)

        if not output:
            logging.info("No resource strings were found...")
            return output

        if print_json:
            logging.info(json.dumps(output, indent=4))
        else:
            print_index(output)

        return output
