import enum
import logging

from gpo2audit.utils.utils import load_yaml_config


class State(enum.IntEnum):
    """Position of the next line inside a setting block"""

    AWAIT_SCOPE = 0
    AWAIT_KEY = 1
    AWAIT_ITEM = 2
    AWAIT_ACTION = 3


SKIPPED_ACTION = "SkippedAction"
UNRECOGNIZED_ACTION = "UnrecognizedAction"
UNRECOGNIZED_SCOPE = "UnrecognizedScope"
TRUNCATED_INPUT = "TruncatedInput"


class LGPOParser:
    """
    Parse the text export of LGPO /parse into audit rules

    Each registry setting is exported as four lines:
        Computer|User
        key path
        value name
        TYPE:value | DELETE | DELETEALLVALUES | CREATEKEYS
    """

    def __init__(self, resource_index=None, config_file="lgpo.yaml"):
        self.config = load_yaml_config(file_name=config_file)
        self.scopes = self.config.get("scopes", {})
        self.skip_actions = self.config.get("skip_actions", [])
        self.type_prefix = self.config.get("type_prefix", "POLICY_")
        self.quoted_types = self.config.get("quoted_types", ["SZ"])
        self.comment_prefix = self.config.get("comment_prefix", ";")

        self.resource_index = resource_index if resource_index is not None else {}

        self.state = State.AWAIT_SCOPE
        self.block = {}
        self.emitted = 0
        self.diagnostics = []

    def reset(self):
        """
        Forget the block in progress
        """
        self.state = State.AWAIT_SCOPE
        self.block = {}

    def retained(self, lines):
        """
        Drop blank and comment lines
        """

        for line in lines:
            line = line.strip()
            if line and not line.startswith(self.comment_prefix):
                yield line

    def resolve_description(self, item):
        """
        Return the text of the first resource string whose id ends with the item name
        """

        if not item:
            return item

        for string_id, text in self.resource_index.items():
            if string_id.endswith(item):
                return text

        return item

    def record(self, kind, severity, message, **details):
        """
        Store and log a diagnostic for a dropped block
        """

        diagnostic = {"kind": kind, "severity": severity, "message": message}
        diagnostic.update(details)
        self.diagnostics.append(diagnostic)
        logging.log(severity, "%s: %s", kind, message)

    def feed(self, line):
        """
        Consume one retained line.
        Return the audit rule when the line completes an emitted block, None otherwise.
        """

        match self.state:

            case State.AWAIT_SCOPE:
                self.block["scope"] = line
                self.block["hive"] = self.scopes.get(line)
                self.state = State.AWAIT_KEY

            case State.AWAIT_KEY:
                self.block["key"] = line
                self.state = State.AWAIT_ITEM

            case State.AWAIT_ITEM:
                self.block["item"] = line
                self.state = State.AWAIT_ACTION

            case State.AWAIT_ACTION:
                try:
                    return self.complete(line)
                finally:
                    self.reset()

        return None

    def complete(self, action):
        """
        Classify the action line of a block and build its audit rule
        """

        item = self.block["item"]

        if not self.block["hive"]:
            self.record(
                UNRECOGNIZED_SCOPE,
                logging.WARNING,
                f"'{self.block['scope']}' is not a known scope, skipping {item}",
                item=item,
                scope=self.block["scope"],
            )
            return None

        value_type, separator, value = action.partition(":")

        if separator and value_type:
            if value_type in self.quoted_types:
                value = f'"{value}"'

            rule = {
                "type": "REGISTRY_SETTING",
                "description": self.resolve_description(item),
                "value_type": self.type_prefix + value_type,
                "value_data": value,
                "reg_key": f"{self.block['hive']}\\{self.block['key']}",
                "reg_item": item,
            }
            self.emitted += 1
            return rule

        if action in self.skip_actions:
            self.record(
                SKIPPED_ACTION,
                logging.DEBUG,
                f"{action} on {self.block['key']}\\{item} is not audited",
                item=item,
                action=action,
            )
        else:
            self.record(
                UNRECOGNIZED_ACTION,
                logging.WARNING,
                f"Unknown action '{action}' for {self.block['key']}\\{item}",
                item=item,
                action=action,
            )

        return None

    def finish(self):
        """
        Drop a block left incomplete at the end of the input
        """

        if self.state != State.AWAIT_SCOPE:
            self.record(
                TRUNCATED_INPUT,
                logging.WARNING,
                f"Input ended with an incomplete block ({int(self.state)} of 4 lines)",
                lines=int(self.state),
            )
            self.reset()

    def parse(self, lines):
        """
        Yield the audit rules of an LGPO export given as a sequence of lines
        """

        for line in self.retained(lines):
            rule = self.feed(line)
            if rule:
                yield rule

        self.finish()

    def summary(self):
        """
        Count the emitted rules and the diagnostics by kind
        """

        counters = {"Emitted": self.emitted}
        for kind in [SKIPPED_ACTION, UNRECOGNIZED_ACTION, UNRECOGNIZED_SCOPE, TRUNCATED_INPUT]:
            counters[kind] = sum(1 for diagnostic in self.diagnostics if diagnostic["kind"] == kind)
        return counters
