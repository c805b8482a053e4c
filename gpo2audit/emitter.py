import os
import logging
import tempfile
import contextlib

from gpo2audit.errors import EnvelopeValueError, WriteError

ENVELOPE_OPEN = (
    '<check_type: "{check_type}" version:"{version}">\n'
    '\t<group_policy: "{description}">\n'
)

RULE = (
    "\t<custom_item>\n"
    "\t\ttype:\t\t\t{type}\n"
    "\tdescription:\t\t{description}\n"
    "\t\tvalue_type:\t\t{value_type}\n"
    "\t\tvalue_data\t\t{value_data}\n"
    "\t\treg_key:\t\t{reg_key}\n"
    "\t\treg_item:\t\t{reg_item}\n"
    "\t</custom_item>\n"
)

ENVELOPE_CLOSE = "\t</group_policy>\n</check_type>\n"


class AuditEmitter:
    """
    Write audit rules to a .audit file

    Rules are streamed to a temporary file next to the destination, which replaces
    the destination only once the envelope is closed.
    """

    def __init__(self, output_path, version, description, check_type="Windows", overwrite=False):
        self.output_path = output_path
        self.version = self.envelope_value("version", version)
        self.description = self.envelope_value("description", description)
        self.check_type = check_type
        self.overwrite = overwrite

        self.file = None
        self.tmp_path = None
        self.count = 0

    @staticmethod
    def envelope_value(field, value):
        """
        Envelope values are written between double quotes on a single line
        """

        value = str(value)
        if '"' in value or "\n" in value or "\r" in value:
            raise EnvelopeValueError(field, value)
        return value

    def header(self):
        """
        Opening tags of the envelope
        """
        return ENVELOPE_OPEN.format(check_type=self.check_type, version=self.version, description=self.description)

    @staticmethod
    def rule_block(rule):
        """
        Render one custom_item block
        """
        return RULE.format(**rule)

    def render(self, rules):
        """
        Render a whole audit document as a string
        """
        return self.header() + "".join(self.rule_block(rule) for rule in rules) + ENVELOPE_CLOSE

    def check_destination(self):
        # Never replace an existing file unless the caller allowed it
        if not self.overwrite and os.path.exists(self.output_path):
            raise WriteError(self.output_path, "file already exists")

    def abort(self):
        """
        Drop the temporary file, the destination is left untouched
        """

        if self.file is not None:
            # The handle may fail to flush the data that caused the failure
            with contextlib.suppress(OSError):
                self.file.close()
            self.file = None

        if self.tmp_path is not None:
            with contextlib.suppress(OSError):
                os.unlink(self.tmp_path)
            self.tmp_path = None

    def _write(self, text):
        try:
            self.file.write(text)
        except OSError as error:
            self.abort()
            raise WriteError(self.output_path, error) from error

    def open(self):
        """
        Create the temporary file and write the envelope header
        """

        self.check_destination()

        directory = os.path.dirname(os.path.abspath(self.output_path))
        name = os.path.basename(self.output_path)

        try:
            fd, self.tmp_path = tempfile.mkstemp(dir=directory, prefix=f"{name}.", suffix=".tmp")
            self.file = os.fdopen(fd, "w", encoding="utf-8", newline="\n")
        except OSError as error:
            self.abort()
            raise WriteError(self.output_path, error) from error

        self._write(self.header())

    def write_rule(self, rule):
        """
        Append one audit rule
        """

        self._write(self.rule_block(rule))
        self.count += 1

    def close(self):
        """
        Close the envelope and move the audit file to its destination
        """

        if self.file is None:
            return

        self._write(ENVELOPE_CLOSE)

        try:
            self.file.close()
            self.file = None
            self.check_destination()
            os.replace(self.tmp_path, self.output_path)
        except WriteError:
            self.abort()
            raise
        except OSError as error:
            self.abort()
            raise WriteError(self.output_path, error) from error

        self.tmp_path = None
        logging.debug("Wrote %s audit rules to %s", self.count, self.output_path)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):

        if exc_type is None:
            self.close()
        else:
            self.abort()

        return False
