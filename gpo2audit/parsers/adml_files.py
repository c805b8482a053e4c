import os
import logging
import xml.etree.ElementTree as ET

from gpo2audit.errors import MissingDirectoryError, NoResourceFilesError, ResourceParseError
from gpo2audit.utils.utils import load_yaml_config


class ADMLParser:
    """Parse the string tables of .adml resource files"""

    def __init__(self, config_file="resources.yaml") -> None:
        self.config = load_yaml_config(file_name=config_file)
        self.extension = self.config.get("extension", ".adml").lower()
        self.string_table = self.config.get("string_table", "stringTable")
        self.string = self.config.get("string", "string")

    @staticmethod
    def local_name(tag):
        """
        Strip the XML namespace from a tag
        """
        return tag.rsplit("}", 1)[-1]

    def find_resource_files(self, directory):
        """
        List the resource files of a directory in lexicographic order
        """

        if not os.path.isdir(directory):
            raise MissingDirectoryError(directory)

        resource_files = sorted(
            file
            for file in os.listdir(directory)
            if file.lower().endswith(self.extension) and os.path.isfile(os.path.join(directory, file))
        )

        if not resource_files:
            raise NoResourceFilesError(directory, self.extension)

        return [os.path.join(directory, file) for file in resource_files]

    def parse(self, resource_file):
        """
        Extract every (id, text) pair found in the string tables of a resource file
        """

        try:
            tree = ET.parse(resource_file)
        except (ET.ParseError, OSError) as error:
            raise ResourceParseError(resource_file, error) from error

        strings = {}

        # Walk the whole document, string tables may sit at any depth
        for element in tree.getroot().iter():
            if self.local_name(element.tag) != self.string_table:
                continue

            for child in element:
                string_id = child.attrib.get("id")
                if self.local_name(child.tag) != self.string or not string_id:
                    continue

                # Descriptions must fit on a single line of the audit file
                strings[string_id] = " ".join((child.text or "").split())

        return strings

    def build_index(self, directory):
        """
        Build the lookup table of resource strings, later files win on duplicate ids
        """

        index = {}

        for resource_file in self.find_resource_files(directory):
            strings = self.parse(resource_file)
            logging.debug("Loaded %s strings from %s", len(strings), resource_file)
            index.update(strings)

        logging.debug("Resource index holds %s strings", len(index))
        return index
