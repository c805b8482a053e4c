import pytest

ADML_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<policyDefinitionResources xmlns="http://schemas.microsoft.com/GroupPolicy/2006/07/PolicyDefinitions" revision="1.0" schemaVersion="1.0">
  <displayName>{name}</displayName>
  <description>Test resources</description>
  <resources>
    <stringTable>
{strings}
    </stringTable>
  </resources>
</policyDefinitionResources>
"""

LGPO_EXPORT = """; ----------------------------------------------------------------------
; PARSING Computer POLICY
; Source file:  C:\\GPO\\Machine\\registry.pol

Computer
Software\\Policies\\Microsoft\\Windows\\WindowsUpdate\\AU
NoAutoUpdate
DWORD:0

Computer
Software\\Policies\\Microsoft\\Windows NT\\Terminal Services
fPromptForPassword
DWORD:1

Computer
Software\\Policies\\Microsoft\\Windows\\System
*
DELETEALLVALUES

; PARSING COMPLETED.
; ----------------------------------------------------------------------

User
Software\\Policies\\Microsoft\\Windows\\Control Panel\\Desktop
ScreenSaveTimeOut
SZ:900
"""


def write_adml(directory, name, strings):
    """Write an .adml file holding the given id -> text strings."""
    lines = "\n".join(f'      <string id="{string_id}">{text}</string>' for string_id, text in strings.items())
    path = directory / name
    path.write_text(ADML_TEMPLATE.format(name=name, strings=lines), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def user_config(tmp_path, monkeypatch):
    """Point the user configuration directory to an empty temporary folder."""
    config_dir = tmp_path / "user_config"
    monkeypatch.setattr("gpo2audit.utils.utils.user_config_dir", lambda name: str(config_dir))
    monkeypatch.setattr("gpo2audit.user_config_dir", lambda name: str(config_dir))
    return config_dir


@pytest.fixture
def resources_dir(tmp_path):
    directory = tmp_path / "en-US"
    directory.mkdir()
    write_adml(
        directory,
        "TerminalServer.adml",
        {"TS_PASSWORD_PROMPT.fPromptForPassword": "Always prompt for password upon connection"},
    )
    write_adml(
        directory,
        "WindowsUpdate.adml",
        {
            "WindowsUpdate.NoAutoUpdate": "Do not automatically download updates",
            "MACHINE.Policy.LockoutThreshold": "Account lockout threshold",
        },
    )
    return directory


@pytest.fixture
def lgpo_export(tmp_path):
    path = tmp_path / "machine.txt"
    path.write_text(LGPO_EXPORT, encoding="utf-8")
    return path
