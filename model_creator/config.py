"""
Centralized configuration for the model_creator package.

All file locations, naming tokens, templates and layout constants are defined
here as a single dataclass to avoid scattering magic strings across modules.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class ModelCreatorConfig:
    """
    Configuration object for one model_creator installation.
    Instantiate with defaults or override specific values.

    Example:
        config = ModelCreatorConfig(gen_script_timeout=120)
        config = ModelCreatorConfig.from_env()
    """

    # --- Primary Config File ---
    config_file_prefix: str = "Config_"
    config_file_suffix: str = ".h"

    # --- Collaborator Files (relative to the primary file's directory) ---
    build_script_relpath: str = "GenCode.bat"
    parameter_file_relpath: str = "../../User/SystemPara.c"
    custom_header_relpath: str = "../../../Driver/DrivePublicFunction/DrivePublicFunction_No4/Custom.h"

    # --- Naming ---
    eeprom_macro_prefix: str = "EEPROMDATA_"
    board_model_prefix: str = "KFW"
    board_model_suffixes: Tuple[str, ...] = ("AC", "DC")
    filename_prefix: str = "eepromdata_"

    # --- Templates ---
    build_command_template: str = "bin2c {name}.bin {name} eepromdata"
    parameter_include_template: str = '#include "CustomerConfig/{prefix}/{filename}.h"'
    software_version_template: str = "#define SOFTWARE_VERSION                (uint32_t){value}        // software version"
    code_name_template: str = '#define CUSTOM_CODE_NAME                "{value}"       // customer part number, max 30 bytes'

    # --- Alignment ---
    tab_width: int = 4
    indent_unit: str = "    "
    default_value_column: int = 44
    motor_field_names: Tuple[str, ...] = ("MOTOR1_TYPE", "MOTOR2_TYPE")

    # --- Input Limits ---
    code_name_max_length: int = 30

    # --- External Code Generation ---
    gen_script: str = "GenCode.bat"
    gen_script_command: Optional[str] = None  # defaults to the script path itself
    gen_script_timeout: Optional[float] = None  # None = wait until the script exits
    binary_extension: str = ".bin"
    log_output_truncation: int = 2000

    # --- File I/O ---
    encoding: str = "utf-8"
    default_eol: str = "\n"
    build_script_default_eol: str = "\r\n"

    # --- Fan Models ---
    fan_driver_relpath: str = "../../FOCDcFanDriver/FOCDcFanDriver_No4"
    fan_headers_dirname: str = "FocFans"
    customer_interface_filename: str = "customerInterface2.c"
    fan_name_table_filename: str = "focfanName_Table.h"
    fan_anchor_pattern: str = r"^\s*#if\s*\(\s*MODEL_TYPE\s*==\s*MODEL_YUETU_AIRCONDITION\s*\)"
    motor_type_error_directive: str = '#error "NO MOTOR_TYPE"'
    fan_name_error_directive: str = '#error "BAD FAN NAME DEFINE"'
    fan_group_gap: int = 10
    fan_debug_suffix: str = "_DEBUG"

    # --- Motor Catalogue ---
    compressor_define_patterns: List[str] = field(default_factory=lambda: [
        r"^\s*#define\s+(COMP_[A-Z0-9_]+)\s+",
    ])
    fan_define_patterns: List[str] = field(default_factory=lambda: [
        r"^\s*#define\s+(MOTOR2_[A-Z0-9_]*FAN[A-Z0-9_]*)\s+",
    ])

    @classmethod
    def from_env(cls) -> "ModelCreatorConfig":
        """
        Create a configuration from environment variables.
        Environment variables are prefixed with MODELCREATOR_.
        """
        kwargs = {}

        env_map = {
            "MODELCREATOR_BUILD_SCRIPT": "build_script_relpath",
            "MODELCREATOR_PARAMETER_FILE": "parameter_file_relpath",
            "MODELCREATOR_CUSTOM_HEADER": "custom_header_relpath",
            "MODELCREATOR_GEN_SCRIPT": "gen_script",
            "MODELCREATOR_GEN_COMMAND": "gen_script_command",
            "MODELCREATOR_ENCODING": "encoding",
            "MODELCREATOR_GEN_TIMEOUT": ("gen_script_timeout", float),
            "MODELCREATOR_TAB_WIDTH": ("tab_width", int),
            "MODELCREATOR_VALUE_COLUMN": ("default_value_column", int),
            "MODELCREATOR_FAN_GROUP_GAP": ("fan_group_gap", int),
        }

        for env_key, field_info in env_map.items():
            val = os.environ.get(env_key)
            if val is None:
                continue

            if isinstance(field_info, str):
                kwargs[field_info] = val
            elif isinstance(field_info, tuple):
                field_name, converter = field_info
                try:
                    kwargs[field_name] = converter(val)
                except (ValueError, TypeError):
                    pass

        return cls(**kwargs)

    def validate(self) -> List[str]:
        """
        Validate configuration values and return list of warnings.
        Returns empty list if all values are valid.
        """
        warnings = []

        if self.tab_width < 1:
            warnings.append(f"tab_width must be >= 1, got {self.tab_width}")

        if self.default_value_column < 8:
            warnings.append(f"default_value_column={self.default_value_column} is too small for '#define X'")

        if len(self.motor_field_names) != 2:
            warnings.append(f"motor_field_names must name two fields, got {len(self.motor_field_names)}")

        if self.gen_script_timeout is not None and self.gen_script_timeout <= 0:
            warnings.append(f"gen_script_timeout must be > 0 or None, got {self.gen_script_timeout}")

        if self.default_eol not in ("\n", "\r\n"):
            warnings.append(f"default_eol must be LF or CRLF, got {self.default_eol!r}")

        if "{name}" not in self.build_command_template:
            warnings.append("build_command_template has no {name} placeholder")

        if self.fan_group_gap < 1:
            warnings.append(f"fan_group_gap must be >= 1, got {self.fan_group_gap}")

        return warnings


# Module-level default configuration instance
DEFAULT_CONFIG = ModelCreatorConfig()
