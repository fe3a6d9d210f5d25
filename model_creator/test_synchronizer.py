"""
End-to-end tests for ModelSynchronizer and the model-creator CLI.

Each test builds a throwaway firmware tree:

    <root>/Project/Src/Config/Config_PGEL.h      primary config file
    <root>/Project/Src/Config/GenCode.bat        build script
    <root>/Project/User/SystemPara.c             parameter file
    <root>/Driver/DrivePublicFunction/DrivePublicFunction_No4/Custom.h

Usage:
    pytest model_creator/test_synchronizer.py
    python model_creator/test_synchronizer.py
"""

import os
import sys
import logging
import tempfile
from pathlib import Path

import pytest

# Ensure the parent directory is in the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from model_creator.block_parser import find_block, parse_blocks
from model_creator.cli import main
from model_creator.config import ModelCreatorConfig
from model_creator.exceptions import (
    ExtractionError,
    InvalidConfigFileError,
    ReferenceBlockNotFoundError,
    ValidationError,
)
from model_creator.models import MotorTypes, NewModelRequest, StepStatus
from model_creator.naming import extract_board_model
from model_creator.synchronizer import ModelSynchronizer

# Setup logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


# ============================================================
# Test Helpers
# ============================================================

REFERENCE = "PGEL_KFW72C_4_12K_3S_001"
NEW_NAME = "PGEL_KFW72C_4_12K_3S_002"
NEW_MACRO = "EEPROMDATA_PGEL_72C_4_1981"
NEW_FILENAME = "eepromdata_pgel_72C_4_1981"

CONFIG_LINES = [
    f"#if {REFERENCE}",
    "#define SOFTWARE_VERSION                (uint32_t)0x19035A01        // software version",
    "#define EEPROMDATA_PGEL_72C_4_1980",
    '#define CUSTOM_CODE_NAME                "AB-123"       // customer part number, max 30 bytes',
    "",
    "#elif PGEL_KFW35C_7_AC_001",
    "#define EEPROMDATA_PGEL_35C_7_2001",
    "#endif",
    "",
]

PARAMETER_LINES = [
    "#if   EEPROMDATA_PGEL_72C_4_1980",
    '#include "CustomerConfig/PGEL/eepromdata_pgel_72C_4_1980.h"',
    "#elif EEPROMDATA_PGEL_35C_7_2001",
    '#include "CustomerConfig/PGEL/eepromdata_pgel_35C_7_2001.h"',
    "#else",
    '#error "no eeprom data"',
    "#endif",
    "",
]

CUSTOM_LINES = [
    f"#if {REFERENCE}",
    f"    #define MOTOR1_TYPE{' ' * 17}COMP_A",
    "#elif PGEL_KFW35C_7_AC_001",
    f"    #define MOTOR1_TYPE{' ' * 17}COMP_B",
    f"    #define MOTOR2_TYPE{' ' * 17}MOTOR2_FAN_A",
    "#endif",
    "",
]

BUILD_SCRIPT = "bin2c eepromdata_pgel_72C_4_1980.bin eepromdata_pgel_72C_4_1980 eepromdata\r\n"

GEN_SCRIPT_OK = """\
import glob
with open("generated.h", "w") as f:
    f.write(" ".join(sorted(glob.glob("*.bin"))))
print("gen ok")
"""

GEN_SCRIPT_FAIL = """\
import sys
sys.stderr.write("bin2c: cannot open input")
sys.exit(3)
"""


def build_tree(root: Path, custom=True, build_script=True, parameter_file=True,
               config_lines=None, parameter_lines=None) -> dict:
    """Write the firmware tree and return the paths of its files."""
    config_dir = root / "Project" / "Src" / "Config"
    user_dir = root / "Project" / "User"
    driver_dir = root / "Driver" / "DrivePublicFunction" / "DrivePublicFunction_No4"
    for d in (config_dir, user_dir, driver_dir):
        d.mkdir(parents=True, exist_ok=True)

    paths = {
        "config": config_dir / "Config_PGEL.h",
        "build_script": config_dir / "GenCode.bat",
        "parameter_file": user_dir / "SystemPara.c",
        "custom_header": driver_dir / "Custom.h",
    }
    # Primary file uses CRLF, the others LF
    paths["config"].write_bytes("\r\n".join(config_lines or CONFIG_LINES).encode("utf-8"))
    if build_script:
        paths["build_script"].write_bytes(BUILD_SCRIPT.encode("utf-8"))
    if parameter_file:
        paths["parameter_file"].write_text("\n".join(parameter_lines or PARAMETER_LINES), encoding="utf-8")
    if custom:
        paths["custom_header"].write_text("\n".join(CUSTOM_LINES), encoding="utf-8")
    return paths


def snapshot(paths: dict) -> dict:
    return {k: p.read_bytes() for k, p in paths.items() if p.exists()}


def make_request(paths: dict, **overrides) -> NewModelRequest:
    fields = dict(
        config_path=str(paths["config"]),
        reference_name=REFERENCE,
        new_name=NEW_NAME,
        eeprom_version="1981",
        motor_types=MotorTypes("COMP_C", "MOTOR2_FAN_B"),
        run_gen_code=False,
    )
    fields.update(overrides)
    return NewModelRequest(**fields)


def gen_config(script_name: str = "gen.py", **overrides) -> ModelCreatorConfig:
    """Config that runs a Python stand-in for GenCode.bat."""
    return ModelCreatorConfig(
        gen_script=script_name,
        gen_script_command=f'"{sys.executable}" {script_name}',
        **overrides,
    )


# ============================================================
# Test 1: Full new-model run
# ============================================================

def test_create_model_updates_every_file():
    logger.info("--- Test 1: Full new-model run ---")

    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        report = ModelSynchronizer().create_model(make_request(paths))

        statuses = {o.step: o.status for o in report.outcomes}
        assert statuses == {
            "primary_config": StepStatus.APPLIED,
            "custom_header": StepStatus.APPLIED,
            "build_script": StepStatus.APPLIED,
            "parameter_file": StepStatus.APPLIED,
            "gen_code": StepStatus.SKIPPED,
        }, statuses
        assert not report.has_failures
        assert report.identifiers["eeprom_macro"] == NEW_MACRO
        assert report.identifiers["board_model"] == "KFW72C_4"
        assert report.identifiers["prefix"] == "PGEL"
        logger.info("  PASS: Every step applied.")

        config_text = paths["config"].read_bytes().decode("utf-8")
        assert (f"\r\n#elif {NEW_NAME}\r\n#define {NEW_MACRO}\r\n#elif PGEL_KFW35C_7_AC_001\r\n"
                in config_text)
        assert config_text.count("\n") == config_text.count("\r\n")
        logger.info("  PASS: Primary file edited with CRLF kept.")

        blocks = parse_blocks(config_text)
        new_block = find_block(blocks, NEW_NAME)
        assert new_block is not None
        assert extract_board_model(new_block.name) == extract_board_model(REFERENCE)

        assert paths["build_script"].read_bytes().decode("utf-8") == (
            BUILD_SCRIPT + f"bin2c {NEW_FILENAME}.bin {NEW_FILENAME} eepromdata\r\n"
        )
        logger.info("  PASS: Build script command appended.")

        parameter_lines = paths["parameter_file"].read_text(encoding="utf-8").split("\n")
        assert parameter_lines[2:5] == [
            f"#elif  {NEW_MACRO}",
            f'#include "CustomerConfig/PGEL/{NEW_FILENAME}.h"',
            "#elif EEPROMDATA_PGEL_35C_7_2001",
        ]
        logger.info("  PASS: Parameter file arm inserted after the reference entry.")

        custom_lines = paths["custom_header"].read_text(encoding="utf-8").split("\n")
        assert custom_lines[2:5] == [
            f"#elif {NEW_NAME}",
            f"    #define MOTOR1_TYPE{' ' * 17}COMP_C",
            f"    #define MOTOR2_TYPE{' ' * 17}MOTOR2_FAN_B",
        ]
        assert custom_lines[5] == "#elif PGEL_KFW35C_7_AC_001"
        logger.info("PASS: Custom.h arm aligned with its siblings.")


def test_create_model_with_optional_fields():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        ModelSynchronizer().create_model(make_request(
            paths, software_version="0x19035B01", custom_code_name="XY-9",
        ))
        lines = paths["config"].read_bytes().decode("utf-8").split("\r\n")
        start = lines.index(f"#elif {NEW_NAME}")
        assert lines[start + 1].endswith("(uint32_t)0x19035B01        // software version")
        assert lines[start + 2] == f"#define {NEW_MACRO}"
        assert '"XY-9"' in lines[start + 3]
    logger.info("  PASS: Supplied optional values rewritten in place.")


# ============================================================
# Test 2: Recoverable collaborator conditions
# ============================================================

def test_parameter_file_already_present():
    """Macro already in SystemPara.c: that file is skipped, the rest applied."""
    logger.info("--- Test 2: Recoverable collaborator conditions ---")

    parameter_lines = PARAMETER_LINES[:2] + [
        f"#elif {NEW_MACRO}",
        f'#include "CustomerConfig/PGEL/{NEW_FILENAME}.h"',
    ] + PARAMETER_LINES[2:]

    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp), parameter_lines=parameter_lines)
        before = paths["parameter_file"].read_bytes()

        report = ModelSynchronizer().create_model(make_request(paths))

        outcome = report.outcome_for("parameter_file")
        assert outcome.status == StepStatus.SKIPPED
        assert outcome.details["error_type"] == "AlreadyPresentError"
        assert paths["parameter_file"].read_bytes() == before
        assert report.outcome_for("primary_config").status == StepStatus.APPLIED
        assert NEW_NAME in paths["config"].read_text(encoding="utf-8")
        assert not report.has_failures
    logger.info("  PASS: AlreadyPresent reported, primary edit kept.")


def test_missing_collaborators_are_skipped():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp), custom=False, build_script=False, parameter_file=False)
        report = ModelSynchronizer().create_model(make_request(paths))

        for step in ("custom_header", "build_script", "parameter_file"):
            outcome = report.outcome_for(step)
            assert outcome.status == StepStatus.SKIPPED, step
            assert outcome.details["error_type"] == "CollaboratorFileMissingError"
        assert report.outcome_for("primary_config").status == StepStatus.APPLIED
        assert not report.has_failures

        warnings = [e for e in report.log_entries if e["level"] == "WARNING"]
        assert len(warnings) >= 3
    logger.info("  PASS: Missing files skipped with a log entry each.")


def test_build_command_already_present():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        paths["build_script"].write_bytes(
            (BUILD_SCRIPT + f"bin2c {NEW_FILENAME}.bin {NEW_FILENAME} eepromdata\r\n").encode("utf-8")
        )
        before = paths["build_script"].read_bytes()
        report = ModelSynchronizer().create_model(make_request(paths))
        assert report.outcome_for("build_script").status == StepStatus.SKIPPED
        assert paths["build_script"].read_bytes() == before
    logger.info("  PASS: Identical build command not duplicated.")


def test_custom_header_without_motor_types():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        before = paths["custom_header"].read_bytes()
        report = ModelSynchronizer().create_model(make_request(paths, motor_types=MotorTypes()))

        outcome = report.outcome_for("custom_header")
        assert outcome.status == StepStatus.SKIPPED
        assert outcome.reason == "no motor types supplied"
        assert paths["custom_header"].read_bytes() == before
    logger.info("  PASS: Custom.h untouched without motor types.")


def test_parameter_file_fallbacks():
    """Family guess when the reference macro is absent, then the #else fallback."""
    family_lines = [
        "#if   EEPROMDATA_PGEL_72C_4_1975",
        '#include "CustomerConfig/PGEL/eepromdata_pgel_72C_4_1975.h"',
        "#elif EEPROMDATA_PGEL_35C_7_2001",
        '#include "CustomerConfig/PGEL/eepromdata_pgel_35C_7_2001.h"',
        "#else",
        "#endif",
    ]
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp), parameter_lines=family_lines)
        report = ModelSynchronizer().create_model(make_request(paths))
        assert report.outcome_for("parameter_file").details["anchor"] == "EEPROMDATA_PGEL_72C_4_1975"
        lines = paths["parameter_file"].read_text(encoding="utf-8").split("\n")
        assert lines[2] == f"#elif  {NEW_MACRO}"
    logger.info("  PASS: Family prefix used as anchor.")

    unrelated_lines = [
        "#if   EEPROMDATA_OTHER_1",
        '#include "CustomerConfig/OTHER/eepromdata_other_1.h"',
        "",
        "#else",
        '#error "no eeprom data"',
        "#endif",
    ]
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp), parameter_lines=unrelated_lines)
        report = ModelSynchronizer().create_model(make_request(paths))
        outcome = report.outcome_for("parameter_file")
        assert outcome.status == StepStatus.APPLIED
        assert outcome.details["anchor"] is None
        lines = paths["parameter_file"].read_text(encoding="utf-8").split("\n")
        assert lines[2:6] == [
            f"#elif  {NEW_MACRO}",
            f'#include "CustomerConfig/PGEL/{NEW_FILENAME}.h"',
            "",
            "#else",
        ]
    logger.info("  PASS: Last-resort insertion above #else.")


# ============================================================
# Test 3: Fatal conditions abort before any write
# ============================================================

def test_fatal_conditions_leave_files_untouched():
    logger.info("--- Test 3: Fatal conditions ---")

    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        before = snapshot(paths)
        sync = ModelSynchronizer()

        with pytest.raises(ReferenceBlockNotFoundError):
            sync.create_model(make_request(paths, reference_name="PGEL_KFW72C_4_12K_3S_999"))

        with pytest.raises(ValidationError):
            sync.create_model(make_request(paths, new_name="PGEL_KFW35C_7_AC_001"))

        with pytest.raises(ValidationError):
            sync.create_model(make_request(paths, eeprom_version=""))

        wrong_name = paths["config"].with_name("Settings.h")
        wrong_name.write_bytes(paths["config"].read_bytes())
        with pytest.raises(InvalidConfigFileError):
            sync.create_model(make_request(paths, config_path=str(wrong_name)))
        wrong_name.unlink()

        assert snapshot(paths) == before
    logger.info("  PASS: Nothing written on fatal errors.")


def test_reference_without_board_model():
    lines = CONFIG_LINES[:-2] + ["#elif PGEL_GENERIC_001", "#define EEPROMDATA_PGEL_GEN_1", "#endif", ""]
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp), config_lines=lines)
        before = snapshot(paths)
        with pytest.raises(ExtractionError):
            ModelSynchronizer().create_model(make_request(paths, reference_name="PGEL_GENERIC_001",
                                                          new_name="PGEL_GENERIC_002"))
        assert snapshot(paths) == before
    logger.info("  PASS: Missing board model is fatal.")


# ============================================================
# Test 4: Dry run
# ============================================================

def test_dry_run_writes_nothing():
    logger.info("--- Test 4: Dry run ---")

    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        before = snapshot(paths)
        report = ModelSynchronizer().create_model(make_request(paths, dry_run=True))

        assert report.dry_run
        assert snapshot(paths) == before
        assert all(o.status == StepStatus.APPLIED for o in report.outcomes if o.step != "gen_code")
        assert report.outcome_for("build_script").reason.startswith("dry run")
    logger.info("  PASS: Outcomes computed, files untouched.")


# ============================================================
# Test 5: Code generation script
# ============================================================

def test_gen_code_single_binary():
    logger.info("--- Test 5: Code generation script ---")

    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        config_dir = paths["config"].parent
        (config_dir / "gen.py").write_text(GEN_SCRIPT_OK, encoding="utf-8")
        (config_dir / "export_from_tool.bin").write_bytes(b"\x00\x01\x02")

        report = ModelSynchronizer(gen_config()).create_model(make_request(paths, run_gen_code=True))

        outcome = report.outcome_for("gen_code")
        assert outcome.status == StepStatus.APPLIED, outcome.reason
        assert outcome.details["returncode"] == 0
        assert "gen ok" in outcome.details["stdout"]
        assert (config_dir / "generated.h").read_text() == f"{NEW_FILENAME}.bin"
        assert list(config_dir.glob("*.bin")) == []
    logger.info("  PASS: Binary renamed, script run, binaries removed.")


def test_gen_code_binary_count_rules():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        config_dir = paths["config"].parent
        (config_dir / "gen.py").write_text(GEN_SCRIPT_OK, encoding="utf-8")
        (config_dir / "a.bin").write_bytes(b"a")
        (config_dir / "b.bin").write_bytes(b"b")

        report = ModelSynchronizer(gen_config()).create_model(make_request(paths, run_gen_code=True))
        outcome = report.outcome_for("gen_code")
        assert outcome.status == StepStatus.SKIPPED
        assert outcome.details["files"] == ["a.bin", "b.bin"]
        assert list(config_dir.glob("*.bin")) == []
        assert not (config_dir / "generated.h").exists()
    logger.info("  PASS: Several binaries deleted, script skipped.")

    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        report = ModelSynchronizer(gen_config()).create_model(make_request(paths, run_gen_code=True))
        assert report.outcome_for("gen_code").reason == "no binary file found"
    logger.info("  PASS: No binary, script skipped.")


def test_gen_code_failure_is_reported():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        config_dir = paths["config"].parent
        (config_dir / "gen.py").write_text(GEN_SCRIPT_FAIL, encoding="utf-8")
        (config_dir / "export.bin").write_bytes(b"\x00")

        report = ModelSynchronizer(gen_config()).create_model(make_request(paths, run_gen_code=True))
        outcome = report.outcome_for("gen_code")
        assert outcome.status == StepStatus.FAILED
        assert outcome.details["error_type"] == "GenScriptError"
        assert report.has_failures
        assert (config_dir / f"{NEW_FILENAME}.bin").exists()
        assert report.outcome_for("primary_config").status == StepStatus.APPLIED
    logger.info("  PASS: Script failure surfaced as a failed step.")


def test_gen_code_timeout():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        config_dir = paths["config"].parent
        (config_dir / "gen.py").write_text("import time\ntime.sleep(2)\n", encoding="utf-8")
        (config_dir / "export.bin").write_bytes(b"\x00")

        config = gen_config(gen_script_timeout=0.2)
        report = ModelSynchronizer(config).create_model(make_request(paths, run_gen_code=True))
        outcome = report.outcome_for("gen_code")
        assert outcome.status == StepStatus.FAILED
        assert "timed out" in outcome.reason
    logger.info("  PASS: Configured timeout becomes a failed step.")


@pytest.mark.skipif(os.name == "nt", reason="POSIX shell script")
def test_gen_code_default_command_in_spaced_directory():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp) / "My Firmware")
        config_dir = paths["config"].parent
        # GenCode.bat doubles as the build script; the appended bin2c line follows exit
        paths["build_script"].write_text("#!/bin/sh\nls *.bin > generated.txt\nexit 0\n", encoding="utf-8")
        paths["build_script"].chmod(0o755)
        (config_dir / "export.bin").write_bytes(b"\x00")

        report = ModelSynchronizer().create_model(make_request(paths, run_gen_code=True))
        outcome = report.outcome_for("gen_code")
        assert outcome.status == StepStatus.APPLIED, outcome.reason
        assert outcome.details["returncode"] == 0
        assert (config_dir / "generated.txt").read_text().strip() == f"{NEW_FILENAME}.bin"
        assert list(config_dir.glob("*.bin")) == []
        assert f"bin2c {NEW_FILENAME}.bin" in paths["build_script"].read_text(encoding="utf-8")
    logger.info("  PASS: Default command runs the script from a path with spaces.")


# ============================================================
# Test 6: describe_file and CLI
# ============================================================

def test_describe_file():
    logger.info("--- Test 6: describe_file and CLI ---")

    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        info = ModelSynchronizer().describe_file(str(paths["config"]), line=6)
        assert info["customer"] == "PGEL"
        assert info["prefix"] == "PGEL"
        assert info["current_block"] == "PGEL_KFW35C_7_AC_001"
        assert info["board_model"] == "KFW35C_7_AC"
        assert info["candidates"] == ["PGEL_KFW35C_7_AC_001"]

        info = ModelSynchronizer().describe_file(str(paths["config"]))
        assert info["candidates"] == [REFERENCE, "PGEL_KFW35C_7_AC_001"]
    logger.info("  PASS: Candidates narrowed by board model.")


def test_motor_catalogue():
    catalogue_lines = [
        "#define COMP_A                          1",
        "#define COMP_C                          3",
        "#define MOTOR2_FAN_A                    1",
        "",
    ]
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        info = ModelSynchronizer().describe_file(str(paths["config"]))
        assert info["motor_types"] == {"compressor": [], "fan": []}
        assert Path(info["custom_header"]) == paths["custom_header"]

        paths["custom_header"].write_text("\n".join(catalogue_lines + CUSTOM_LINES), encoding="utf-8")
        info = ModelSynchronizer().describe_file(str(paths["config"]))
        assert info["motor_types"] == {"compressor": ["COMP_A", "COMP_C"], "fan": ["MOTOR2_FAN_A"]}
        assert main(["list", str(paths["config"])]) == 0
        logger.info("  PASS: Motor catalogue read from Custom.h.")

        report = ModelSynchronizer().create_model(make_request(paths))
        assert report.outcome_for("custom_header").status == StepStatus.APPLIED
        warned = [e["details"].get("motor_type") for e in report.log_entries
                  if e["component"] == "custom_header" and e["level"] == "WARNING"]
        assert warned == ["MOTOR2_FAN_B"]
    logger.info("  PASS: Motor type outside the catalogue warned about.")


def test_cli():
    with tempfile.TemporaryDirectory() as tmp:
        paths = build_tree(Path(tmp))
        config = str(paths["config"])

        assert main(["list", config, "--line", "7"]) == 0
        assert main(["--quiet", "new-model", config, "--reference", REFERENCE, "--name", NEW_NAME,
                     "--eeprom-version", "1981", "--motor1", "COMP_C", "--skip-gen-code"]) == 0
        assert NEW_NAME in paths["config"].read_text(encoding="utf-8")

        # Second run: the new name now exists
        assert main(["--quiet", "new-model", config, "--reference", REFERENCE, "--name", NEW_NAME,
                     "--eeprom-version", "1981", "--skip-gen-code"]) == 1
        assert main(["list", str(paths["parameter_file"])]) == 1
    logger.info("PASS: CLI exit codes correct.")


# ============================================================
# Test Runner
# ============================================================

def run_all_tests():
    """Run all tests and report results."""
    logger.info("=" * 60)
    logger.info(" model_creator Synchronizer Test Suite")
    logger.info("=" * 60)

    tests = {
        "Full Run": test_create_model_updates_every_file,
        "Optional Fields": test_create_model_with_optional_fields,
        "Already Present": test_parameter_file_already_present,
        "Missing Collaborators": test_missing_collaborators_are_skipped,
        "Build Command Present": test_build_command_already_present,
        "No Motor Types": test_custom_header_without_motor_types,
        "Parameter Fallbacks": test_parameter_file_fallbacks,
        "Fatal Conditions": test_fatal_conditions_leave_files_untouched,
        "No Board Model": test_reference_without_board_model,
        "Dry Run": test_dry_run_writes_nothing,
        "Gen Code": test_gen_code_single_binary,
        "Gen Code Binaries": test_gen_code_binary_count_rules,
        "Gen Code Failure": test_gen_code_failure_is_reported,
        "Gen Code Timeout": test_gen_code_timeout,
        "Gen Code Default Command": test_gen_code_default_command_in_spaced_directory,
        "Describe File": test_describe_file,
        "Motor Catalogue": test_motor_catalogue,
        "CLI": test_cli,
    }

    results = {}
    for name, test in tests.items():
        try:
            test()
            results[name] = True
        except AssertionError as e:
            logger.error(f"FAIL: {name}: {e}")
            results[name] = False
        except Exception as e:
            logger.exception(f"FAIL: {name}: unexpected error: {e}")
            results[name] = False

    logger.info("\n" + "=" * 60)
    logger.info(" TEST RESULTS")
    logger.info("=" * 60)
    for name, passed in results.items():
        icon = "+" if passed else "X"
        logger.info(f"  [{icon}] {name}: {'PASS' if passed else 'FAIL'}")

    passed_count = sum(1 for v in results.values() if v)
    logger.info(f"\n  {passed_count}/{len(results)} tests passed")
    logger.info("=" * 60)
    if passed_count != len(results):
        logger.error(" SOME TESTS FAILED")
        sys.exit(1)
    logger.info(" ALL TESTS PASSED")


if __name__ == "__main__":
    run_all_tests()
