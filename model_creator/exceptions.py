"""
Custom exception hierarchy for the model_creator package.

Provides structured, typed exceptions instead of generic string error messages,
enabling the synchronizer to decide per condition whether a failure aborts the
whole run or only skips a single collaborator file.
"""


class ModelCreatorError(Exception):
    """Base exception for all model_creator errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


# --- Input Errors ---

class ValidationError(ModelCreatorError):
    """Input validation failed."""

    def __init__(self, field: str, message: str):
        super().__init__(
            f"Validation error for '{field}': {message}",
            details={"field": field, "reason": message}
        )


class InvalidConfigFileError(ValidationError):
    """The primary file is not a Config_*.h file."""

    def __init__(self, file_path: str, prefix: str = "Config_", suffix: str = ".h"):
        super().__init__(
            field="config_file",
            message=f"'{file_path}' is not a {prefix}*{suffix} file"
        )
        self.details["file_path"] = file_path


# --- Parsing Errors ---

class ParseError(ModelCreatorError):
    """No recognizable conditional blocks in a file expected to contain them."""

    def __init__(self, file_path: str, reason: str = "no conditional blocks found"):
        super().__init__(
            f"Could not parse '{file_path}': {reason}",
            details={"file_path": file_path, "reason": reason}
        )


class ReferenceBlockNotFoundError(ParseError):
    """The selected reference block does not exist in the file."""

    def __init__(self, block_name: str, file_path: str):
        super().__init__(file_path, reason=f"reference block '{block_name}' not found")
        self.details["block_name"] = block_name


class ExtractionError(ModelCreatorError):
    """A naming fact (board model, prefix, customer) cannot be derived."""

    def __init__(self, what: str, source: str):
        super().__init__(
            f"Cannot extract {what} from '{source}'",
            details={"what": what, "source": source}
        )


class MissingRequiredFieldError(ModelCreatorError):
    """A mandatory value is absent when generating the EEPROM macro."""

    def __init__(self, field: str):
        super().__init__(
            f"Missing required field '{field}' for EEPROM macro generation",
            details={"field": field}
        )


# --- Editing Errors ---

class NoInsertionPointError(ModelCreatorError):
    """The document has no directive before which a block can be inserted."""

    def __init__(self, file_path: str, after_line: int = None):
        super().__init__(
            f"No valid insertion point found in '{file_path}'",
            details={"file_path": file_path, "after_line": after_line}
        )


class CollaboratorFileMissingError(ModelCreatorError):
    """A secondary file does not exist at its expected location."""

    def __init__(self, role: str, file_path: str):
        super().__init__(
            f"{role} not found at '{file_path}'",
            details={"role": role, "file_path": file_path}
        )


class AlreadyPresentError(ModelCreatorError):
    """The target macro or line already exists in the file."""

    def __init__(self, target: str, file_path: str):
        super().__init__(
            f"'{target}' already present in '{file_path}'",
            details={"target": target, "file_path": file_path}
        )


# --- External Script Errors ---

class GenScriptError(ModelCreatorError):
    """The external code-generation script failed or timed out."""

    def __init__(self, command: str, returncode: int = None, stderr: str = "",
                 timeout: float = None):
        if timeout is not None:
            msg = f"'{command}' timed out after {timeout}s"
        else:
            msg = f"'{command}' exited with code {returncode}"
        super().__init__(
            msg,
            details={
                "command": command,
                "returncode": returncode,
                "stderr": stderr,
                "timeout": timeout,
            }
        )
