"""Structured errors shared across the package."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union


class ErrorCode(str, Enum):
    """Kinds of failure a :class:`CommonError` can carry."""

    DIR_CREATION = "DIRECTORY_CREATION_FAILED"
    DIR_ACCESS = "DIRECTORY_ACCESS_FAILED"

    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_READ = "FILE_READ_FAILED"
    FILE_WRITE = "FILE_WRITE_FAILED"
    FILE_CREATE = "FILE_CREATE_FAILED"

    NETWORK_REQUEST = "NETWORK_REQUEST_FAILED"
    NETWORK_RESPONSE = "NETWORK_RESPONSE_FAILED"

    TEMPLATE_LOAD = "TEMPLATE_LOAD_FAILED"
    TEMPLATE_PARSE = "TEMPLATE_PARSE_FAILED"
    CONFIG_INVALID = "CONFIG_INVALID"

    SUBSCRIPTION_LOAD = "SUBSCRIPTION_LOAD_FAILED"
    SUBSCRIPTION_PARSE = "SUBSCRIPTION_PARSE_FAILED"

    REGEX_COMPILE = "REGEX_COMPILE_FAILED"
    REGEX_INVALID = "REGEX_INVALID"

    DATABASE_CONNECT = "DATABASE_CONNECTION_FAILED"
    DATABASE_QUERY = "DATABASE_QUERY_FAILED"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

    VALIDATION = "VALIDATION_FAILED"
    INVALID_INPUT = "INVALID_INPUT"

    def __str__(self) -> str:
        return self.value


class CommonError(Exception):
    """An error with a code, a message and an optional underlying cause."""

    def __init__(
        self,
        code: Union[ErrorCode, str],
        message: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.code = ErrorCode(code)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"[{self.code.value}] {self.message}: {self.cause}"
        return f"[{self.code.value}] {self.message}"

    def same_kind(self, other: BaseException) -> bool:
        """True when ``other`` is a CommonError with the same code."""
        return isinstance(other, CommonError) and other.code == self.code


def _text(data: Union[bytes, bytearray, str]) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    return str(data)


def dir_creation_error(dir_path: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.DIR_CREATION, f"failed to create directory: {dir_path}", cause)


def dir_access_error(dir_path: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.DIR_ACCESS, f"failed to access directory: {dir_path}", cause)


def file_not_found_error(file_path: str) -> CommonError:
    return CommonError(ErrorCode.FILE_NOT_FOUND, f"file not found: {file_path}")


def file_read_error(file_path: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.FILE_READ, f"failed to read file: {file_path}", cause)


def file_write_error(file_path: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.FILE_WRITE, f"failed to write file: {file_path}", cause)


def file_create_error(file_path: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.FILE_CREATE, f"failed to create file: {file_path}", cause)


def network_request_error(url: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.NETWORK_REQUEST, f"network request failed for URL: {url}", cause)


def network_response_error(message: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.NETWORK_RESPONSE, message, cause)


def template_load_error(template: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.TEMPLATE_LOAD, f"failed to load template: {template}", cause)


def template_parse_error(
    data: Union[bytes, bytearray, str], cause: Optional[BaseException]
) -> CommonError:
    return CommonError(
        ErrorCode.TEMPLATE_PARSE, f"failed to parse template: {_text(data)}", cause
    )


def subscription_load_error(url: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.SUBSCRIPTION_LOAD, f"failed to load subscription: {url}", cause)


def subscription_parse_error(
    data: Union[bytes, bytearray, str], cause: Optional[BaseException]
) -> CommonError:
    return CommonError(
        ErrorCode.SUBSCRIPTION_PARSE, f"failed to parse subscription: {_text(data)}", cause
    )


def regex_compile_error(pattern: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(
        ErrorCode.REGEX_COMPILE, f"failed to compile regex pattern: {pattern}", cause
    )


def regex_invalid_error(param_name: str, cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.REGEX_INVALID, f"invalid regex in parameter: {param_name}", cause)


def database_connect_error(cause: Optional[BaseException]) -> CommonError:
    return CommonError(ErrorCode.DATABASE_CONNECT, "failed to connect to database", cause)


def record_not_found_error(record_type: str, record_id: str) -> CommonError:
    return CommonError(ErrorCode.RECORD_NOT_FOUND, f"{record_type} not found: {record_id}")


def validation_error(field: str, message: str) -> CommonError:
    return CommonError(ErrorCode.VALIDATION, f"validation failed for {field}: {message}")


def invalid_input_error(param_name: str, value: str) -> CommonError:
    return CommonError(
        ErrorCode.INVALID_INPUT, f"invalid input for parameter {param_name}: {value}"
    )


def _find_common_error(err: Optional[BaseException]) -> Optional[CommonError]:
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, CommonError):
            return err
        seen.add(id(err))
        err = err.__cause__
    return None


def is_error_code(err: Optional[BaseException], code: Union[ErrorCode, str]) -> bool:
    """True when ``err`` or an error it was raised from carries ``code``."""
    found = _find_common_error(err)
    return found is not None and found.code == ErrorCode(code)


def get_error_code(err: Optional[BaseException]) -> Optional[ErrorCode]:
    """The code of the first CommonError in the cause chain, or None."""
    found = _find_common_error(err)
    return found.code if found is not None else None