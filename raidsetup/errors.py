"""Fatal provisioning errors, each tied to a result code in ``cli.RESULT_CODES``."""


class ProvisionError(RuntimeError):
    result = "FAIL_GENERIC"

    def __init__(self, message: str, **state):
        super().__init__(message)
        self.state = state


class PrivilegeError(ProvisionError):
    result = "FAIL_PRIVILEGE"


class MissingToolError(ProvisionError):
    result = "FAIL_MISSING_TOOL"


class InputClosedError(ProvisionError):
    result = "FAIL_INPUT_CLOSED"


class OperatorCancelled(ProvisionError):
    result = "FAIL_CANCELLED"


class ArrayReleaseError(ProvisionError):
    result = "FAIL_RELEASE_ARRAY"


class UnsafeDeviceError(ProvisionError):
    result = "FAIL_UNSAFE_AFTER_CLEAN"


class ArrayCreateError(ProvisionError):
    result = "FAIL_ARRAY_CREATE"


class ArrayReadyTimeout(ProvisionError):
    result = "FAIL_ARRAY_TIMEOUT"


class FormatError(ProvisionError):
    result = "FAIL_MKFS"


class MountError(ProvisionError):
    result = "FAIL_MOUNT"


class UuidMissingError(ProvisionError):
    result = "FAIL_UUID"


class BootImageRefreshError(ProvisionError):
    result = "FAIL_BOOT_IMAGE"


class FstabEntryError(ProvisionError):
    result = "FAIL_FSTAB"
