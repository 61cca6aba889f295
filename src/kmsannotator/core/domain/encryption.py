"""Customer-managed encryption key identity."""

from pydantic import BaseModel

from kmsannotator.core.errors import InvalidKeyVersionError

KEY_VERSION_DELIMITER = "/cryptoKeyVersions/"


class EncryptionStatus(BaseModel):
    """KMS key a disk is encrypted with.

    Both fields empty means the disk is not encrypted with a
    customer-managed key.
    """

    key_principal: str = ""
    key_version: str = ""

    model_config = {"frozen": True}

    @classmethod
    def unencrypted(cls) -> "EncryptionStatus":
        return cls()

    def is_encrypted(self) -> bool:
        return self.key_principal != "" and self.key_version != ""


def parse_key_resource_name(name: str) -> EncryptionStatus:
    """Split a KMS key resource name into principal and version.

    "projects/p/locations/l/keyRings/r/cryptoKeys/k/cryptoKeyVersions/3"
    -> ("projects/p/locations/l/keyRings/r/cryptoKeys/k", "3")

    Raises:
        InvalidKeyVersionError: delimiter missing, repeated, or either side empty
    """
    parts = name.split(KEY_VERSION_DELIMITER)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidKeyVersionError(f"Invalid key version in {name!r}")

    return EncryptionStatus(key_principal=parts[0], key_version=parts[1])
