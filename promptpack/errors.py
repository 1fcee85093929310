class PackError(Exception):
    """Base class for PromptPack-specific errors."""


# Header/framing
class InvalidFormat(PackError):
    def __init__(self, message: str = "Invalid file format"):
        super().__init__(message)


class InvalidVersion(PackError):
    def __init__(self, version: int):
        super().__init__(f"Invalid version: {version}")
        self.version = version


class HashMismatch(PackError):
    def __init__(self, message: str = "Hash mismatch - file may be corrupted"):
        super().__init__(message)


# Password/encryption
class PasswordRequired(PackError):
    def __init__(self, message: str = "Password required"):
        super().__init__(message)


class InvalidPassword(PackError):
    def __init__(self, message: str = "Invalid password"):
        super().__init__(message)


class EncryptionFailed(PackError):
    def __init__(self, detail: str):
        super().__init__(f"Encryption failed: {detail}")
        self.detail = detail


class DecryptionFailed(PackError):
    def __init__(self, detail: str):
        super().__init__(f"Decryption failed: {detail}")
        self.detail = detail


# Compression
class CompressionFailed(PackError):
    def __init__(self, detail: str):
        super().__init__(f"Compression failed: {detail}")
        self.detail = detail


class DecompressionFailed(PackError):
    def __init__(self, detail: str):
        super().__init__(f"Decompression failed: {detail}")
        self.detail = detail


# Pack document (caller-side JSON)
class InvalidPackDocument(PackError):
    pass
