from authgate.core.credentials.source import JsonCredentialSource, StaticCredentialSource
from authgate.core.credentials.verifier import CredentialVerifier

__all__ = ["CredentialVerifier", "JsonCredentialSource", "StaticCredentialSource"]
