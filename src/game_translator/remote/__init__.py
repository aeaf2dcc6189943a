"""Remote translation server client."""

from game_translator.remote.client import (
    Download,
    RemoteClient,
    UpdateCheck,
    UploadRequest,
    UploadResult,
    UuidCheck,
)

__all__ = [
    "Download",
    "RemoteClient",
    "UpdateCheck",
    "UploadRequest",
    "UploadResult",
    "UuidCheck",
]
