from legalchat.services.chat import ChatService, UploadedFile
from legalchat.services.sharing import ShareService

__all__ = [
    "ChatService",
    "ShareService",
    "UploadedFile",
]
