from legalchat.schemas.conversation import (
    ConversationCreate, ConversationResponse, ConversationListItem,
    ConversationWithMessages, ConversationInfo, MessageResponse
)
from legalchat.schemas.chat import (
    ConversationState, SendMessageResponse
)
from legalchat.schemas.share import (
    ShareRequest, ShareResponse, SharedMessage, SharedConversation,
    ShareInfo, SharedConversationResponse
)
from legalchat.schemas.ai import (
    TranslateRequest, DetectLanguageRequest, GenerateDocumentRequest
)
from legalchat.schemas.common import (
    SuccessResponse, DeleteAllResponse, HealthCheck
)

__all__ = [
    # Conversation
    "ConversationCreate", "ConversationResponse", "ConversationListItem",
    "ConversationWithMessages", "ConversationInfo", "MessageResponse",
    # Chat
    "ConversationState", "SendMessageResponse",
    # Share
    "ShareRequest", "ShareResponse", "SharedMessage", "SharedConversation",
    "ShareInfo", "SharedConversationResponse",
    # AI pass-through
    "TranslateRequest", "DetectLanguageRequest", "GenerateDocumentRequest",
    # Common
    "SuccessResponse", "DeleteAllResponse", "HealthCheck"
]
