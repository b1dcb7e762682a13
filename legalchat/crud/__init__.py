from legalchat.crud.user import crud_user
from legalchat.crud.conversation import crud_conversation
from legalchat.crud.message import crud_message
from legalchat.crud.shared_link import crud_shared_link

__all__ = [
    "crud_user",
    "crud_conversation",
    "crud_message",
    "crud_shared_link"
]
