from .user import User
from .node import Node
from .flagging import Flagging

__all__ = ["User", "Node", "Flagging"]
