from .app import create_app
from .store import ChatStore
